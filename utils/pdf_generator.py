import io
import logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

# Builds the whole PDF with reportlab's built-in fonts; nothing touches disk.


def get_pdf_input_details(letter) -> dict:
    """
    Maps a SanctionLetter to the values printed on the PDF.
    """
    loan = letter.loan_details
    breakdown = letter.confidence_breakdown
    return {
        'sanction_id': letter.sanction_id,
        'cust_name': letter.applicant.name,
        'pan': letter.applicant.pan or 'N/A',
        'credit_score': letter.applicant.credit_score or 'N/A',
        'amt': loan.amount,
        'tenure': loan.tenure,  # in months
        'roi': loan.interest_rate,
        'emi': loan.emi,
        'processing_charges': loan.processing_fee,
        'total_payable': loan.total_payable,
        'sanction_date': letter.sanction_date,
        'valid_till': letter.valid_till,
        'confidence': f"{breakdown.overall}% (intent {breakdown.intent}%, identity {breakdown.identity}%, "
                      f"income {breakdown.income}%, credit {breakdown.credit}%)",
        'risk': f"{letter.risk_assessment} - {letter.risk_rationale}",
        'terms': list(letter.terms),
    }


def render_sanction_letter(letter) -> bytes:
    """
    Renders the sanction letter PDF and returns its bytes.
    """
    details = get_pdf_input_details(letter)
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    # --- HEADER & TITLE ---
    c.setFont("Times-Bold", 16)
    c.drawString(inch, height - inch, "CredGen Financial Services")
    c.setFont("Times-Bold", 14)
    c.drawString(inch, height - inch - 0.3*inch, "Personal Loan Sanction Letter")

    # --- REFERENCE & ADDRESSEE ---
    c.setFont("Times-Roman", 11)
    c.drawString(inch, height - 1.8*inch, f"Sanction No: {details['sanction_id']}")
    c.drawString(inch, height - 2.0*inch, f"Date: {details['sanction_date']}   Valid till: {details['valid_till']}")
    c.drawString(inch, height - 2.5*inch, "To,")
    c.drawString(inch, height - 2.7*inch, f"Customer: {details['cust_name']}")
    c.drawString(inch, height - 2.9*inch, f"PAN: {details['pan']}   Credit Score: {details['credit_score']}")

    c.drawString(inch, height - 3.5*inch, f"Dear {details['cust_name']},")
    c.drawString(inch, height - 3.8*inch, "We are pleased to inform you that your application for a Personal Loan has been approved.")

    # --- LOAN DETAILS TABLE ---
    y_start = height - 4.5*inch
    col1_x = inch * 1.5
    col2_x = inch * 5.0
    row_height = 0.3*inch

    c.setFont("Times-Bold", 11)
    c.drawString(col1_x, y_start, "Loan Parameter")
    c.drawString(col2_x, y_start, "Sanctioned Value")
    c.line(inch, y_start - 0.1*inch, width - inch, y_start - 0.1*inch)

    rows = [
        ("Loan Amount", f"Rs. {details['amt']:,.0f} ONLY"),
        ("Tenure", f"{details['tenure']} Months"),
        ("Interest Rate (ROI)", f"{details['roi']:.2f} % per annum"),
        ("Monthly EMI", f"Rs. {details['emi']:,}"),
        ("Processing Charges (2%)", f"Rs. {details['processing_charges']:,}"),
        ("Total Payable", f"Rs. {details['total_payable']:,}"),
    ]

    y = y_start - row_height
    c.setFont("Times-Roman", 11)
    for label, value in rows:
        c.drawString(col1_x, y, label)
        c.drawString(col2_x, y, value)
        y -= row_height

    c.line(inch, y + 0.1*inch, width - inch, y + 0.1*inch)

    # --- DECISION SUMMARY ---
    c.setFont("Times-Roman", 10)
    y -= row_height
    c.drawString(inch, y, f"Decision confidence: {details['confidence']}")
    y -= 0.25*inch
    c.drawString(inch, y, f"Risk assessment: {details['risk']}")

    # --- TERMS ---
    y -= 0.4*inch
    c.setFont("Times-Bold", 11)
    c.drawString(inch, y, "Terms & Conditions")
    c.setFont("Times-Roman", 10)
    for number, term in enumerate(details['terms'], start=1):
        y -= 0.25*inch
        c.drawString(inch, y, f"{number}. {term}")

    # --- CLOSING ---
    c.drawString(inch, y - 0.6*inch, "Please sign and return a copy of this letter within 7 days to accept the terms.")
    c.drawString(inch, y - 1.2*inch, "Sincerely,")
    c.setFont("Times-Roman", 11)
    c.drawString(inch, y - 1.5*inch, "CredGen Agent Team")

    c.save()
    pdf_bytes = buffer.getvalue()
    logger.info(f"Rendered sanction letter {details['sanction_id']} ({len(pdf_bytes)} bytes)")
    return pdf_bytes
