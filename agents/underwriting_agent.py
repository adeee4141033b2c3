import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict

from agents.master_agent import MasterAgent
from agents.verification_agent import VerificationAgent
from utils.config import (
    DEFAULT_ANNUAL_RATE,
    DEFAULT_MONTHLY_INCOME,
    DEFAULT_TENURE_MONTHS,
    DTI_BANDS,
    HIGH_DTI_INCOME_CONFIDENCE,
    RISK_FACTORS,
)
from utils.confidence import Dimension
from utils.finance import calculate_emi
from utils.signals import SignalProvider
from utils.state import SalarySlipData, SessionState, Step, session_seed

logger = logging.getLogger(__name__)


class UnderwritingAgent:
    def __init__(self, master_agent: MasterAgent, verification_agent: VerificationAgent, signals: SignalProvider):
        """Credit/DTI evaluation and salary slip verification."""
        self.name = Step.UNDERWRITING.value
        self.master_agent = master_agent
        self.verification_agent = verification_agent
        self.signals = signals

    def evaluate_credit(self, state: SessionState) -> Dict[str, Any]:
        """Pull the bureau score if missing, then score income from the DTI ratio.

        The DTI path only ever raises income confidence.
        """
        journal = state.journal
        verified = state.verified_data
        customer = state.customer_data
        journal.log(self.name, "TRIGGERED", "Initiating credit and income evaluation")
        state.active_agent = self.name

        if not verified.credit_score and verified.customer_profile:
            verified.credit_score = verified.customer_profile.credit_score
            self.verification_agent.process_credit_score(state, verified.credit_score)

        if customer.loan_amount and customer.monthly_income:
            emi = calculate_emi(customer.loan_amount, customer.tenure or DEFAULT_TENURE_MONTHS, DEFAULT_ANNUAL_RATE)
            dti = emi / customer.monthly_income * 100
            verified.eligibility_ratio = dti

            journal.log(
                self.name,
                "DTI_ANALYSIS",
                f"EMI: ₹{round(emi):,} | DTI Ratio: {dti:.1f}%",
                "Healthy DTI ratio" if dti < 40 else "High DTI - may need review",
            )
            self._score_income_from_dti(state, dti)

        journal.log(
            self.name,
            "CONFIDENCE_UPDATE",
            f"Income Confidence: {state.confidence.raw(Dimension.INCOME)}%",
            "Based on preliminary assessment",
        )

        self.master_agent.orchestrate(state)

        return {
            "credit_score": verified.credit_score,
            "dti_ratio": verified.eligibility_ratio,
        }

    def _score_income_from_dti(self, state: SessionState, dti: float) -> None:
        for upper, low, high in DTI_BANDS:
            if dti < upper:
                state.confidence.raise_to(Dimension.INCOME, self.signals.draw(low, high))
                return

        state.confidence.raise_to(Dimension.INCOME, HIGH_DTI_INCOME_CONFIDENCE)
        state.risk.add_factor(RISK_FACTORS["high_dti"])

    def verify_salary_slip(self, state: SessionState, filename: str = "salary_slip.pdf") -> Dict[str, Any]:
        """OCR-style extraction compared against declared income.

        Unlike the DTI path, this overwrites income confidence.
        """
        journal = state.journal
        journal.log(self.name, "TRIGGERED", "Processing salary slip document with OCR")
        state.active_agent = self.name

        slip_doc = state.documents["salary_slip"]
        slip_doc.uploaded = True
        slip_doc.filename = filename
        slip_doc.timestamp = datetime.now(timezone.utc).isoformat()

        journal.log(self.name, "OCR_PROCESSING", "Extracting data from salary slip document...")
        slip = self.simulate_ocr_extraction(state)
        state.verified_data.salary_slip_data = slip
        state.verified_data.income_verified = True

        journal.log(
            self.name,
            "OCR_COMPLETE",
            f"Extracted Net Salary: ₹{slip.net_salary:,}",
            f"Source: {slip.employer} | Confidence: {slip.ocr_confidence}%",
        )

        declared = state.customer_data.monthly_income or DEFAULT_MONTHLY_INCOME
        variance = abs(slip.net_salary - declared) / declared * 100
        comparison = (
            f"Declared (₹{declared:,.0f}) vs Extracted (₹{slip.net_salary:,}) - variance {variance:.1f}%"
        )

        if variance < 10:
            journal.log(self.name, "INCOME_MATCH", comparison, "Income declaration verified - high alignment")
        elif variance < 25:
            journal.log(self.name, "INCOME_VARIANCE", comparison, "Moderate variance detected - within acceptable range")
        else:
            journal.log(self.name, "INCOME_MISMATCH", comparison, "Significant variance - may require clarification")

        if variance < 10 and slip.ocr_confidence >= 95:
            income_confidence = self.signals.draw(88, 91)
        elif variance < 25 and slip.ocr_confidence >= 90:
            income_confidence = self.signals.draw(82, 87)
        else:
            income_confidence = self.signals.draw(75, 81)

        income = state.confidence.overwrite(Dimension.INCOME, income_confidence)
        journal.log(
            self.name,
            "CONFIDENCE_UPDATE",
            f"Income Confidence: → {income}%",
            f"Based on OCR quality ({slip.ocr_confidence}%) and variance ({variance:.1f}%)",
        )

        state.mark_completed(Step.UNDERWRITING, "Underwriting assessment complete")
        self.master_agent.orchestrate(state)

        return {
            "extracted_salary": slip.net_salary,
            "variance_percent": round(variance, 1),
            "salary_data": asdict(slip),
        }

    def simulate_ocr_extraction(self, state: SessionState) -> SalarySlipData:
        """Deterministic per session: the same session always extracts the same slip."""
        profile = state.verified_data.customer_profile
        base_salary = (
            state.customer_data.monthly_income
            or (profile.monthly_income if profile else None)
            or DEFAULT_MONTHLY_INCOME
        )

        seed = session_seed(state.session_id)
        variance_factor = 0.85 + (seed / 100) * 0.25  # 0.85 to 1.10
        gross = round(base_salary * variance_factor)

        if gross > 100000:
            deduction_rate = 0.18
        elif gross > 50000:
            deduction_rate = 0.15
        else:
            deduction_rate = 0.12
        net = round(gross * (1 - deduction_rate))

        employer = profile.employer if profile else self.signals.employer_for_salary(gross)

        return SalarySlipData(
            gross_salary=gross,
            net_salary=net,
            employer=employer,
            month=datetime.now().strftime("%B %Y"),
            ocr_confidence=91 + (seed % 8),
            deductions={
                "pf": round(gross * 0.12 * 0.4),
                "tax": round(gross * deduction_rate * 0.6),
                "other": 0,
            },
        )
