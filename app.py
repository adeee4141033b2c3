from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
import io
import logging
from datetime import datetime
from werkzeug.utils import secure_filename

from agents.session_controller import SessionController
from utils.config import (
    APP_HOST, APP_PORT, APP_SECRET_KEY, FLASK_DEBUG, LOG_LEVEL, SIGNAL_SEED,
    MIN_LOAN_AMOUNT, MAX_LOAN_AMOUNT, MIN_TENURE, MAX_TENURE, INCOME_RANGES
)
from utils.pdf_generator import render_sanction_letter
from utils.signals import RandomSignalProvider

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

# --- 1. Initialization ---
app = Flask(__name__)
CORS(app)
app.secret_key = APP_SECRET_KEY
app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024  # 10 MB

# One implicit session per process
controller = SessionController(signal_provider=RandomSignalProvider(seed=SIGNAL_SEED))

# Latest generated letter, kept only for the PDF download
latest_letter = {"letter": None}


# --- Validation Helpers ---

class ValidationError(ValueError):
    pass


def _parse_number(data, field, cast):
    value = data.get(field)
    if value is None or value == "":
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")


def _parse_text(data, field):
    value = data.get(field)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


def validate_intent_payload(data: dict) -> dict:
    """Business bounds are enforced here; the agents score whatever they receive."""
    purpose = _parse_text(data, "purpose")
    employment_type = _parse_text(data, "employment_type")
    income_range = _parse_text(data, "income_range")
    loan_amount = _parse_number(data, "loan_amount", float)
    tenure = _parse_number(data, "tenure", int)

    if loan_amount is not None and not (MIN_LOAN_AMOUNT <= loan_amount <= MAX_LOAN_AMOUNT):
        raise ValidationError(
            f"Please enter a valid loan amount between ₹{MIN_LOAN_AMOUNT:,} and ₹{MAX_LOAN_AMOUNT:,}"
        )
    if tenure is not None and not (MIN_TENURE <= tenure <= MAX_TENURE):
        raise ValidationError(f"Please enter a valid tenure between {MIN_TENURE} and {MAX_TENURE} months")

    if income_range is not None and income_range not in INCOME_RANGES:
        logger.warning(f"Unrecognised income range {income_range!r}, default income will be assumed")

    return {
        "loan_amount": loan_amount,
        "tenure": tenure,
        "purpose": purpose,
        "employment_type": employment_type,
        "income_range": income_range,
    }


def state_summary() -> dict:
    snapshot = controller.get_snapshot()
    return {
        "session_id": snapshot["session_id"],
        "decision_state": snapshot["decision_state"],
        "confidence_vector": snapshot["confidence_vector"],
        "risk_assessment": snapshot["risk_assessment"],
        "active_agent": snapshot["active_agent"],
        "completed_steps": snapshot["completed_steps"],
    }


def error_response(error, message, status):
    return jsonify({"error": error, "message": message}), status


# --- API Endpoints ---

@app.route('/intent', methods=['POST'])
def submit_intent():
    """Sales agent: capture loan amount, tenure, purpose, employment and income range."""
    data = request.get_json(silent=True) or {}
    try:
        payload = validate_intent_payload(data)
    except ValidationError as e:
        return error_response("invalid_input", str(e), 400)

    try:
        result = controller.submit_intent(**payload)
        return jsonify({**result, "state": state_summary()})
    except Exception:
        logger.exception("Error in /intent")
        return error_response("intent_failed", "Intent processing failed. Please try again.", 500)


@app.route('/verify/manual', methods=['POST'])
def verify_manual():
    """Verification agent: manual PAN upload."""
    data = request.get_json(silent=True) or {}
    try:
        pan = _parse_text(data, "pan")
    except ValidationError as e:
        return error_response("invalid_input", str(e), 400)

    try:
        result = controller.verify_identity_manual(pan)
        response = {**result, "state": state_summary()}
        if controller.is_rejected():
            response["rejection_reason"] = controller.get_rejection_explanation()
        return jsonify(response)
    except Exception:
        logger.exception("Error in /verify/manual")
        return error_response("verification_failed", "PAN verification failed. Please try again.", 500)


@app.route('/verify/digilocker', methods=['POST'])
def verify_digilocker():
    """Verification agent: DigiLocker OAuth."""
    try:
        result = controller.verify_identity_federated()
        response = {**result, "state": state_summary()}
        if controller.is_rejected():
            response["rejection_reason"] = controller.get_rejection_explanation()
        return jsonify(response)
    except Exception:
        logger.exception("Error in /verify/digilocker")
        return error_response("verification_failed", "DigiLocker verification failed. Please try again.", 500)


@app.route('/underwrite', methods=['POST'])
def underwrite():
    """Underwriting agent: credit pull and debt-to-income evaluation."""
    try:
        result = controller.run_underwriting()
        return jsonify({**result, "state": state_summary()})
    except Exception:
        logger.exception("Error in /underwrite")
        return error_response("underwriting_failed", "Underwriting process failed. Please try again.", 500)


@app.route('/salary-slip', methods=['POST'])
def salary_slip():
    """Underwriting agent: salary slip OCR. Accepts a multipart file or a JSON filename."""
    filename = None
    upload = request.files.get('file')
    if upload and upload.filename:
        filename = secure_filename(upload.filename)
    else:
        data = request.get_json(silent=True) or {}
        if data.get("filename"):
            filename = secure_filename(data["filename"])

    try:
        result = controller.submit_salary_slip(filename or "salary_slip.pdf")
        response = {**result, "state": state_summary()}
        if controller.is_rejected():
            response["rejection_reason"] = controller.get_rejection_explanation()
        return jsonify(response)
    except Exception:
        logger.exception("Error in /salary-slip")
        return error_response("salary_slip_failed", "Salary slip processing failed. Please try again.", 500)


@app.route('/sanction/eligibility', methods=['GET'])
def sanction_eligibility():
    return jsonify({"can_generate": controller.can_generate_sanction(), "state": state_summary()})


@app.route('/sanction', methods=['POST'])
def generate_sanction():
    """Sanction generator: issue the letter once approval holds."""
    try:
        letter = controller.generate_sanction()
    except Exception:
        logger.exception("Error in /sanction")
        return error_response("documentation_failed", "Failed to generate sanction letter.", 500)

    if letter is None:
        response = {
            "error": "sanction_blocked",
            "message": "Confidence threshold not met for sanction generation.",
            "state": state_summary(),
        }
        if controller.is_rejected():
            response["rejection_reason"] = controller.get_rejection_explanation()
        return jsonify(response), 409

    latest_letter["letter"] = letter
    return jsonify({
        "message": "✅ Sanction letter generated successfully!",
        "sanction_letter": letter.to_dict(),
        "download_url": "/sanction/pdf",
    })


@app.route('/sanction/pdf', methods=['GET'])
def download_sanction_letter():
    """Download the most recently generated sanction letter as PDF."""
    letter = latest_letter["letter"]
    if letter is None or letter.session_id != controller.get_snapshot()["session_id"]:
        return error_response("not_found", "No sanction letter available for download", 404)

    pdf_bytes = render_sanction_letter(letter)
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"Sanction_Letter_{letter.sanction_id}.pdf",
    )


@app.route('/state', methods=['GET'])
def get_state():
    return jsonify(controller.get_snapshot())


@app.route('/activity', methods=['GET'])
def get_activity():
    return jsonify({"activity_log": controller.get_activity_log()})


@app.route('/rejection', methods=['GET'])
def get_rejection():
    return jsonify({
        "rejected": controller.is_rejected(),
        "reason": controller.get_rejection_explanation(),
    })


@app.route('/reset', methods=['POST'])
def reset_session():
    controller.reset_session()
    latest_letter["letter"] = None
    return jsonify({"message": "Session reset successfully.", "session_id": controller.get_snapshot()["session_id"]})


@app.route('/health', methods=['GET'])
def health_check():
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now().isoformat(),
        'session_id': controller.get_snapshot()["session_id"],
        'agents': ['master', 'sales', 'verification', 'underwriting', 'sanction']
    })


if __name__ == '__main__':
    print("=" * 60)
    print("CREDGEN Confidence-Based Loan Decisioning")
    print("=" * 60)
    print(f"Server starting on http://{APP_HOST}:{APP_PORT}")
    print("Available endpoints:")
    print("  POST /intent               - Capture loan intent")
    print("  POST /verify/manual        - PAN verification")
    print("  POST /verify/digilocker    - DigiLocker OAuth verification")
    print("  POST /underwrite           - Credit and DTI evaluation")
    print("  POST /salary-slip          - Salary slip OCR")
    print("  GET  /sanction/eligibility - Sanction readiness")
    print("  POST /sanction             - Generate sanction letter")
    print("  GET  /sanction/pdf         - Download sanction letter")
    print("  GET  /state                - Session snapshot")
    print("  GET  /rejection            - Rejection explanation")
    print("  POST /reset                - Start a new application")
    print("  GET  /health               - Health check")
    print("=" * 60)

    app.run(host=APP_HOST, port=APP_PORT, debug=FLASK_DEBUG)
