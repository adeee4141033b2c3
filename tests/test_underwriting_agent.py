from __future__ import annotations

import pytest

from agents.session_controller import SessionController
from utils.confidence import Dimension
from utils.finance import calculate_emi
from utils.state import CustomerProfile, Step

from conftest import SEED_0_SESSION, SEED_50_SESSION, SEED_92_SESSION, submit_full_intent


def test_dti_scoring_uses_default_rate(controller: SessionController):
    submit_full_intent(controller)
    result = controller.run_underwriting()

    expected_dti = calculate_emi(1000000, 36, 12.5) / 75000 * 100
    assert result["dti_ratio"] == pytest.approx(expected_dti)
    assert 40 <= result["dti_ratio"] < 50
    # DTI 40-50 band, fake provider draws the bottom of [38, 45]
    assert controller.state.confidence.raw(Dimension.INCOME) == 38
    assert "DTI_ANALYSIS" in controller.state.journal.actions()


def test_dti_defaults_tenure_when_missing(controller: SessionController):
    controller.submit_intent(loan_amount=300000, income_range="100000+")
    result = controller.run_underwriting()

    assert result["dti_ratio"] == pytest.approx(calculate_emi(300000, 36, 12.5) / 150000 * 100)
    assert controller.state.confidence.raw(Dimension.INCOME) == 58


def test_dti_path_never_lowers_income_confidence(controller: SessionController):
    submit_full_intent(controller)
    controller.state.confidence.overwrite(Dimension.INCOME, 70)
    controller.run_underwriting()
    assert controller.state.confidence.raw(Dimension.INCOME) == 70


def test_high_dti_flags_risk_and_explains(controller: SessionController):
    controller.submit_intent(loan_amount=2000000, tenure=12, income_range="0-25000")
    result = controller.run_underwriting()

    assert result["dti_ratio"] > 60
    assert controller.state.confidence.raw(Dimension.INCOME) == 25
    assert "High debt-to-income ratio" in controller.state.risk.factors
    assert "debt-to-income ratio" in controller.get_rejection_explanation()


def test_underwriting_without_inputs_still_journals(controller: SessionController):
    before = len(controller.state.journal)
    result = controller.run_underwriting()

    assert result == {"credit_score": None, "dti_ratio": None}
    assert len(controller.state.journal) > before


def test_credit_pulled_from_profile_when_unknown(controller: SessionController):
    controller.state.verified_data.customer_profile = CustomerProfile(
        name="Test Applicant", pan="FAKEP1234Z", dob="1992-07-20", credit_score=810,
        existing_loans=0, monthly_income=90000, employer="Acme Corp", employment_years=4,
    )
    result = controller.run_underwriting()

    assert result["credit_score"] == 810
    assert controller.state.verified_data.credit_score_category == "EXCELLENT"
    assert controller.state.confidence.raw(Dimension.CREDIT) == 91


def test_salary_slip_close_match_reaches_top_income_band(controller: SessionController):
    controller.state.session_id = SEED_92_SESSION
    submit_full_intent(controller)
    result = controller.submit_salary_slip("march_slip.pdf")

    assert result["variance_percent"] < 10
    assert result["salary_data"]["ocr_confidence"] == 95
    assert controller.state.confidence.raw(Dimension.INCOME) == 88
    assert controller.state.verified_data.income_verified is True
    assert controller.state.documents["salary_slip"].filename == "march_slip.pdf"
    assert "INCOME_MATCH" in controller.state.journal.actions()
    assert Step.UNDERWRITING in controller.state.completed_steps


def test_salary_slip_overwrites_prior_income_confidence(controller: SessionController):
    controller.state.session_id = SEED_0_SESSION
    submit_full_intent(controller)
    controller.state.confidence.overwrite(Dimension.INCOME, 92)

    result = controller.submit_salary_slip()

    assert result["variance_percent"] >= 25
    assert "INCOME_MISMATCH" in controller.state.journal.actions()
    assert controller.state.confidence.raw(Dimension.INCOME) == 75


def test_salary_extraction_is_deterministic_per_session(controller: SessionController):
    controller.state.session_id = SEED_92_SESSION
    submit_full_intent(controller)
    first = controller.underwriting_agent.simulate_ocr_extraction(controller.state)
    second = controller.underwriting_agent.simulate_ocr_extraction(controller.state)

    assert first == second
    assert first.gross_salary == 81000
    assert first.employer == "Acme Corp"
    assert first.deductions["pf"] == round(81000 * 0.12 * 0.4)


def test_salary_slip_completion_is_idempotent(controller: SessionController):
    controller.submit_salary_slip()
    controller.submit_salary_slip()

    assert controller.state.completed_steps.count(Step.UNDERWRITING) == 1
    assert controller.state.journal.actions(Step.UNDERWRITING.value).count("COMPLETE") == 1


def test_salary_slip_moderate_variance_uses_middle_band(controller: SessionController):
    controller.state.session_id = SEED_50_SESSION
    submit_full_intent(controller)
    result = controller.submit_salary_slip()

    assert 10 <= result["variance_percent"] < 25
    assert result["salary_data"]["ocr_confidence"] == 93
    assert "INCOME_VARIANCE" in controller.state.journal.actions()
    assert controller.state.confidence.raw(Dimension.INCOME) == 82
    assert (82, 87) in controller.signals.draws
