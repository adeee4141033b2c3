from __future__ import annotations

from agents.session_controller import SessionController
from utils.confidence import Dimension
from utils.signals import RandomSignalProvider
from utils.state import DecisionState, Step

from conftest import FakeSignalProvider


def test_manual_unknown_pan_synthesizes_profile_in_range():
    controller = SessionController(signal_provider=RandomSignalProvider(seed=7))
    result = controller.verify_identity_manual("QWERT1234Y")

    profile = result["profile"]
    assert result["verified"] is True
    assert profile["pan"] == "QWERT1234Y"
    assert 650 <= profile["credit_score"] <= 850
    assert 40000 <= profile["monthly_income"] <= 140000
    assert 1 <= profile["employment_years"] <= 10
    assert 85 <= controller.state.confidence.raw(Dimension.IDENTITY) <= 94


def test_manual_without_pan_generates_one():
    controller = SessionController(signal_provider=RandomSignalProvider(seed=11))
    result = controller.verify_identity_manual()

    pan = result["profile"]["pan"]
    assert len(pan) == 10
    assert pan[:5].isalpha() and pan[:5].isupper()
    assert pan[5:9].isdigit()
    assert pan[9].isalpha()


def test_manual_registry_lookup_normalizes_pan(controller: SessionController):
    result = controller.verify_identity_manual(" abcde1234f ")

    assert result["profile"]["name"] == "Rahul Sharma"
    verified = controller.state.verified_data
    assert verified.credit_score == 780
    assert verified.credit_score_category == "VERY_GOOD"
    assert controller.state.confidence.raw(Dimension.IDENTITY) == 85
    assert controller.state.confidence.raw(Dimension.CREDIT) == 82
    assert controller.state.documents["pan"].uploaded is True
    assert Step.VERIFICATION in controller.state.completed_steps


def test_excellent_score_confidence_within_band():
    controller = SessionController(signal_provider=RandomSignalProvider(seed=3))
    for _ in range(20):
        confidence = controller.verification_agent.process_credit_score(controller.state, 820)
        assert 91 <= confidence <= 95
    assert controller.state.verified_data.credit_score_category == "EXCELLENT"


def test_credit_risk_factors_added_and_cleared(controller: SessionController):
    agent = controller.verification_agent
    state = controller.state

    agent.process_credit_score(state, 660)
    agent.process_credit_score(state, 660)
    assert state.risk.factors == ["Fair credit score - monitor closely"]

    agent.process_credit_score(state, 600)
    assert "Low credit score - elevated default risk" in state.risk.factors

    state.risk.add_factor("High debt-to-income ratio")
    agent.process_credit_score(state, 805)
    assert state.risk.factors == ["High debt-to-income ratio"]


def test_poor_credit_band(controller: SessionController):
    confidence = controller.verification_agent.process_credit_score(controller.state, 600)
    assert confidence == 28
    assert controller.state.verified_data.credit_score_category == "POOR"


def test_digilocker_sets_higher_identity_and_address():
    controller = SessionController(signal_provider=FakeSignalProvider(mode="high"))
    result = controller.verify_identity_federated()

    assert result["method"] == "DigiLocker"
    assert result["profile"]["address"]["city"] == "Pune"
    assert result["profile"]["kyc_method"] == "DigiLocker"
    assert controller.state.confidence.raw(Dimension.IDENTITY) == 98
    assert controller.state.documents["pan"].method == "DigiLocker OAuth"
    assert "DIGILOCKER_VERIFIED" in controller.state.journal.actions()


def test_second_verification_overwrites_and_is_journaled(controller: SessionController):
    controller.verify_identity_manual("ABCDE1234F")
    controller.verify_identity_federated()

    state = controller.state
    assert state.verified_data.customer_profile.pan == "FAKEP1234Z"
    assert state.customer_data.pan_number == "FAKEP1234Z"
    assert "REVERIFIED" in state.journal.actions()
    assert state.completed_steps.count(Step.VERIFICATION) == 1


def test_credit_below_floor_rejects_with_explanation():
    controller = SessionController(signal_provider=FakeSignalProvider(credit_score=500))
    controller.verify_identity_manual()

    assert controller.is_rejected()
    assert controller.get_snapshot()["decision_state"] == DecisionState.REJECTED.value
    assert "550" in controller.get_rejection_explanation()
    # risk is still assessed for display
    assert controller.get_snapshot()["risk_assessment"]["level"] == "HIGH"


def test_identity_failure_after_document_submission(controller: SessionController):
    controller.verify_identity_manual("LMNOP9012H")
    controller.state.confidence.overwrite(Dimension.IDENTITY, 40)
    controller.master_agent.orchestrate(controller.state)

    assert controller.is_rejected()
    assert "identity verification could not be completed" in controller.get_rejection_explanation()


class OverReachingSignals(FakeSignalProvider):
    def draw(self, low: int, high: int) -> int:
        return high + 10


def test_digilocker_identity_never_exceeds_cap():
    controller = SessionController(signal_provider=OverReachingSignals())
    controller.verify_identity_federated()

    assert controller.state.confidence.raw(Dimension.IDENTITY) == 99
    assert controller.get_snapshot()["confidence_vector"]["identity"] == 99
