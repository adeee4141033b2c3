"""Master agent: the decision governor of a loan application session.

The scoring rules are pure functions over a read-only ``DecisionInputs``
view so they can be tested in isolation. ``MasterAgent.orchestrate`` applies
them to a live session and journals the outcome.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from utils.config import (
    DTI_REJECTION_CEILING,
    IDENTITY_FAILURE_FLOOR,
    IDENTITY_VERIFIED_FLOOR,
    MASTER_AGENT_NAME,
    REJECTION_CREDIT_FLOOR,
    THRESHOLDS,
)
from utils.confidence import ConfidenceVector, Dimension
from utils.state import DecisionState, RiskLevel, SessionState, Step

logger = logging.getLogger(__name__)


class NextActionType(Enum):
    APPROVE = "APPROVE"
    ACTIVATE = "ACTIVATE"
    WAIT = "WAIT"


# Which step owns each confidence dimension
DIMENSION_OWNERS = {
    Dimension.INTENT: Step.SALES,
    Dimension.IDENTITY: Step.VERIFICATION,
    Dimension.INCOME: Step.UNDERWRITING,
    Dimension.CREDIT: Step.UNDERWRITING,
}


@dataclass(frozen=True)
class DecisionInputs:
    """Everything the governor reads, captured at one instant."""

    raw: ConfidenceVector
    overall: int
    credit_score: Optional[int] = None
    completed_steps: Tuple[Step, ...] = ()
    identity_document_submitted: bool = False
    income_verified: bool = False
    net_salary: Optional[int] = None
    eligibility_ratio: Optional[float] = None

    @classmethod
    def from_session(cls, state: SessionState) -> "DecisionInputs":
        model = state.confidence
        verified = state.verified_data
        slip = verified.salary_slip_data
        return cls(
            raw=ConfidenceVector(
                intent=model.raw(Dimension.INTENT),
                identity=model.raw(Dimension.IDENTITY),
                income=model.raw(Dimension.INCOME),
                credit=model.raw(Dimension.CREDIT),
                overall=model.overall,
            ),
            overall=model.overall,
            credit_score=verified.credit_score,
            completed_steps=tuple(state.completed_steps),
            identity_document_submitted=state.documents["pan"].uploaded,
            income_verified=verified.income_verified,
            net_salary=slip.net_salary if slip else None,
            eligibility_ratio=verified.eligibility_ratio,
        )


@dataclass(frozen=True)
class NextAction:
    action: NextActionType
    agent: Optional[str]
    reason: str


def _known_score(score: Optional[int]) -> bool:
    return bool(score) and score > 0


def should_reject(inputs: DecisionInputs) -> bool:
    if _known_score(inputs.credit_score) and inputs.credit_score < REJECTION_CREDIT_FLOOR:
        return True
    if len(inputs.completed_steps) >= 2 and 0 < inputs.overall < THRESHOLDS["rejected"]:
        return True
    if inputs.identity_document_submitted and inputs.raw.identity < IDENTITY_FAILURE_FLOOR:
        return True
    return False


def decide_state(inputs: DecisionInputs) -> DecisionState:
    """Rejection check first, then the threshold ladder."""
    if should_reject(inputs):
        return DecisionState.REJECTED

    overall = inputs.overall
    if overall >= THRESHOLDS["approved"]:
        return DecisionState.APPROVED
    if overall >= THRESHOLDS["review"]:
        return DecisionState.REVIEW
    if overall >= THRESHOLDS["processing"]:
        return DecisionState.PROCESSING
    return DecisionState.PENDING


def assess_risk(inputs: DecisionInputs) -> Tuple[RiskLevel, str]:
    """Qualitative risk label and rationale; first matching rule wins."""
    credit_score = inputs.credit_score or 0
    identity_verified = inputs.raw.identity >= IDENTITY_VERIFIED_FLOOR
    income_verified = inputs.income_verified

    if not identity_verified:
        return RiskLevel.HIGH, "Identity verification incomplete - KYC pending"
    if 0 < credit_score < 700:
        return RiskLevel.HIGH, f"Credit score {credit_score} below threshold (700) - elevated default risk"

    if not income_verified:
        return RiskLevel.MEDIUM, "Income partially verified - salary slip recommended for confirmation"
    if 700 <= credit_score <= 740:
        return (
            RiskLevel.MEDIUM,
            f"Credit score {credit_score} in marginal range (700-740) - standard monitoring applies",
        )

    if credit_score > 740 and income_verified:
        net = f"{inputs.net_salary:,}" if inputs.net_salary is not None else "N/A"
        return RiskLevel.LOW, f"Strong profile: Credit score {credit_score} with verified income of ₹{net}"
    if credit_score > 740:
        return (
            RiskLevel.LOW,
            f"Credit score {credit_score} indicates strong creditworthiness - "
            "income verification would further strengthen",
        )

    return RiskLevel.MEDIUM, "Assessment in progress - awaiting additional verification signals"


def weakest_dimension(raw: ConfidenceVector) -> Dimension:
    """Lowest raw dimension; ties keep the first in declaration order."""
    weakest = Dimension.INTENT
    for dimension in Dimension:
        if raw.get(dimension) < raw.get(weakest):
            weakest = dimension
    return weakest


def select_next_action(inputs: DecisionInputs, decision_state: DecisionState) -> NextAction:
    overall = inputs.overall
    weakest = weakest_dimension(inputs.raw)
    owner = DIMENSION_OWNERS[weakest]

    if decision_state == DecisionState.REJECTED:
        return NextAction(NextActionType.WAIT, None, "Application rejected - no further agents activated")

    if overall >= THRESHOLDS["approved"]:
        return NextAction(
            NextActionType.APPROVE,
            Step.SANCTION.value,
            f"Confidence threshold met ({overall}% >= {THRESHOLDS['approved']}%)",
        )

    if owner not in inputs.completed_steps:
        return NextAction(
            NextActionType.ACTIVATE,
            owner.value,
            f"{weakest.value} confidence at {inputs.raw.get(weakest)}% - requires improvement",
        )

    return NextAction(NextActionType.WAIT, None, "Awaiting user input or additional documents")


def rejection_reasons(inputs: DecisionInputs) -> List[str]:
    credit_score = inputs.credit_score
    reasons = []

    if _known_score(credit_score) and credit_score < REJECTION_CREDIT_FLOOR:
        reasons.append(
            f"your credit score ({credit_score}) is below our minimum requirement of {REJECTION_CREDIT_FLOOR}"
        )
    if _known_score(credit_score) and REJECTION_CREDIT_FLOOR <= credit_score < 650:
        reasons.append(f"your credit score ({credit_score}) indicates high risk")

    if inputs.identity_document_submitted and inputs.raw.identity < IDENTITY_FAILURE_FLOOR:
        reasons.append("identity verification could not be completed successfully")

    ratio = inputs.eligibility_ratio
    if ratio and ratio > DTI_REJECTION_CEILING:
        reasons.append(
            f"your debt-to-income ratio ({ratio:.1f}%) exceeds our maximum threshold of {DTI_REJECTION_CEILING}%"
        )

    if 0 < inputs.overall < THRESHOLDS["rejected"]:
        reasons.append(f"overall assessment confidence ({inputs.overall}%) is below our approval threshold")

    return reasons


class MasterAgent:
    name = MASTER_AGENT_NAME

    def orchestrate(self, state: SessionState) -> NextAction:
        """One full cycle: overall score, decision state, risk, next action."""
        state.confidence.recompute_overall(state.journal)
        self.update_decision_state(state)
        next_action = self.evaluate_next_action(state)

        if next_action.agent and next_action.agent != state.active_agent:
            state.active_agent = next_action.agent
            state.journal.log(self.name, "ORCHESTRATE", f"Activating {next_action.agent}", next_action.reason)

        return next_action

    def update_decision_state(self, state: SessionState) -> DecisionState:
        inputs = DecisionInputs.from_session(state)
        previous_state = state.decision_state

        state.decision_state = decide_state(inputs)
        # Risk is always recomputed, rejected or not
        state.risk.level, state.risk.rationale = assess_risk(inputs)

        if previous_state != state.decision_state:
            state.journal.log(
                self.name,
                "STATE_CHANGE",
                f"Decision state: {previous_state.value} → {state.decision_state.value}",
                f"Risk: {state.risk.level.value}",
            )
            logger.info(f"Decision state {previous_state.value} -> {state.decision_state.value}")

        return state.decision_state

    def evaluate_next_action(self, state: SessionState) -> NextAction:
        journal = state.journal
        journal.log(self.name, "EVALUATE", "Analyzing confidence vector for next action")

        inputs = DecisionInputs.from_session(state)
        weakest = weakest_dimension(inputs.raw)
        owner = DIMENSION_OWNERS[weakest]
        journal.log(
            self.name,
            "AGENT_TRIGGER",
            f"Weakest dimension: {weakest.value.upper()} ({inputs.raw.get(weakest)}%)",
            f"Activating {owner.value} to address weakest signal",
        )

        next_action = select_next_action(inputs, state.decision_state)

        if next_action.action == NextActionType.APPROVE:
            state.active_agent = None
            journal.log(
                self.name,
                "APPROVED",
                f"Loan application approved with {inputs.overall}% confidence",
                "Sanction letter can be generated",
            )
        elif next_action.action == NextActionType.WAIT and state.decision_state != DecisionState.REJECTED:
            journal.log(
                self.name,
                "STALLED",
                f"All agents completed. Overall confidence: {inputs.overall}%. "
                "Awaiting additional signals or manual review.",
                "May require additional documentation or manual underwriter intervention",
            )

        return next_action

    def rejection_explanation(self, state: SessionState) -> str:
        reasons = rejection_reasons(DecisionInputs.from_session(state))
        if not reasons:
            reasons.append("your application did not meet our lending criteria at this time")
        return ", and ".join(reasons)
