"""Sanction generator: issues the immutable sanction letter once approval holds."""
from __future__ import annotations

import logging
import secrets
import time
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional, Tuple

import numpy as np

from utils.config import (
    DEFAULT_TENURE_MONTHS,
    PROCESSING_FEE_RATE,
    SANCTION_TERMS,
    SANCTION_VALIDITY_DAYS,
    THRESHOLDS,
)
from utils.confidence import ConfidenceVector
from utils.finance import calculate_emi, interest_rate_for_score
from utils.state import DecisionState, SessionState, Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplicantSnapshot:
    name: str
    pan: Optional[str]
    credit_score: Optional[int]


@dataclass(frozen=True)
class LoanTerms:
    amount: float
    tenure: int
    interest_rate: float
    emi: int
    processing_fee: int
    total_payable: int


@dataclass(frozen=True)
class SanctionLetter:
    sanction_id: str
    session_id: str
    status: str
    sanction_date: str
    valid_till: str
    applicant: ApplicantSnapshot
    loan_details: LoanTerms
    confidence_breakdown: ConfidenceVector
    risk_assessment: str
    risk_rationale: str
    terms: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["terms"] = list(self.terms)
        return data


def new_sanction_id() -> str:
    stamp = np.base_repr(int(time.time() * 1000), 36)
    suffix = np.base_repr(secrets.randbelow(36 ** 4), 36).rjust(4, "0")
    return f"SANC-{stamp}-{suffix}".upper()


class SanctionAgent:

    def __init__(self):
        self.name = Step.SANCTION.value

    def can_generate(self, state: SessionState) -> bool:
        return (
            state.confidence.overall >= THRESHOLDS["approved"]
            and state.decision_state == DecisionState.APPROVED
        )

    def generate(self, state: SessionState) -> Optional[SanctionLetter]:
        journal = state.journal
        if not self.can_generate(state):
            journal.log(
                self.name,
                "BLOCKED",
                f"Cannot generate - confidence at {state.confidence.overall}%",
                f"Required: {THRESHOLDS['approved']}%",
            )
            return None

        journal.log(self.name, "TRIGGERED", "Generating sanction letter")
        state.active_agent = self.name

        customer = state.customer_data
        verified = state.verified_data
        profile = verified.customer_profile

        amount = customer.loan_amount or 0
        tenure = customer.tenure or DEFAULT_TENURE_MONTHS
        interest_rate = interest_rate_for_score(verified.credit_score)
        emi = calculate_emi(amount, tenure, interest_rate)

        sanction_date = date.today()
        letter = SanctionLetter(
            sanction_id=new_sanction_id(),
            session_id=state.session_id,
            status=DecisionState.APPROVED.value,
            sanction_date=sanction_date.isoformat(),
            valid_till=(sanction_date + timedelta(days=SANCTION_VALIDITY_DAYS)).isoformat(),
            applicant=ApplicantSnapshot(
                name=customer.name or (profile.name if profile else None) or "Applicant",
                pan=customer.pan_number,
                credit_score=verified.credit_score,
            ),
            loan_details=LoanTerms(
                amount=amount,
                tenure=tenure,
                interest_rate=interest_rate,
                emi=round(emi),
                processing_fee=round(amount * PROCESSING_FEE_RATE),
                total_payable=round(emi * tenure),
            ),
            confidence_breakdown=state.confidence.vector(),
            risk_assessment=state.risk.level.value,
            risk_rationale=state.risk.rationale
            or "Profile meets all approval criteria with acceptable risk parameters",
            terms=tuple(SANCTION_TERMS),
        )

        journal.log(
            self.name,
            "GENERATED",
            f"Sanction Letter: {letter.sanction_id}",
            f"Loan Amount: ₹{amount:,.0f} @ {interest_rate}% p.a.",
        )
        state.mark_completed(Step.SANCTION)

        return letter
