"""Session state shared by the master agent and the worker agents."""
from __future__ import annotations

import secrets
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from utils.activity_log import ActivityJournal
from utils.confidence import ConfidenceModel


class DecisionState(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    REVIEW = "REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RiskLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"


class Step(Enum):
    SALES = "Sales Agent"
    VERIFICATION = "Verification Agent"
    UNDERWRITING = "Underwriting Agent"
    SANCTION = "Sanction Generator"


def generate_session_id() -> str:
    """LOAN-<base36 millis>-<5 random base36 chars>, uppercase."""
    stamp = np.base_repr(int(time.time() * 1000), 36)
    suffix = np.base_repr(secrets.randbelow(36 ** 5), 36).rjust(5, "0")
    return f"LOAN-{stamp}-{suffix}".upper()


def session_seed(session_id: str) -> int:
    """Deterministic 0-99 seed derived from the timestamp part of a session id."""
    parts = session_id.split("-")
    try:
        return int(parts[1], 36) % 100
    except (IndexError, ValueError):
        return sum(ord(ch) for ch in session_id) % 100


@dataclass
class CustomerData:
    """Values declared by the applicant."""

    loan_amount: Optional[float] = None
    tenure: Optional[int] = None
    purpose: Optional[str] = None
    employment_type: Optional[str] = None
    monthly_income: Optional[float] = None
    pan_number: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Address:
    line1: str
    city: str
    state: str
    pincode: str


@dataclass(frozen=True)
class CustomerProfile:
    """Verified identity and bureau data for the applicant."""

    name: str
    pan: str
    dob: str
    credit_score: int
    existing_loans: int
    monthly_income: float
    employer: str
    employment_years: int
    verified: bool = True
    address: Optional[Address] = None
    kyc_method: Optional[str] = None


@dataclass(frozen=True)
class SalarySlipData:
    gross_salary: int
    net_salary: int
    employer: str
    month: str
    ocr_confidence: int
    deductions: Dict[str, int] = field(default_factory=dict)
    extraction_method: str = "OCR + NLP Pattern Matching"


@dataclass
class VerifiedData:
    pan_verified: bool = False
    customer_profile: Optional[CustomerProfile] = None
    credit_score: Optional[int] = None
    credit_score_category: Optional[str] = None
    income_verified: bool = False
    salary_slip_data: Optional[SalarySlipData] = None
    eligibility_ratio: Optional[float] = None


@dataclass
class DocumentRecord:
    uploaded: bool = False
    filename: Optional[str] = None
    timestamp: Optional[str] = None
    method: Optional[str] = None


@dataclass
class RiskAssessment:
    level: RiskLevel = RiskLevel.UNKNOWN
    rationale: str = ""
    factors: List[str] = field(default_factory=list)

    def add_factor(self, factor: str) -> None:
        if factor not in self.factors:
            self.factors.append(factor)

    def drop_factors_containing(self, keyword: str) -> None:
        self.factors = [f for f in self.factors if keyword not in f.lower()]

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level.value, "rationale": self.rationale, "factors": list(self.factors)}


@dataclass
class SessionState:
    """Everything one loan application session knows.

    Replaced wholesale on reset; never persisted.
    """

    session_id: str = field(default_factory=generate_session_id)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    decision_state: DecisionState = DecisionState.PENDING
    confidence: ConfidenceModel = field(default_factory=ConfidenceModel)
    customer_data: CustomerData = field(default_factory=CustomerData)
    verified_data: VerifiedData = field(default_factory=VerifiedData)
    risk: RiskAssessment = field(default_factory=RiskAssessment)
    documents: Dict[str, DocumentRecord] = field(
        default_factory=lambda: {"pan": DocumentRecord(), "salary_slip": DocumentRecord()}
    )
    completed_steps: List[Step] = field(default_factory=list)
    active_agent: Optional[str] = None
    journal: ActivityJournal = field(default_factory=ActivityJournal)

    @property
    def last_updated(self) -> Optional[str]:
        return self.journal.last_updated

    def is_completed(self, step: Step) -> bool:
        return step in self.completed_steps

    def mark_completed(self, step: Step, details: Optional[str] = None) -> bool:
        """Record a step as completed once. Returns False if it already was."""
        if step in self.completed_steps:
            return False
        self.completed_steps.append(step)
        if details:
            self.journal.log(step.value, "COMPLETE", details)
        return True

    def snapshot(self) -> Dict[str, Any]:
        """Deep-copied, JSON-friendly view of the session."""
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "last_updated": self.last_updated,
            "decision_state": self.decision_state.value,
            "confidence_vector": self.confidence.vector().to_dict(),
            "risk_assessment": self.risk.to_dict(),
            "active_agent": self.active_agent,
            "completed_steps": [step.value for step in self.completed_steps],
            "customer_data": asdict(self.customer_data),
            "verified_data": asdict(self.verified_data),
            "documents": {name: asdict(doc) for name, doc in self.documents.items()},
            "activity_log": self.journal.to_list(),
        }
