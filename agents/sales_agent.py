import logging
from typing import Any, Dict, Optional

from agents.master_agent import MasterAgent
from utils.config import (
    DEFAULT_MONTHLY_INCOME,
    EMPLOYMENT_SCORES,
    INCOME_RANGES,
    INTENT_AMOUNT_BAND,
    INTENT_TENURE_BAND,
    LOW_RISK_PURPOSES,
    MEDIUM_RISK_PURPOSES,
    STEP_COMPLETION_INTENT,
)
from utils.confidence import Dimension
from utils.state import SessionState, Step

logger = logging.getLogger(__name__)


class SalesAgent:

    def __init__(self, master_agent: MasterAgent):
        """Scores how clearly the applicant has stated what they want."""
        self.name = Step.SALES.value
        self.master_agent = master_agent

        # Additive intent contributions per captured field
        self.AMOUNT_IN_BAND = 18
        self.AMOUNT_HIGH = 12
        self.AMOUNT_SMALL = 15
        self.TENURE_STANDARD = 18
        self.TENURE_NON_STANDARD = 10
        self.PURPOSE_LOW_RISK = 22
        self.PURPOSE_STANDARD = 17
        self.PURPOSE_OTHER = 12
        self.INCOME_RANGE_PROVIDED = 12

    def process_intent(
        self,
        state: SessionState,
        loan_amount: Optional[float] = None,
        tenure: Optional[int] = None,
        purpose: Optional[str] = None,
        employment_type: Optional[str] = None,
        income_range: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Accumulate intent confidence from whichever fields this call supplies."""
        journal = state.journal
        customer = state.customer_data
        journal.log(self.name, "TRIGGERED", "Processing customer intent and loan requirements")
        state.active_agent = self.name

        intent_score = 0
        factors = []

        if loan_amount:
            customer.loan_amount = float(loan_amount)
            low, high = INTENT_AMOUNT_BAND
            if low <= customer.loan_amount <= high:
                intent_score += self.AMOUNT_IN_BAND
                factors.append("Loan amount within eligible range")
            elif customer.loan_amount > high:
                intent_score += self.AMOUNT_HIGH
                factors.append("High loan amount - additional verification needed")
            else:
                intent_score += self.AMOUNT_SMALL
                factors.append("Small loan amount")
            journal.log(self.name, "CAPTURED", f"Loan Amount: ₹{customer.loan_amount:,.0f}")

        if tenure:
            customer.tenure = int(tenure)
            low, high = INTENT_TENURE_BAND
            if low <= customer.tenure <= high:
                intent_score += self.TENURE_STANDARD
                factors.append("Tenure within standard range")
            else:
                intent_score += self.TENURE_NON_STANDARD
                factors.append("Non-standard tenure requested")
            journal.log(self.name, "CAPTURED", f"Tenure: {customer.tenure} months")

        if purpose:
            customer.purpose = purpose
            if purpose in LOW_RISK_PURPOSES:
                intent_score += self.PURPOSE_LOW_RISK
                factors.append("Low-risk loan purpose")
            elif purpose in MEDIUM_RISK_PURPOSES:
                intent_score += self.PURPOSE_STANDARD
                factors.append("Standard loan purpose")
            else:
                intent_score += self.PURPOSE_OTHER
                factors.append("Purpose noted")
            journal.log(self.name, "CAPTURED", f"Purpose: {purpose.replace('_', ' ')}")

        if employment_type:
            customer.employment_type = employment_type
            intent_score += self._employment_score(employment_type, factors)
            journal.log(self.name, "CAPTURED", f"Employment: {employment_type}")

        if income_range:
            customer.monthly_income = self.parse_income_range(income_range)
            intent_score += self.INCOME_RANGE_PROVIDED
            factors.append("Income range provided")
            journal.log(self.name, "CAPTURED", f"Income Range: {income_range}")

        previous = state.confidence.raw(Dimension.INTENT)
        current = state.confidence.add(Dimension.INTENT, intent_score)
        journal.log(
            self.name,
            "CONFIDENCE_UPDATE",
            f"Intent Confidence: +{current - previous}% → {current}%",
            "; ".join(factors),
        )

        if current >= STEP_COMPLETION_INTENT:
            state.mark_completed(Step.SALES, "Intent capture complete - sufficient data collected")

        self.master_agent.orchestrate(state)

        return {
            "intent_confidence": current,
            "factors": factors,
        }

    def _employment_score(self, employment_type: str, factors: list) -> int:
        key = employment_type.strip().lower().replace("_", "-")
        if key == "salaried":
            factors.append("Salaried employment - stable income expected")
        elif key == "self-employed":
            factors.append("Self-employed - income verification important")
        elif key == "business":
            factors.append("Business owner - additional documentation may be required")
        else:
            # Unrecognised categories fall to the lowest employment band
            factors.append("Employment type noted")
            return min(EMPLOYMENT_SCORES.values())
        return EMPLOYMENT_SCORES[key]

    def parse_income_range(self, income_range: str) -> float:
        """Representative monthly income for a declared bracket."""
        return INCOME_RANGES.get(income_range, DEFAULT_MONTHLY_INCOME)
