"""Session facade: the only entry point the API layer talks to."""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from agents.master_agent import MasterAgent
from agents.sales_agent import SalesAgent
from agents.sanction_agent import SanctionAgent, SanctionLetter
from agents.underwriting_agent import UnderwritingAgent
from agents.verification_agent import VerificationAgent
from utils.config import MASTER_AGENT_NAME, SYSTEM_NAME
from utils.signals import RandomSignalProvider, SignalProvider
from utils.state import DecisionState, SessionState

logger = logging.getLogger(__name__)


class SessionController:
    """Owns one loan application session and runs each step atomically.

    Every public method holds the session lock, so overlapping requests are
    queued rather than interleaved and the master agent always sees a fully
    updated confidence vector.
    """

    def __init__(self, signal_provider: Optional[SignalProvider] = None) -> None:
        self.signals = signal_provider or RandomSignalProvider()
        self.master_agent = MasterAgent()
        self.sales_agent = SalesAgent(self.master_agent)
        self.verification_agent = VerificationAgent(self.master_agent, self.signals)
        self.underwriting_agent = UnderwritingAgent(self.master_agent, self.verification_agent, self.signals)
        self.sanction_agent = SanctionAgent()
        self._lock = threading.RLock()

        self.state = SessionState()
        self.state.journal.log(SYSTEM_NAME, "INIT", f"Session started: {self.state.session_id}")
        self.state.journal.log(
            MASTER_AGENT_NAME, "READY", "Agentic loan decisioning system initialized", "Awaiting customer input"
        )

    def submit_intent(
        self,
        loan_amount: Optional[float] = None,
        tenure: Optional[int] = None,
        purpose: Optional[str] = None,
        employment_type: Optional[str] = None,
        income_range: Optional[str] = None,
    ) -> Dict[str, Any]:
        with self._lock:
            return self.sales_agent.process_intent(
                self.state, loan_amount, tenure, purpose, employment_type, income_range
            )

    def verify_identity_manual(self, pan_number: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            return self.verification_agent.verify_pan(self.state, pan_number)

    def verify_identity_federated(self) -> Dict[str, Any]:
        with self._lock:
            return self.verification_agent.verify_via_digilocker(self.state)

    def run_underwriting(self) -> Dict[str, Any]:
        with self._lock:
            return self.underwriting_agent.evaluate_credit(self.state)

    def submit_salary_slip(self, filename: str = "salary_slip.pdf") -> Dict[str, Any]:
        with self._lock:
            return self.underwriting_agent.verify_salary_slip(self.state, filename)

    def can_generate_sanction(self) -> bool:
        with self._lock:
            return self.sanction_agent.can_generate(self.state)

    def generate_sanction(self) -> Optional[SanctionLetter]:
        with self._lock:
            return self.sanction_agent.generate(self.state)

    def get_snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return self.state.snapshot()

    def get_activity_log(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self.state.journal.to_list()

    def get_rejection_explanation(self) -> str:
        with self._lock:
            return self.master_agent.rejection_explanation(self.state)

    def is_rejected(self) -> bool:
        with self._lock:
            return self.state.decision_state == DecisionState.REJECTED

    def reset_session(self) -> None:
        """Discard the session entirely and start a new one with a fresh id."""
        with self._lock:
            previous_id = self.state.session_id
            self.state = SessionState()
            self.state.journal.log(SYSTEM_NAME, "RESET", "Session reset - new loan application started")
            logger.info(f"Session {previous_id} replaced by {self.state.session_id}")
