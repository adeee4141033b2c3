"""Verification agent: KYC by manual PAN upload or DigiLocker OAuth, plus credit scoring."""
import logging
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from agents.master_agent import MasterAgent
from utils.config import CREDIT_BANDS, RISK_FACTORS
from utils.confidence import Dimension
from utils.signals import SignalProvider
from utils.state import CustomerProfile, SessionState, Step

logger = logging.getLogger(__name__)


class VerificationAgent:

    def __init__(self, master_agent: MasterAgent, signals: SignalProvider):
        self.name = Step.VERIFICATION.value
        self.master_agent = master_agent
        self.signals = signals

        # Identity confidence bands, inclusive
        self.MANUAL_IDENTITY_BAND = (85, 94)
        self.DIGILOCKER_IDENTITY_BAND = (94, 98)

    def verify_pan(self, state: SessionState, pan_number: Optional[str] = None) -> Dict[str, Any]:
        """Manual document path: look up (or synthesise) the profile behind a PAN."""
        journal = state.journal
        journal.log(self.name, "TRIGGERED", "Initiating PAN/KYC verification")
        state.active_agent = self.name
        journal.log(self.name, "API_CALL", "Connecting to NSDL/UIDAI verification service...")

        pan = pan_number.upper().strip() if pan_number and pan_number.strip() else self.signals.generate_pan()
        profile = self.signals.lookup_profile(pan) or self.signals.synthesize_profile(pan)
        profile = replace(profile, kyc_method="Manual upload")

        self._record_profile(state, profile, method="Manual upload")
        journal.log(self.name, "VERIFIED", f"PAN: {pan} - {profile.name}", "KYC verification successful")

        identity = state.confidence.overwrite(Dimension.IDENTITY, self.signals.draw(*self.MANUAL_IDENTITY_BAND))
        journal.log(
            self.name,
            "CONFIDENCE_UPDATE",
            f"Identity Confidence: → {identity}%",
            "KYC verification complete (1% residual fraud risk retained)",
        )

        self._apply_profile_credit(state, profile)
        state.mark_completed(Step.VERIFICATION, "Identity verification complete")
        self.master_agent.orchestrate(state)

        return {"verified": True, "profile": asdict(profile)}

    def verify_via_digilocker(self, state: SessionState) -> Dict[str, Any]:
        """Federated path: the PAN and address arrive from the OAuth provider."""
        journal = state.journal
        journal.log(self.name, "TRIGGERED", "Initiating DigiLocker OAuth verification")
        state.active_agent = self.name
        journal.log(self.name, "OAUTH_INIT", "Connecting to DigiLocker OAuth service...")

        pan = self.signals.generate_pan()
        profile = self.signals.lookup_profile(pan) or self.signals.synthesize_profile(pan)
        profile = replace(profile, address=self.signals.generate_address(), kyc_method="DigiLocker")

        self._record_profile(state, profile, method="DigiLocker OAuth")
        journal.log(
            self.name,
            "OAUTH_SUCCESS",
            "DigiLocker authentication successful",
            "User authorized data sharing via secure OAuth 2.0 flow",
        )
        journal.log(
            self.name,
            "DIGILOCKER_VERIFIED",
            f"PAN: {pan} | Name: {profile.name} | DOB: {profile.dob}",
            f"Address verified: {profile.address.city}, {profile.address.state}",
        )

        identity = state.confidence.overwrite(Dimension.IDENTITY, self.signals.draw(*self.DIGILOCKER_IDENTITY_BAND))
        journal.log(
            self.name,
            "CONFIDENCE_UPDATE",
            f"Identity Confidence: → {identity}%",
            "DigiLocker OAuth verification provides higher confidence than manual upload",
        )

        self._apply_profile_credit(state, profile)
        state.mark_completed(Step.VERIFICATION, "DigiLocker KYC verification complete")
        self.master_agent.orchestrate(state)

        return {"verified": True, "profile": asdict(profile), "method": "DigiLocker"}

    def process_credit_score(self, state: SessionState, score: int) -> int:
        """Map a bureau score to a category and a credit confidence value."""
        risk = state.risk
        for floor, category, low, high in CREDIT_BANDS:
            if score >= floor:
                break

        if category in ("EXCELLENT", "VERY_GOOD"):
            risk.drop_factors_containing("credit")
        elif category == "FAIR":
            risk.add_factor(RISK_FACTORS["fair_credit"])
        elif category == "POOR":
            risk.add_factor(RISK_FACTORS["low_credit"])

        confidence = state.confidence.overwrite(Dimension.CREDIT, self.signals.draw(low, high))
        state.verified_data.credit_score_category = category

        state.journal.log(
            self.name,
            "CREDIT_SCORE",
            f"Credit Score: {score} ({category})",
            f"Credit Confidence: {confidence}% (model uncertainty: {100 - confidence}%)",
        )
        return confidence

    def _record_profile(self, state: SessionState, profile: CustomerProfile, method: str) -> None:
        verified = state.verified_data
        if verified.customer_profile is not None:
            # Later verification replaces the earlier profile
            state.journal.log(
                self.name,
                "REVERIFIED",
                f"Replacing profile for PAN {verified.customer_profile.pan}",
                f"New KYC method: {method}",
            )

        verified.pan_verified = True
        verified.customer_profile = profile
        state.customer_data.pan_number = profile.pan
        state.customer_data.name = profile.name

        pan_doc = state.documents["pan"]
        pan_doc.uploaded = True
        pan_doc.method = method
        pan_doc.timestamp = datetime.now(timezone.utc).isoformat()

    def _apply_profile_credit(self, state: SessionState, profile: CustomerProfile) -> None:
        if profile.credit_score:
            state.verified_data.credit_score = profile.credit_score
            self.process_credit_score(state, profile.credit_score)
