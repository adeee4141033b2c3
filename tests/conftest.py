from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from agents.session_controller import SessionController
from utils.signals import profile_from_registry
from utils.state import Address, CustomerProfile

# Session ids whose timestamp component maps to a known OCR seed
SEED_92_SESSION = "LOAN-2K-TEST1"  # int("2K", 36) % 100 == 92
SEED_0_SESSION = "LOAN-2S-TEST0"   # int("2S", 36) % 100 == 0
SEED_50_SESSION = "LOAN-1E-TEST5"  # int("1E", 36) % 100 == 50


class FakeSignalProvider:
    """Deterministic stand-in for the random signal provider."""

    def __init__(
        self,
        mode: str = "low",
        credit_score: int = 760,
        monthly_income: float = 90000,
        pan: str = "FAKEP1234Z",
    ) -> None:
        self.mode = mode
        self.credit_score = credit_score
        self.monthly_income = monthly_income
        self.pan = pan
        self.draws: List[Tuple[int, int]] = []

    def draw(self, low: int, high: int) -> int:
        self.draws.append((low, high))
        return low if self.mode == "low" else high

    def lookup_profile(self, pan: str) -> Optional[CustomerProfile]:
        return profile_from_registry(pan)

    def synthesize_profile(self, pan: str) -> CustomerProfile:
        return CustomerProfile(
            name="Test Applicant",
            pan=pan,
            dob="1992-07-20",
            credit_score=self.credit_score,
            existing_loans=0,
            monthly_income=self.monthly_income,
            employer="Acme Corp",
            employment_years=4,
        )

    def generate_pan(self) -> str:
        return self.pan

    def generate_address(self) -> Address:
        return Address(line1="1, MG Road", city="Pune", state="Maharashtra", pincode="411001")

    def employer_for_salary(self, gross_salary: float) -> str:
        return "Acme Corp"


@pytest.fixture()
def fake_signals() -> FakeSignalProvider:
    return FakeSignalProvider()


@pytest.fixture()
def controller(fake_signals: FakeSignalProvider) -> SessionController:
    return SessionController(signal_provider=fake_signals)


@pytest.fixture()
def high_controller() -> SessionController:
    """Controller whose provider always returns the top of every band."""
    return SessionController(signal_provider=FakeSignalProvider(mode="high"))


def submit_full_intent(controller: SessionController) -> dict:
    return controller.submit_intent(
        loan_amount=1000000,
        tenure=36,
        purpose="education",
        employment_type="salaried",
        income_range="50000-100000",
    )
