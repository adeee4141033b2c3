"""External signal provider: mock bureau lookups and synthetic verification data.

Agents never draw random numbers themselves. They ask a provider, so tests
can swap in a deterministic fake.
"""
from __future__ import annotations

import logging
import string
from typing import Optional, Protocol, Sequence, TypeVar

import numpy as np

from utils.config import (
    ADDRESS_CITIES,
    ADDRESS_STATES,
    ADDRESS_STREETS,
    EMPLOYERS_BY_SALARY,
    MOCK_CUSTOMERS,
    SYNTHETIC_DOB,
    SYNTHETIC_EMPLOYERS,
    SYNTHETIC_NAMES,
)
from utils.state import Address, CustomerProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SignalProvider(Protocol):
    def draw(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both inclusive."""
        ...

    def lookup_profile(self, pan: str) -> Optional[CustomerProfile]:
        ...

    def synthesize_profile(self, pan: str) -> CustomerProfile:
        ...

    def generate_pan(self) -> str:
        ...

    def generate_address(self) -> Address:
        ...

    def employer_for_salary(self, gross_salary: float) -> str:
        ...


def profile_from_registry(pan: str) -> Optional[CustomerProfile]:
    record = MOCK_CUSTOMERS.get(pan)
    if record is None:
        return None
    return CustomerProfile(pan=pan, **record)


class RandomSignalProvider:
    """Default provider backed by a numpy random generator."""

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def draw(self, low: int, high: int) -> int:
        return int(self.rng.integers(low, high, endpoint=True))

    def _choice(self, options: Sequence[T]) -> T:
        return options[int(self.rng.integers(0, len(options)))]

    def lookup_profile(self, pan: str) -> Optional[CustomerProfile]:
        profile = profile_from_registry(pan)
        if profile:
            logger.info(f"Registry hit for PAN {pan}")
        return profile

    def synthesize_profile(self, pan: str) -> CustomerProfile:
        return CustomerProfile(
            name=self._choice(SYNTHETIC_NAMES),
            pan=pan,
            dob=SYNTHETIC_DOB,
            credit_score=self.draw(650, 850),
            existing_loans=self.draw(0, 2),
            monthly_income=self.draw(40000, 140000),
            employer=self._choice(SYNTHETIC_EMPLOYERS),
            employment_years=self.draw(1, 10),
        )

    def generate_pan(self) -> str:
        # 5 letters, 4 digits, 1 letter
        letters = string.ascii_uppercase
        head = "".join(self._choice(letters) for _ in range(5))
        digits = "".join(self._choice(string.digits) for _ in range(4))
        return f"{head}{digits}{self._choice(letters)}"

    def generate_address(self) -> Address:
        index = int(self.rng.integers(0, len(ADDRESS_CITIES)))
        return Address(
            line1=f"{self.draw(1, 500)}, {self._choice(ADDRESS_STREETS)}",
            city=ADDRESS_CITIES[index],
            state=ADDRESS_STATES[index],
            pincode=str(self.draw(100000, 999999)),
        )

    def employer_for_salary(self, gross_salary: float) -> str:
        if gross_salary > 100000:
            return self._choice(EMPLOYERS_BY_SALARY["large"])
        if gross_salary > 50000:
            return self._choice(EMPLOYERS_BY_SALARY["medium"])
        return self._choice(EMPLOYERS_BY_SALARY["small"])
