"""Confidence model: four capped, weighted dimensions folded into an overall score."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Union

from utils.config import CONFIDENCE_CAPS, CONFIDENCE_WEIGHTS, MASTER_AGENT_NAME, STAGNATION_MAX_ATTEMPTS

if TYPE_CHECKING:
    from utils.activity_log import ActivityJournal

logger = logging.getLogger(__name__)


class Dimension(Enum):
    # Declaration order is the tie-break order for the weakest dimension
    INTENT = "intent"
    IDENTITY = "identity"
    INCOME = "income"
    CREDIT = "credit"


DimensionKey = Union[Dimension, str]


@dataclass(frozen=True)
class ConfidenceVector:
    """Read-only view of the confidence scores at one point in time."""

    intent: int = 0
    identity: int = 0
    income: int = 0
    credit: int = 0
    overall: int = 0

    def get(self, dimension: DimensionKey) -> int:
        return getattr(self, Dimension(dimension).value)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def weighted_overall(values: Dict[str, int]) -> int:
    """Cap each dimension, take the weighted sum and round half up.

    Weights are applied as integer percentages so the rounding boundary is
    exact (e.g. 88.5 always rounds to 89).
    """
    total = 0
    for name, weight in CONFIDENCE_WEIGHTS.items():
        capped = min(int(values.get(name, 0)), CONFIDENCE_CAPS[name])
        total += capped * int(round(weight * 100))
    return (total + 50) // 100


class ConfidenceModel:
    """Holds the raw dimension scores and the derived overall score.

    Writes clamp at the dimension cap. The cap is applied again whenever the
    overall score is computed and whenever a vector is read out.
    """

    def __init__(self) -> None:
        self._raw: Dict[str, int] = {d.value: 0 for d in Dimension}
        self.overall = 0
        self.stagnant_cycles = 0
        self._last_overall = 0

    def raw(self, dimension: DimensionKey) -> int:
        return self._raw[Dimension(dimension).value]

    def capped(self, dimension: DimensionKey) -> int:
        name = Dimension(dimension).value
        return min(self._raw[name], CONFIDENCE_CAPS[name])

    def add(self, dimension: DimensionKey, delta: int) -> int:
        """Add a delta and clamp the running value at the dimension cap."""
        name = Dimension(dimension).value
        self._raw[name] = min(CONFIDENCE_CAPS[name], self._raw[name] + int(delta))
        return self._raw[name]

    def raise_to(self, dimension: DimensionKey, candidate: int) -> int:
        """Keep the larger of the current value and the candidate; never regresses."""
        name = Dimension(dimension).value
        self._raw[name] = min(CONFIDENCE_CAPS[name], max(self._raw[name], int(candidate)))
        return self._raw[name]

    def overwrite(self, dimension: DimensionKey, value: int) -> int:
        """Replace the value outright (clamped to the cap), even if it is lower."""
        name = Dimension(dimension).value
        self._raw[name] = min(CONFIDENCE_CAPS[name], int(value))
        return self._raw[name]

    def recompute_overall(self, journal: Optional[ActivityJournal] = None) -> int:
        self.overall = weighted_overall(self._raw)

        if self.overall == self._last_overall:
            self.stagnant_cycles += 1
            if self.stagnant_cycles >= STAGNATION_MAX_ATTEMPTS and journal is not None:
                journal.log(
                    MASTER_AGENT_NAME,
                    "FALLBACK_AWARE",
                    f"Confidence stagnant at {self.overall}% for {self.stagnant_cycles} attempts",
                    "Manual review fallback available if needed",
                )
        else:
            self.stagnant_cycles = 0
            self._last_overall = self.overall

        return self.overall

    def vector(self) -> ConfidenceVector:
        return ConfidenceVector(
            intent=self.capped(Dimension.INTENT),
            identity=self.capped(Dimension.IDENTITY),
            income=self.capped(Dimension.INCOME),
            credit=self.capped(Dimension.CREDIT),
            overall=self.overall,
        )
