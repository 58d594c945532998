"""Weighting functions: reduce a feature vector to one score."""

import math
from typing import Protocol, runtime_checkable

from reconciler.errors import StageConfigurationError
from reconciler.identity.schemas import FeatureVector
from reconciler.stages.exact_link import EXACT_LINK_STRENGTH, ExactLinkStage


@runtime_checkable
class WeightingFunction(Protocol):
    """Scores one candidate from its stage strengths."""

    def compute(self, vector: FeatureVector) -> float:
        """Return the candidate's score."""
        ...


class SumWeighting:
    """Every stage counts equally: score is the sum of the vector."""

    def compute(self, vector: FeatureVector) -> float:
        return math.fsum(vector.values())


class ExactLinkOverrideWeighting(SumWeighting):
    """Sum, except an exact alternate-identifier match decides on its own.

    If the exact-link stage reported its maximal strength the score is that
    strength, whatever the other stages say.
    """

    def __init__(
        self,
        key: str = ExactLinkStage.stage_name,
        value: float = EXACT_LINK_STRENGTH,
    ):
        self._key = key
        self._value = float(value)

    def compute(self, vector: FeatureVector) -> float:
        if vector.get(self._key) == self._value:
            return self._value
        return super().compute(vector)


WEIGHTINGS: dict[str, type[SumWeighting]] = {
    "sum": SumWeighting,
    "exact_link_override": ExactLinkOverrideWeighting,
}


def get_weighting(name: str) -> WeightingFunction:
    """Build a weighting function by configuration name.

    Raises:
        StageConfigurationError: If the name is unknown
    """
    try:
        return WEIGHTINGS[name]()
    except KeyError:
        known = ", ".join(sorted(WEIGHTINGS))
        raise StageConfigurationError(
            f"Unknown weighting '{name}'. Known weightings: {known}"
        ) from None
