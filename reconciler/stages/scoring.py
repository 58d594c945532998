"""Re-ranking and global modifier stages.

These stages have no recall of their own. The re-ranking stages score the
pool handed to them by a composite stage and return nothing at the top level
of the pipeline; the length stage emits one global modifier.
"""

import math

from reconciler.identity.schemas import Identity, StageResult
from reconciler.stages.base import CandidatePool, Stage

ENTITY_TYPE_DISCOUNT = -50.0
LENGTH_DIFFERENCE_FACTOR = -4.0
DEGREE_FACTOR = 5.0


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


class EntityTypeFilterStage(Stage):
    """Discount candidates whose entity type contradicts the query's.

    No opinion (0) when either side does not declare a type.
    """

    stage_name = "entity_type_filter"

    def __init__(self, discount: float = ENTITY_TYPE_DISCOUNT):
        self._discount = float(discount)

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        if pool is None:
            return []

        results = []
        for candidate in pool:
            strength = 0.0
            if (
                query.entity_type is not None
                and candidate.entity_type is not None
                and query.entity_type != candidate.entity_type
            ):
                strength = self._discount
            results.append(StageResult(candidate=candidate, strength=strength))
        return results


class OriginalLengthStage(Stage):
    """Global bonus growing with the length of the query's name entry.

    Longer names carry more evidence, so every candidate found for them is
    lifted by ln(len(name)). Length counts characters, not encoded bytes, so
    diacritics weigh the same as plain letters.
    """

    stage_name = "original_length"

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        length = len(query.name_entry)
        if length == 0:
            return []
        return [StageResult(candidate=None, strength=math.log(length))]


class OriginalLengthDifferenceStage(Stage):
    """Penalize candidates whose name length differs from the query's.

    Lengths count characters, as in OriginalLengthStage.
    """

    stage_name = "original_length_difference"

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        if pool is None:
            return []

        query_length = len(query.name_entry)
        results = []
        for candidate in pool:
            diff = abs(query_length - len(candidate.name_entry))
            strength = LENGTH_DIFFERENCE_FACTOR * math.log(diff) if diff > 0 else 0.0
            results.append(StageResult(candidate=candidate, strength=strength))
        return results


class DegreeBonusStage(Stage):
    """Favor well-connected candidates: 5 * ln(relation count)."""

    stage_name = "degree_bonus"

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        if pool is None:
            return []

        results = []
        for candidate in pool:
            degree = candidate.relation_count
            strength = 0.0
            if degree is not None and degree > 0:
                strength = _finite_or_zero(DEGREE_FACTOR * math.log(degree))
            results.append(StageResult(candidate=candidate, strength=strength))
        return results
