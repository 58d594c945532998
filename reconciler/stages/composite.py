"""Composite stage: chain sub-stages so each re-ranks the previous one's pool."""

from reconciler.identity.schemas import Identity, StageResult
from reconciler.stages.base import CandidatePool, Stage


class CompositeStage(Stage):
    """Run sub-stages in order, feeding each the previous stage's candidates.

    Only candidate identity flows between sub-stages; intermediate strengths
    are dropped. The last sub-stage's results are the composite's results.
    Typical use: a broad index search feeding a re-ranking stage that has no
    recall of its own.
    """

    def __init__(self, *stages: Stage):
        if not stages:
            raise ValueError("CompositeStage needs at least one sub-stage")
        self._stages = tuple(stages)

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    @property
    def name(self) -> str:
        return ":".join(["composite", *(stage.name for stage in self._stages)])

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        next_pool = pool
        results: list[StageResult] = []
        for stage in self._stages:
            results = await stage.run(query, next_pool)
            next_pool = [r.candidate for r in results if r.candidate is not None]
        return results
