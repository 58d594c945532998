"""ReconciliationEngine orchestrates staged identity reconciliation.

Pipeline per call:
1. Run every configured stage concurrently against the query identity
2. Collate stage results into one feature vector per candidate
3. Score each vector with the weighting function
4. Sort by score (stable, so ties keep first-seen order)
5. Keep the top ``num_results``

The engine only holds configuration. Everything computed for a call lives in
the returned ReconciliationRun, so one engine can serve concurrent calls.
"""

import asyncio
import math

import structlog
from pydantic import BaseModel, Field

from reconciler.errors import StageConfigurationError
from reconciler.identity.schemas import (
    CandidateRecord,
    FeatureVector,
    Identity,
    ScoredCandidate,
    StageResult,
)
from reconciler.stages.base import Stage
from reconciler.stages.registry import StageRegistry, default_registry
from reconciler.weights import SumWeighting, WeightingFunction

logger = structlog.get_logger()

DEFAULT_NUM_RESULTS = 25


class ReconciliationRun(BaseModel):
    """Outcome of one reconcile call.

    Results are already sorted by descending score and capped at the
    engine's result limit.
    """

    query: Identity = Field(description="Identity that was reconciled")
    raw_results: dict[str, list[StageResult]] = Field(
        default_factory=dict, description="Stage name -> results as reported"
    )
    results: list[ScoredCandidate] = Field(default_factory=list)
    total_candidates: int = Field(
        default=0, description="Distinct candidates before the result cap"
    )

    def get_results(self) -> list[ScoredCandidate]:
        """Ranked candidates, best first."""
        return list(self.results)

    def top_result(self) -> CandidateRecord | None:
        """Best candidate, or None when nothing matched."""
        return self.results[0].candidate if self.results else None

    def top_vector(self) -> FeatureVector | None:
        """Feature vector of the best candidate."""
        return self.results[0].vector if self.results else None

    def top_value(self) -> float:
        """Score of the best candidate, 0 when nothing matched."""
        return self.results[0].score if self.results else 0.0


def collate(raw_results: dict[str, list[StageResult]]) -> list[ScoredCandidate]:
    """Build one feature vector per distinct candidate.

    Candidates appear in first-seen order (stage order, then result order).
    A stage reporting the same candidate twice keeps its last strength.
    Global modifiers are written into every vector built from the scoped
    results; they never create a vector of their own.

    Args:
        raw_results: Stage name -> stage results, in configured stage order

    Returns:
        Unscored candidates with their vectors
    """
    scored: dict[str, ScoredCandidate] = {}
    global_strengths: FeatureVector = {}

    for stage_name, results in raw_results.items():
        for result in results:
            if result.candidate is None:
                global_strengths[stage_name] = result.strength
                continue
            key = result.candidate.unique_id()
            entry = scored.get(key)
            if entry is None:
                entry = scored[key] = ScoredCandidate(candidate=result.candidate)
            entry.vector[stage_name] = result.strength

    for entry in scored.values():
        entry.vector.update(global_strengths)

    return list(scored.values())


def _sort_key(candidate: ScoredCandidate) -> float:
    return candidate.score if not math.isnan(candidate.score) else -math.inf


class ReconciliationEngine:
    """Runs a configurable pipeline of stages and ranks the candidates.

    Usage:
        engine = ReconciliationEngine(default_registry(search_index, store))
        engine.add_stage("index_preferred_name")
        engine.add_stage("original_length")
        engine.add_stage("composite", "index_preferred_name", "degree_bonus")
        run = await engine.reconcile(Identity(name_entry="George Washington"))
        best = run.top_result()
    """

    def __init__(
        self,
        registry: StageRegistry | None = None,
        weighting: WeightingFunction | None = None,
        num_results: int = DEFAULT_NUM_RESULTS,
        timeout: float | None = None,
    ):
        """Initialize engine with an empty pipeline.

        Args:
            registry: Stage registry used by add_stage. Defaults to the
                built-in stages without collaborators.
            weighting: Weighting function (default: sum of the vector)
            num_results: Maximum candidates kept per call
            timeout: Default deadline in seconds for one reconcile call

        Raises:
            StageConfigurationError: If num_results or timeout is not positive
        """
        if num_results < 1:
            raise StageConfigurationError(
                f"num_results must be positive, got {num_results}"
            )
        if timeout is not None and timeout <= 0:
            raise StageConfigurationError(f"timeout must be positive, got {timeout}")
        self._registry = registry or default_registry()
        self._weighting = weighting or SumWeighting()
        self._num_results = num_results
        self._timeout = timeout
        self._stages: list[Stage] = []

    @property
    def stages(self) -> tuple[Stage, ...]:
        return tuple(self._stages)

    @property
    def weighting(self) -> WeightingFunction:
        return self._weighting

    @property
    def num_results(self) -> int:
        return self._num_results

    def add_stage(self, name: str, *args, **kwargs) -> Stage:
        """Append a stage built from the registry.

        Args:
            name: Registered stage name
            *args: Constructor arguments (sub-stage names for "composite")
            **kwargs: Keyword constructor arguments

        Returns:
            The configured stage

        Raises:
            StageConfigurationError: Unknown name, bad arguments, or a stage
                with the same feature name is already configured
        """
        return self.add(self._registry.create(name, *args, **kwargs))

    def add(self, stage: Stage) -> Stage:
        """Append an already-built stage.

        Raises:
            StageConfigurationError: If a stage with the same name is configured
        """
        if any(existing.name == stage.name for existing in self._stages):
            raise StageConfigurationError(
                f"Stage '{stage.name}' is already configured"
            )
        self._stages.append(stage)
        return stage

    async def reconcile(
        self,
        query: Identity,
        *,
        timeout: float | None = None,
    ) -> ReconciliationRun:
        """Reconcile a query identity against every configured stage.

        Never raises for collaborator failures or unusable input: stages that
        fail or miss the deadline simply contribute nothing.

        Args:
            query: Identity to reconcile
            timeout: Deadline in seconds for the whole call. Defaults to the
                engine's timeout (no deadline if neither is set).

        Returns:
            ReconciliationRun with ranked candidates
        """
        timeout = timeout if timeout is not None else self._timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None

        stage_results = await asyncio.gather(
            *(self._run_stage(stage, query, deadline) for stage in self._stages)
        )
        raw_results = {
            stage.name: results
            for stage, results in zip(self._stages, stage_results, strict=True)
        }

        candidates = collate(raw_results)
        for candidate in candidates:
            candidate.score = self._weighting.compute(candidate.vector)
        ranked = sorted(candidates, key=_sort_key, reverse=True)

        run = ReconciliationRun(
            query=query,
            raw_results=raw_results,
            results=ranked[: self._num_results],
            total_candidates=len(ranked),
        )
        logger.info(
            "reconciliation completed",
            query=query.name_entry,
            stages=len(self._stages),
            candidates=run.total_candidates,
            top_value=run.top_value(),
        )
        return run

    async def _run_stage(
        self,
        stage: Stage,
        query: Identity,
        deadline: float | None,
    ) -> list[StageResult]:
        """Run one stage, absorbing failures and deadline overruns."""
        try:
            async with asyncio.timeout_at(deadline):
                results = await stage.run(query, None)
        except TimeoutError:
            logger.warning("stage timed out", stage=stage.name)
            return []
        except Exception as e:
            logger.error(
                "stage failed",
                stage=stage.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []
        return list(results or [])
