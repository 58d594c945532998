"""Index-backed stages: recall candidates from the search index.

Each stage sends one query to the index and reports the index's own
relevance score as its strength. The stages differ only in which string
they search for and how strictly tokens must match.
"""

import structlog

from reconciler.errors import CollaboratorUnavailableError
from reconciler.identity.schemas import Identity, StageResult
from reconciler.search.index_client import DEFAULT_FIELD, DEFAULT_RESULT_LIMIT
from reconciler.stages.base import CandidatePool, SearchIndex, Stage

logger = structlog.get_logger()


class IndexSearchStage(Stage):
    """Base class for stages that build their pool from the search index.

    The upstream pool is ignored: these stages always produce their own.
    """

    operator: str | None = None
    minimum_should_match: str | None = None
    include_degree: bool = False
    restrict_entity_type: bool = False

    def __init__(
        self,
        search_index: SearchIndex,
        *,
        operator: str | None = None,
        minimum_should_match: str | None = None,
        result_limit: int = DEFAULT_RESULT_LIMIT,
        field: str = DEFAULT_FIELD,
    ):
        """Initialize stage with its index and match settings.

        Args:
            search_index: Index client used for recall
            operator: Override the stage's token operator
            minimum_should_match: Override the stage's token match share
            result_limit: Maximum hits to request
            field: Indexed field to match against
        """
        if result_limit < 1:
            raise ValueError(f"result_limit must be positive, got {result_limit}")
        self._index = search_index
        self._operator = operator if operator is not None else self.operator
        self._minimum_should_match = (
            minimum_should_match
            if minimum_should_match is not None
            else self.minimum_should_match
        )
        self._limit = result_limit
        self._field = field

    def search_string(self, query: Identity) -> str:
        """String sent to the index for this query."""
        return query.name_only

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        search_string = self.search_string(query).strip()
        if not search_string:
            return []

        try:
            hits = await self._index.search(
                search_string,
                entity_type=query.entity_type if self.restrict_entity_type else None,
                limit=self._limit,
                field=self._field,
                operator=self._operator,
                minimum_should_match=self._minimum_should_match,
                include_degree=self.include_degree,
            )
        except CollaboratorUnavailableError as e:
            logger.warning(
                "index stage skipped",
                stage=self.name,
                query=search_string,
                error=str(e),
            )
            return []

        return [
            StageResult(candidate=hit.to_candidate(), strength=hit.score)
            for hit in hits
        ]


class OriginalNameSearchStage(IndexSearchStage):
    """All tokens of the name entry as written."""

    stage_name = "index_original_name"
    operator = "and"

    def search_string(self, query: Identity) -> str:
        return query.name_entry


class PreferredNameSearchStage(IndexSearchStage):
    """All tokens of the parsed name, without dates or qualifiers."""

    stage_name = "index_preferred_name"
    operator = "and"


class FuzzyNameSearchStage(IndexSearchStage):
    """Parsed name with only three quarters of the tokens required.

    Recalls near misses (typos, missing middle names) the strict searches drop.
    """

    stage_name = "index_fuzzy"
    minimum_should_match = "75%"


class CompleteSearchStage(IndexSearchStage):
    """Short, degree-boosted search restricted to the query's entity type."""

    stage_name = "index_complete"
    operator = "and"
    include_degree = True
    restrict_entity_type = True

    def __init__(self, search_index: SearchIndex, **kwargs):
        kwargs.setdefault("result_limit", 10)
        super().__init__(search_index, **kwargs)
