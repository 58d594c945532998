"""Base types for reconciliation stages.

A stage scores candidates against the query identity. Stages either build
their own candidate pool (index searches, exact-link lookups) or re-rank a
pool handed to them by a composite stage. This module also defines the
collaborator protocols the pool-building stages depend on.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from reconciler.identity.schemas import CandidateRecord, EntityType, Identity, StageResult

if TYPE_CHECKING:
    from reconciler.repositories.identity_repo import IdentityFields
    from reconciler.search.index_client import IndexHit

CandidatePool = list[CandidateRecord]


@runtime_checkable
class SearchIndex(Protocol):
    """Full-text index over published identities."""

    async def search(
        self,
        query_string: str,
        *,
        entity_type: EntityType | None = None,
        limit: int = ...,
        field: str = ...,
        operator: str | None = None,
        minimum_should_match: str | None = None,
        field_filters: dict[str, str] | None = None,
        include_degree: bool = False,
    ) -> list["IndexHit"]:
        """Return hits in relevance order."""
        ...


@runtime_checkable
class IdentityStore(Protocol):
    """Durable store of published identities."""

    async def lookup_by_alternate_id(self, uri: str) -> list[str]:
        """Return store ids of identities declaring the alternate id."""
        ...

    async def read_by_id(
        self, identity_id: str, fields: "IdentityFields" = ...
    ) -> CandidateRecord | None:
        """Read one identity, hydrating only the requested fields."""
        ...


class Stage(ABC):
    """Abstract base class for reconciliation stages.

    Subclasses set ``stage_name`` (the feature-vector key) and implement
    ``run``. Stages must never raise for collaborator failures or bad input:
    they return an empty list so the rest of the pipeline still counts.
    """

    stage_name: str = ""

    @property
    def name(self) -> str:
        """Key under which this stage's strengths appear in feature vectors."""
        return self.stage_name

    @abstractmethod
    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        """Score candidates against the query identity.

        Args:
            query: Identity being reconciled
            pool: Candidates produced by an upstream stage, or None when the
                stage runs at the top level of the pipeline

        Returns:
            Stage results; a result without a candidate is a global modifier
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
