"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from reconciler.identity.schemas import (
    CandidateRecord,
    EntityType,
    Identity,
    StageResult,
)
from reconciler.search.index_client import IndexHit, SearchIndexClient
from reconciler.stages.base import CandidatePool, Stage


class StaticStage(Stage):
    """Stage returning canned results.

    Records every pool it was called with so tests can check chaining.
    """

    def __init__(
        self,
        name: str,
        results: list[StageResult] | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        self.stage_name = name
        self._results = results or []
        self._delay = delay
        self._error = error
        self.calls: list[CandidatePool | None] = []

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        self.calls.append(pool)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return list(self._results)


@pytest.fixture
def make_candidate() -> Callable[..., CandidateRecord]:
    """Factory for candidate records."""

    def _make(
        identity_id: str | None,
        name: str = "",
        entity_type: EntityType | None = None,
        relation_count: int | None = None,
    ) -> CandidateRecord:
        return CandidateRecord(
            id=identity_id,
            name_entry=name or f"Candidate {identity_id}",
            entity_type=entity_type,
            relation_count=relation_count,
        )

    return _make


@pytest.fixture
def static_stage() -> type[StaticStage]:
    """StaticStage class for building canned pipelines."""
    return StaticStage


@pytest.fixture
def washington_hits() -> list[IndexHit]:
    """Index hits for a "George Washington" search."""
    return [
        IndexHit(
            id="1",
            name_entry="Washington, George, 1732-1799",
            ark_id="ark:/99166/w6029m2v",
            entity_type=EntityType.PERSON,
            score=12.4,
            degree=4,
        ),
        IndexHit(
            id="2",
            name_entry="George Washington University",
            ark_id="ark:/99166/w6pk0h6c",
            entity_type=EntityType.CORPORATE_BODY,
            score=8.1,
            degree=0,
        ),
    ]


@pytest.fixture
def mock_search_index(washington_hits: list[IndexHit]) -> MagicMock:
    """Mock SearchIndexClient answering every search with washington_hits."""
    index = MagicMock(spec=SearchIndexClient)
    index.search = AsyncMock(return_value=washington_hits)
    index.is_healthy = AsyncMock(return_value=True)
    return index
