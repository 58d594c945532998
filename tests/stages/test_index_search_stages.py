"""Tests for index-backed stages."""

from unittest.mock import AsyncMock

import pytest

from reconciler.errors import CollaboratorUnavailableError
from reconciler.identity.schemas import EntityType, Identity
from reconciler.stages.index_search import (
    CompleteSearchStage,
    FuzzyNameSearchStage,
    OriginalNameSearchStage,
    PreferredNameSearchStage,
)


@pytest.fixture
def query() -> Identity:
    return Identity(
        name_entry="Washington, George, 1732-1799",
        entity_type=EntityType.PERSON,
    )


@pytest.mark.asyncio
async def test_original_name_searches_full_entry_with_and(query, mock_search_index):
    """Original-name stage sends the name entry as written, all tokens required."""
    await OriginalNameSearchStage(mock_search_index).run(query, None)

    args, kwargs = mock_search_index.search.call_args
    assert args == ("Washington, George, 1732-1799",)
    assert kwargs["operator"] == "and"
    assert kwargs["minimum_should_match"] is None
    assert kwargs["field"] == "nameEntry"
    assert kwargs["limit"] == 2500
    assert kwargs["entity_type"] is None


@pytest.mark.asyncio
async def test_preferred_name_searches_parsed_name(query, mock_search_index):
    """Preferred-name stage drops dates before searching."""
    await PreferredNameSearchStage(mock_search_index).run(query, None)

    args, kwargs = mock_search_index.search.call_args
    assert args == ("Washington, George",)
    assert kwargs["operator"] == "and"


@pytest.mark.asyncio
async def test_fuzzy_requires_three_quarters(query, mock_search_index):
    """Fuzzy stage matches 75% of the preferred name's tokens."""
    await FuzzyNameSearchStage(mock_search_index).run(query, None)

    args, kwargs = mock_search_index.search.call_args
    assert args == ("Washington, George",)
    assert kwargs["operator"] is None
    assert kwargs["minimum_should_match"] == "75%"


@pytest.mark.asyncio
async def test_complete_search_is_typed_and_degree_boosted(query, mock_search_index):
    await CompleteSearchStage(mock_search_index).run(query, None)

    _, kwargs = mock_search_index.search.call_args
    assert kwargs["include_degree"] is True
    assert kwargs["entity_type"] is EntityType.PERSON
    assert kwargs["limit"] == 10


@pytest.mark.asyncio
async def test_strength_is_index_score(query, mock_search_index):
    """Hits become candidates scored by index relevance."""
    results = await PreferredNameSearchStage(mock_search_index).run(query, None)

    assert [(r.candidate.id, r.strength) for r in results] == [("1", 12.4), ("2", 8.1)]
    first = results[0].candidate
    assert first.name_entry == "Washington, George, 1732-1799"
    assert first.ark_id == "ark:/99166/w6029m2v"
    assert first.entity_type is EntityType.PERSON
    assert first.relation_count == 4


@pytest.mark.asyncio
async def test_pool_is_ignored(query, mock_search_index, make_candidate):
    """Index stages always produce their own pool."""
    results = await PreferredNameSearchStage(mock_search_index).run(
        query, [make_candidate("99")]
    )
    assert "99" not in {r.candidate.id for r in results}


@pytest.mark.asyncio
async def test_constructor_overrides(query, mock_search_index):
    """Operator, threshold and limit are constructor configuration."""
    stage = FuzzyNameSearchStage(
        mock_search_index, minimum_should_match="50%", result_limit=5
    )
    await stage.run(query, None)

    _, kwargs = mock_search_index.search.call_args
    assert kwargs["minimum_should_match"] == "50%"
    assert kwargs["limit"] == 5


@pytest.mark.asyncio
async def test_empty_name_skips_index(mock_search_index):
    """No query string, no search."""
    results = await OriginalNameSearchStage(mock_search_index).run(
        Identity(name_entry="   "), None
    )

    assert results == []
    mock_search_index.search.assert_not_awaited()


@pytest.mark.asyncio
async def test_unavailable_index_returns_empty(query, mock_search_index):
    """Collaborator failures are absorbed at the stage boundary."""
    mock_search_index.search = AsyncMock(
        side_effect=CollaboratorUnavailableError("connection refused")
    )

    results = await OriginalNameSearchStage(mock_search_index).run(query, None)

    assert results == []


def test_rejects_non_positive_limit(mock_search_index):
    with pytest.raises(ValueError):
        PreferredNameSearchStage(mock_search_index, result_limit=0)
