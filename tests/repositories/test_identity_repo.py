"""Tests for IdentityRepository."""

from pathlib import Path

import pytest

from reconciler.db.turso import TursoClient
from reconciler.errors import CollaboratorUnavailableError
from reconciler.identity.schemas import EntityType
from reconciler.repositories.identity_repo import IdentityFields, IdentityRepository

VIAF = "http://viaf.org/viaf/31432428"
LCNAF = "http://id.loc.gov/authorities/names/n79022925"


@pytest.fixture
async def db_client(tmp_path: Path):
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_identities.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def repo(db_client: TursoClient):
    """Create IdentityRepository with a small seeded store."""
    repo = IdentityRepository(db_client)
    await repo.initialize()
    await db_client.execute_batch(
        [
            "INSERT INTO identities (id, ark_id, name_entry, entity_type, published) "
            "VALUES ('10', 'ark:/99166/w6029m2v', 'Washington, George, 1732-1799', 'person', 1)",
            "INSERT INTO identities (id, ark_id, name_entry, entity_type, published) "
            "VALUES ('11', NULL, 'Washington, George', 'person', 1)",
            "INSERT INTO identities (id, ark_id, name_entry, entity_type, published) "
            "VALUES ('12', NULL, 'Washington, George (draft)', 'person', 0)",
            f"INSERT INTO identity_alternate_ids VALUES ('11', '{LCNAF}', 'sameAs')",
            f"INSERT INTO identity_alternate_ids VALUES ('10', '{VIAF}', 'sameAs')",
            f"INSERT INTO identity_alternate_ids VALUES ('10', '{LCNAF}', 'sameAs')",
            f"INSERT INTO identity_alternate_ids VALUES ('12', '{VIAF}', 'sameAs')",
            "INSERT INTO identity_relations VALUES ('10', '20')",
            "INSERT INTO identity_relations VALUES ('10', '21')",
            "INSERT INTO identity_relations VALUES ('10', '22')",
        ]
    )
    return repo


@pytest.mark.asyncio
async def test_initialize_creates_tables(db_client: TursoClient):
    """Initialize should create the identity tables."""
    repo = IdentityRepository(db_client)
    await repo.initialize()

    result = await db_client.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    assert [row[0] for row in result.rows] == [
        "identities",
        "identity_alternate_ids",
        "identity_relations",
    ]


@pytest.mark.asyncio
async def test_initialize_is_idempotent(repo: IdentityRepository):
    await repo.initialize()
    assert await repo.lookup_by_alternate_id(VIAF) == ["10"]


@pytest.mark.asyncio
async def test_lookup_skips_unpublished(repo: IdentityRepository):
    """Unpublished identity 12 shares the VIAF link but is not returned."""
    assert await repo.lookup_by_alternate_id(VIAF) == ["10"]


@pytest.mark.asyncio
async def test_lookup_returns_all_sharing_identities(repo: IdentityRepository):
    assert await repo.lookup_by_alternate_id(LCNAF) == ["10", "11"]


@pytest.mark.asyncio
async def test_lookup_unknown_uri(repo: IdentityRepository):
    assert await repo.lookup_by_alternate_id("http://example.org/none") == []


@pytest.mark.asyncio
async def test_read_full_record(repo: IdentityRepository):
    record = await repo.read_by_id("10")

    assert record is not None
    assert record.id == "10"
    assert record.ark_id == "ark:/99166/w6029m2v"
    assert record.name_entry == "Washington, George, 1732-1799"
    assert record.entity_type is EntityType.PERSON
    assert [a.uri for a in record.alternate_ids] == [VIAF, LCNAF]
    assert record.relation_count == 3


@pytest.mark.asyncio
async def test_read_summary_skips_links_and_relations(repo: IdentityRepository):
    record = await repo.read_by_id("10", IdentityFields.SUMMARY)

    assert record is not None
    assert record.alternate_ids == []
    assert record.relation_count is None


@pytest.mark.asyncio
async def test_read_relations_only(repo: IdentityRepository):
    record = await repo.read_by_id("11", IdentityFields.RELATIONS)

    assert record is not None
    assert record.alternate_ids == []
    assert record.relation_count == 0


@pytest.mark.asyncio
async def test_read_missing_or_unpublished(repo: IdentityRepository):
    assert await repo.read_by_id("99") is None
    assert await repo.read_by_id("12") is None


@pytest.mark.asyncio
async def test_store_failure_raises_unavailable(tmp_path: Path):
    """A client that was never connected surfaces as unavailable."""
    repo = IdentityRepository(TursoClient(url=f"file:{tmp_path / 'unused.db'}"))

    with pytest.raises(CollaboratorUnavailableError):
        await repo.lookup_by_alternate_id(VIAF)
    with pytest.raises(CollaboratorUnavailableError):
        await repo.read_by_id("10")


@pytest.mark.asyncio
async def test_is_healthy(repo: IdentityRepository, db_client: TursoClient):
    assert await repo.is_healthy() is True
    await db_client.close()
    assert await repo.is_healthy() is False
