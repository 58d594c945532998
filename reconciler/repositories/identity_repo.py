"""Read access to the identity store.

Resolves alternate identifiers (sameAs links to external vocabularies) to
store ids and hydrates candidate records. Uses SQLite (via TursoClient).
"""

from enum import Flag

from reconciler.db.turso import TursoClient
from reconciler.errors import CollaboratorUnavailableError
from reconciler.identity.schemas import AlternateId, CandidateRecord, EntityType


class IdentityFields(Flag):
    """Parts of a record to hydrate beyond its core name/type/ids."""

    SUMMARY = 0
    ALTERNATE_IDS = 1
    RELATIONS = 2
    ALL = ALTERNATE_IDS | RELATIONS


class IdentityRepository:
    """Repository for looking up published identities.

    The store is written elsewhere; this class only reads it. ``initialize``
    exists so local replicas and tests can create the expected schema.
    """

    def __init__(self, db_client: TursoClient):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
        """
        self._db = db_client

    async def initialize(self) -> None:
        """Create identity tables if not exists."""
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS identities (
                id TEXT PRIMARY KEY,
                ark_id TEXT,
                name_entry TEXT NOT NULL,
                entity_type TEXT,
                published INTEGER NOT NULL DEFAULT 1
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS identity_alternate_ids (
                identity_id TEXT NOT NULL REFERENCES identities(id),
                uri TEXT NOT NULL,
                link_type TEXT
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_alternate_id_uri
            ON identity_alternate_ids(uri)
            """,
                """
            CREATE TABLE IF NOT EXISTS identity_relations (
                source_id TEXT NOT NULL REFERENCES identities(id),
                target_id TEXT NOT NULL
            )
            """,
            ]
        )

    async def lookup_by_alternate_id(self, uri: str) -> list[str]:
        """Find published identities that declare the given alternate id.

        Args:
            uri: External record URI

        Returns:
            Store ids in ascending order, empty if none declare the link

        Raises:
            CollaboratorUnavailableError: If the store cannot be queried
        """
        try:
            result = await self._db.execute(
                """
                SELECT DISTINCT i.id
                FROM identity_alternate_ids a
                JOIN identities i ON i.id = a.identity_id
                WHERE a.uri = ? AND i.published = 1
                ORDER BY i.id
                """,
                [uri],
            )
        except Exception as e:
            raise CollaboratorUnavailableError(
                f"Alternate id lookup failed: {e}"
            ) from e
        return [str(row[0]) for row in result.rows]

    async def read_by_id(
        self,
        identity_id: str,
        fields: IdentityFields = IdentityFields.ALL,
    ) -> CandidateRecord | None:
        """Read a published identity.

        Args:
            identity_id: Store id
            fields: Which optional parts to hydrate. Relation counting is the
                expensive part; skip it when no stage needs the degree.

        Returns:
            CandidateRecord or None if not found

        Raises:
            CollaboratorUnavailableError: If the store cannot be queried
        """
        try:
            result = await self._db.execute(
                """
                SELECT id, ark_id, name_entry, entity_type
                FROM identities
                WHERE id = ? AND published = 1
                """,
                [identity_id],
            )
            if not result.rows:
                return None
            row = result.rows[0]

            alternate_ids: list[AlternateId] = []
            if IdentityFields.ALTERNATE_IDS in fields:
                links = await self._db.execute(
                    """
                    SELECT uri, link_type
                    FROM identity_alternate_ids
                    WHERE identity_id = ?
                    ORDER BY rowid
                    """,
                    [identity_id],
                )
                alternate_ids = [
                    AlternateId(uri=link[0], link_type=link[1]) for link in links.rows
                ]

            relation_count: int | None = None
            if IdentityFields.RELATIONS in fields:
                relations = await self._db.execute(
                    "SELECT COUNT(*) FROM identity_relations WHERE source_id = ?",
                    [identity_id],
                )
                relation_count = int(relations.rows[0][0])
        except Exception as e:
            raise CollaboratorUnavailableError(f"Identity read failed: {e}") from e

        return CandidateRecord(
            id=str(row[0]),
            ark_id=row[1],
            name_entry=row[2] or "",
            entity_type=EntityType.from_term(row[3]),
            alternate_ids=alternate_ids,
            relation_count=relation_count,
        )

    async def is_healthy(self) -> bool:
        """Check if the backing database answers."""
        return await self._db.is_healthy()
