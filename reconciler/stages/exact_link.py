"""Exact alternate-identifier match against the identity store."""

import asyncio

import structlog

from reconciler.errors import CollaboratorUnavailableError
from reconciler.identity.schemas import CandidateRecord, Identity, StageResult
from reconciler.repositories.identity_repo import IdentityFields
from reconciler.stages.base import CandidatePool, IdentityStore, Stage

logger = structlog.get_logger()

EXACT_LINK_STRENGTH = 100.0


class ExactLinkStage(Stage):
    """Find stored identities that declare one of the query's alternate ids.

    A shared external identifier (VIAF, LCNAF, Wikidata...) is treated as a
    near-certain match, so every hit gets the maximal strength. Lookups run
    concurrently, one per alternate id on the query.
    """

    stage_name = "exact_link"

    def __init__(
        self,
        identity_store: IdentityStore,
        strength: float = EXACT_LINK_STRENGTH,
    ):
        self._store = identity_store
        self._strength = float(strength)

    async def run(
        self,
        query: Identity,
        pool: CandidatePool | None,
    ) -> list[StageResult]:
        uris = list(dict.fromkeys(a.uri for a in query.alternate_ids if a.uri))
        if not uris:
            return []

        records: list[CandidateRecord | None] = []
        failures: list[Exception] = []
        try:
            records = await self._fetch(uris)
        except* CollaboratorUnavailableError as group:
            failures.extend(group.exceptions)

        if failures:
            logger.warning(
                "exact link stage skipped",
                stage=self.name,
                links=len(uris),
                error=str(failures[0]),
            )
            return []

        candidates: list[CandidateRecord] = [r for r in records if r is not None]
        logger.debug("exact link matches", stage=self.name, matches=len(candidates))
        return [
            StageResult(candidate=candidate, strength=self._strength)
            for candidate in candidates
        ]

    async def _fetch(self, uris: list[str]) -> list[CandidateRecord | None]:
        """Resolve links to store ids, then read each id once.

        A failing lookup or read cancels its siblings before the error
        leaves the task group.
        """
        async with asyncio.TaskGroup() as group:
            lookups = [
                group.create_task(self._store.lookup_by_alternate_id(uri))
                for uri in uris
            ]
        identity_ids = list(
            dict.fromkeys(i for lookup in lookups for i in lookup.result())
        )

        async with asyncio.TaskGroup() as group:
            reads = [
                group.create_task(
                    self._store.read_by_id(identity_id, IdentityFields.SUMMARY)
                )
                for identity_id in identity_ids
            ]
        return [read.result() for read in reads]
