"""Search index client for candidate recall.

Talks to the Elasticsearch REST API holding one document per published
identity (name entry, ARK id, entity type, relation degree).
"""

import math
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from reconciler.config import settings
from reconciler.errors import CollaboratorUnavailableError
from reconciler.identity.schemas import CandidateRecord, EntityType

logger = structlog.get_logger()

DEFAULT_FIELD = "nameEntry"
DEFAULT_RESULT_LIMIT = 2500


class _TransientSearchError(Exception):
    """Server-side failure worth retrying."""


RETRIABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    _TransientSearchError,
)


def _parse_degree(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return int(value)


class IndexHit(BaseModel):
    """Single identity document matched by the index."""

    id: str = Field(description="Store identifier")
    name_entry: str = Field(default="", description="Indexed preferred name")
    ark_id: str | None = Field(default=None)
    entity_type: EntityType | None = Field(default=None)
    score: float = Field(default=0.0, description="Index relevance score")
    degree: int | None = Field(default=None, description="Relation degree")

    @classmethod
    def from_hit(cls, hit: dict[str, Any]) -> "IndexHit | None":
        """Parse one element of an Elasticsearch ``hits.hits`` list.

        Returns None when neither the document nor the hit carries an id.
        """
        source = hit.get("_source") or {}
        identifier = source.get("id")
        if identifier is None:
            identifier = hit.get("_id")
        if identifier is None or identifier == "":
            return None
        return cls(
            id=str(identifier),
            name_entry=source.get("nameEntry") or "",
            ark_id=source.get("arkID"),
            entity_type=EntityType.from_term(source.get("entityType")),
            score=float(hit.get("_score") or 0.0),
            degree=_parse_degree(source.get("degree")),
        )

    def to_candidate(self) -> CandidateRecord:
        """Convert to a candidate record for scoring."""
        return CandidateRecord(
            id=self.id,
            ark_id=self.ark_id,
            name_entry=self.name_entry,
            entity_type=self.entity_type,
            relation_count=self.degree,
        )


def build_search_body(
    query_string: str,
    *,
    limit: int = DEFAULT_RESULT_LIMIT,
    field: str = DEFAULT_FIELD,
    entity_type: EntityType | None = None,
    operator: str | None = None,
    minimum_should_match: str | None = None,
    field_filters: dict[str, str] | None = None,
    include_degree: bool = False,
) -> dict[str, Any]:
    """Build an Elasticsearch request body.

    Args:
        query_string: Text to match
        limit: Maximum number of hits
        field: Indexed field to match against
        entity_type: Restrict hits to this entity type
        operator: Token operator ("and" requires every token)
        minimum_should_match: Share of tokens required, e.g. "75%"
        field_filters: Extra exact-term filters, field -> value
        include_degree: Boost hits by their linked resource count

    Returns:
        JSON-serializable request body
    """
    match: dict[str, Any] = {"query": query_string}
    if operator is not None:
        match["operator"] = operator
    if minimum_should_match is not None:
        match["minimum_should_match"] = minimum_should_match
    query: dict[str, Any] = {"match": {field: match}}

    filters: list[dict[str, Any]] = []
    if entity_type is not None:
        filters.append({"term": {"entityType": entity_type.value}})
    for filter_field, value in (field_filters or {}).items():
        filters.append({"term": {filter_field: value}})
    if filters:
        query = {"bool": {"must": query, "filter": filters}}

    if include_degree:
        query = {
            "function_score": {
                "query": query,
                "field_value_factor": {
                    "field": "resources",
                    "modifier": "log1p",
                    "factor": 1.5,
                },
                "boost_mode": "multiply",
                "max_boost": 3,
            }
        }

    return {"query": query, "size": limit}


class SearchIndexClient:
    """Async Elasticsearch client for identity documents.

    Every request is bounded by the configured timeout. Transient failures
    are retried with exponential backoff; anything left over surfaces as
    CollaboratorUnavailableError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        index_name: str | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize search client.

        Args:
            base_url: Elasticsearch URL. Defaults to settings.
            index_name: Index holding identity documents. Defaults to settings.
            timeout: Per-request timeout in seconds. Defaults to settings.
            retry_attempts: Total attempts per request. Defaults to settings.
            http_client: Optional pre-built client for dependency injection.
        """
        self.base_url = (base_url or settings.search_index_url).rstrip("/")
        self.index_name = index_name or settings.search_index_name
        self._timeout = timeout or settings.search_timeout_seconds
        self._attempts = retry_attempts or settings.search_retry_attempts
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self._timeout),
        )

    async def search(
        self,
        query_string: str,
        *,
        entity_type: EntityType | None = None,
        limit: int = DEFAULT_RESULT_LIMIT,
        field: str = DEFAULT_FIELD,
        operator: str | None = None,
        minimum_should_match: str | None = None,
        field_filters: dict[str, str] | None = None,
        include_degree: bool = False,
    ) -> list[IndexHit]:
        """Search the identity index.

        Args:
            query_string: Text to match
            entity_type: Restrict hits to this entity type
            limit: Maximum number of hits
            field: Indexed field to match against
            operator: Token operator ("and" requires every token)
            minimum_should_match: Share of tokens required, e.g. "75%"
            field_filters: Extra exact-term filters
            include_degree: Boost hits by their linked resource count

        Returns:
            Hits in index relevance order; hits without an id are skipped

        Raises:
            CollaboratorUnavailableError: If the index cannot answer
        """
        body = build_search_body(
            query_string,
            limit=limit,
            field=field,
            entity_type=entity_type,
            operator=operator,
            minimum_should_match=minimum_should_match,
            field_filters=field_filters,
            include_degree=include_degree,
        )
        payload = await self._post(f"/{self.index_name}/_search", body)
        hits = payload.get("hits", {}).get("hits", [])
        parsed = [IndexHit.from_hit(hit) for hit in hits]
        results = [hit for hit in parsed if hit is not None]
        logger.debug(
            "index search completed",
            query=query_string,
            field=field,
            hits=len(hits),
            skipped=len(hits) - len(results),
        )
        return results

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._attempts),
                wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
                retry=retry_if_exception_type(RETRIABLE_EXCEPTIONS),
                reraise=False,
            ):
                with attempt:
                    response = await self._client.post(path, json=body)
                    if response.status_code >= 500:
                        raise _TransientSearchError(
                            f"Search index returned {response.status_code}"
                        )
                    response.raise_for_status()
                    return response.json()
        except RetryError as e:
            last_err = e.last_attempt.exception() if e.last_attempt else None
            logger.warning(
                "search retries exhausted",
                path=path,
                attempts=self._attempts,
                last_error=str(last_err) if last_err else None,
            )
            raise CollaboratorUnavailableError(
                f"Search index unavailable after {self._attempts} attempt(s): {last_err}"
            ) from last_err
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorUnavailableError(f"Search request failed: {e}") from e
        raise CollaboratorUnavailableError("Search index returned no response")

    async def is_healthy(self) -> bool:
        """Check if the cluster root answers."""
        try:
            response = await self._client.get("/")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
