"""Search index access for candidate recall."""

from reconciler.search.index_client import (
    IndexHit,
    SearchIndexClient,
    build_search_body,
)

__all__ = [
    "IndexHit",
    "SearchIndexClient",
    "build_search_body",
]
