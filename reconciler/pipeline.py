"""Default reconciliation pipeline used by the API."""

from reconciler.config import Settings, settings
from reconciler.engine import ReconciliationEngine
from reconciler.stages.base import IdentityStore, SearchIndex
from reconciler.stages.registry import COMPOSITE, default_registry
from reconciler.weights import get_weighting

# (stage name, constructor args) in execution order
DEFAULT_PIPELINE: list[tuple[str, tuple[str, ...]]] = [
    ("index_original_name", ()),
    ("index_preferred_name", ()),
    ("index_fuzzy", ()),
    ("original_length", ()),
    (COMPOSITE, ("index_preferred_name", "original_length_difference")),
    (COMPOSITE, ("index_preferred_name", "degree_bonus")),
]


def build_default_engine(
    search_index: SearchIndex,
    identity_store: IdentityStore | None = None,
    config: Settings | None = None,
) -> ReconciliationEngine:
    """Build the production pipeline.

    Three index searches for recall, a global length bonus, and two chained
    re-rankers (name length difference, relation degree) over the preferred
    name search. The exact-link stage leads when a store is available and
    enabled in settings.

    Args:
        search_index: Index client for the search stages
        identity_store: Store for the exact-link stage
        config: Settings override (defaults to module settings)

    Returns:
        Configured ReconciliationEngine
    """
    config = config or settings
    engine = ReconciliationEngine(
        registry=default_registry(search_index, identity_store),
        weighting=get_weighting(config.reconcile_weighting),
        num_results=config.reconcile_num_results,
        timeout=config.reconcile_timeout_seconds,
    )
    if identity_store is not None and config.reconcile_exact_link:
        engine.add_stage("exact_link")
    for name, args in DEFAULT_PIPELINE:
        engine.add_stage(name, *args)
    return engine
