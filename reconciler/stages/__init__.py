"""Reconciliation stages.

This module provides:
- Stage: base class every stage implements
- Index-backed stages (original name, preferred name, fuzzy, complete)
- ExactLinkStage: shared alternate identifiers via the identity store
- Re-ranking stages (entity type, length difference, degree) and the
  global original-length modifier
- CompositeStage: chains sub-stages
- StageRegistry / default_registry: build stages by name
"""

from reconciler.stages.base import IdentityStore, SearchIndex, Stage
from reconciler.stages.composite import CompositeStage
from reconciler.stages.exact_link import ExactLinkStage
from reconciler.stages.index_search import (
    CompleteSearchStage,
    FuzzyNameSearchStage,
    IndexSearchStage,
    OriginalNameSearchStage,
    PreferredNameSearchStage,
)
from reconciler.stages.registry import StageRegistry, default_registry
from reconciler.stages.scoring import (
    DegreeBonusStage,
    EntityTypeFilterStage,
    OriginalLengthDifferenceStage,
    OriginalLengthStage,
)

__all__ = [
    "CompleteSearchStage",
    "CompositeStage",
    "DegreeBonusStage",
    "EntityTypeFilterStage",
    "ExactLinkStage",
    "FuzzyNameSearchStage",
    "IdentityStore",
    "IndexSearchStage",
    "OriginalLengthDifferenceStage",
    "OriginalLengthStage",
    "OriginalNameSearchStage",
    "PreferredNameSearchStage",
    "SearchIndex",
    "Stage",
    "StageRegistry",
    "default_registry",
]
