"""Identity models for reconciliation.

This module provides:
- Identity: the query identity being reconciled
- CandidateRecord: a stored identity that may be the same entity
- StageResult / ScoredCandidate: per-stage and collated results
"""

from reconciler.identity.schemas import (
    AlternateId,
    CandidateRecord,
    EntityType,
    FeatureVector,
    Identity,
    ScoredCandidate,
    StageResult,
)

__all__ = [
    "AlternateId",
    "CandidateRecord",
    "EntityType",
    "FeatureVector",
    "Identity",
    "ScoredCandidate",
    "StageResult",
]
