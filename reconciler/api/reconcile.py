"""Reconciliation API endpoints.

Runs the reconciliation engine for a bare name string or a structured
identity and returns the ranked candidates with their feature vectors.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from reconciler.engine import ReconciliationEngine, ReconciliationRun
from reconciler.identity.schemas import Identity, ScoredCandidate

router = APIRouter(prefix="/reconcile", tags=["reconcile"])


class ReconcileRequest(BaseModel):
    """Request to reconcile a structured identity."""

    identity: Identity = Field(description="Identity to reconcile")
    limit: int | None = Field(
        default=None, ge=1, description="Return at most this many candidates"
    )


class ReconciledCandidate(BaseModel):
    """Single ranked candidate for API response."""

    id: str | None = Field(default=None, description="Store identifier")
    ark_id: str | None = Field(default=None, description="ARK identifier")
    name_entry: str = Field(description="Candidate's preferred name")
    entity_type: str | None = Field(default=None)
    score: float = Field(description="Weighted score")
    vector: dict[str, float] = Field(description="Stage name -> strength")

    @classmethod
    def from_scored(cls, scored: ScoredCandidate) -> "ReconciledCandidate":
        """Convert internal ScoredCandidate to API response model."""
        candidate = scored.candidate
        return cls(
            id=candidate.id,
            ark_id=candidate.ark_id,
            name_entry=candidate.name_entry,
            entity_type=candidate.entity_type.value if candidate.entity_type else None,
            score=scored.score,
            vector=dict(scored.vector),
        )


class ReconcileResponse(BaseModel):
    """Response with ranked candidates."""

    search_identity: Identity = Field(description="Identity that was reconciled")
    results: list[ReconciledCandidate] = Field(description="Best candidates first")
    top_value: float = Field(description="Score of the best candidate (0 if none)")


def get_engine(request: Request) -> ReconciliationEngine:
    """Dependency to get ReconciliationEngine from app state."""
    if not hasattr(request.app.state, "engine"):
        raise HTTPException(
            status_code=500, detail="ReconciliationEngine not initialized"
        )
    return request.app.state.engine


def _to_response(run: ReconciliationRun, limit: int | None) -> ReconcileResponse:
    results = run.get_results()
    if limit is not None:
        results = results[:limit]
    return ReconcileResponse(
        search_identity=run.query,
        results=[ReconciledCandidate.from_scored(r) for r in results],
        top_value=run.top_value(),
    )


@router.get("", response_model=ReconcileResponse)
async def reconcile_name(
    q: str = Query(description="Name to reconcile, as written"),
    limit: int | None = Query(default=None, ge=1),
    engine: ReconciliationEngine = Depends(get_engine),
) -> ReconcileResponse:
    """Reconcile a bare name string.

    The string is used as the identity's preferred name entry; no entity
    type or alternate identifiers are assumed.
    """
    run = await engine.reconcile(Identity(name_entry=q))
    return _to_response(run, limit)


@router.post("", response_model=ReconcileResponse)
async def reconcile_identity(
    request: ReconcileRequest,
    engine: ReconciliationEngine = Depends(get_engine),
) -> ReconcileResponse:
    """Reconcile a structured identity.

    Alternate identifiers on the identity enable the exact-link stage; an
    entity type enables type-aware stages.
    """
    run = await engine.reconcile(request.identity)
    return _to_response(run, request.limit)
