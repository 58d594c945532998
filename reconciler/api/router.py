"""API router aggregation."""

from fastapi import APIRouter

from reconciler.api.health import router as health_router
from reconciler.api.reconcile import router as reconcile_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(reconcile_router)
