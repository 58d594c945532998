"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reconciler.api.router import api_router
from reconciler.config import settings
from reconciler.db.turso import TursoClient
from reconciler.pipeline import build_default_engine
from reconciler.repositories.identity_repo import IdentityRepository
from reconciler.search.index_client import SearchIndexClient

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Create the search index client
    - Connect the identity store (when configured)
    - Build the default reconciliation pipeline

    Shutdown:
    - Close search client and store connection
    """
    logger.info("Starting Identity Reconciler...")

    search_index = SearchIndexClient()
    app.state.search_index = search_index
    logger.info(f"Search index: {search_index.base_url}/{search_index.index_name}")

    db: TursoClient | None = None
    identity_store: IdentityRepository | None = None
    if settings.turso_database_url:
        db = TursoClient()
        await db.connect()
        identity_store = IdentityRepository(db)
        logger.info(f"Identity store connected: {db.url}")
    else:
        logger.info("No identity store configured, exact-link stage disabled")
    app.state.identity_store = identity_store

    engine = build_default_engine(search_index, identity_store)
    app.state.engine = engine
    logger.info(
        f"Reconciliation engine ready with {len(engine.stages)} stages: "
        + ", ".join(stage.name for stage in engine.stages)
    )

    yield

    logger.info("Shutting down Identity Reconciler...")
    await search_index.close()
    if db is not None:
        await db.close()


app = FastAPI(
    title=settings.app_name,
    description="Identity reconciliation for archival authority records",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "reconciler.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
