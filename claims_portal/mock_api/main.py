"""
Mock Claims Backend

FastAPI application implementing the claims REST contract in memory, for
local development of the portal and for end-to-end tests of the client.

Run with: uvicorn claims_portal.mock_api.main:app --reload
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from claims_portal import __version__
from claims_portal.config import configure_logging

from .endpoints import routers
from .store import MockStore, seeded_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management."""
    logger.info("Starting mock claims backend")
    yield
    logger.info("Shutting down mock claims backend")


def create_app(store: Optional[MockStore] = None) -> FastAPI:
    """Build the app around ``store`` (a freshly seeded one by default)."""
    app = FastAPI(
        title="Mock Claims Backend",
        description="""
    In-memory implementation of the claims REST API.

    Demo accounts (password `password123`): user@example.com (policyholder),
    adjuster@example.com, supervisor@example.com, admin@example.com.
    """,
        version=__version__,
        lifespan=lifespan
    )
    app.state.store = store if store is not None else seeded_store()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in routers:
        app.include_router(router)

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with system info."""
        return {
            "system": "Mock Claims Backend",
            "version": __version__,
            "status": "operational",
            "docs": "/docs"
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
