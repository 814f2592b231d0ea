"""FastAPI application for serving live research graphs."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from research_graph import settings
from server.layout_routes import router as layout_router
from server.registry import SessionRegistry
from server.session_db import SqliteSessionRepository
from server.session_routes import router as session_router

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def create_app(repository: SqliteSessionRepository | None = None) -> FastAPI:
    """Build the API around a session repository (sqlite at DB_PATH by default)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Configure logging and open storage on startup."""
        settings.configure_logging()
        store = repository if repository is not None else SqliteSessionRepository()
        app.state.registry = SessionRegistry(store)
        logger.info("research graph api started, storage at %s", app.state.registry.repository.db_path)
        yield

    app = FastAPI(
        title="Research Graph API",
        description="API server for live research graphs, layout and persistence",
        version=API_VERSION,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # include routes
    app.include_router(session_router, prefix="/api")
    app.include_router(layout_router, prefix="/api")

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": API_VERSION,
            "sessions": len(app.state.registry),
            "endpoints": {
                "sessions": "/api/sessions",
                "layout": "/api/layout",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
