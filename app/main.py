"""
FastAPI application entry point.
Challenge: Mount routes, middleware (Prometheus), error handlers, process-scoped state.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app

from app.api.error_handlers import register_error_handlers
from app.api.v1.router import api_router
from app.config import get_settings
from app.core.observability import setup_logging
from app.core.revocation import build_revocation_registry
from app.search.elasticsearch_client import close_elasticsearch, ensure_listings_index
from app.storage.images import PUBLIC_PREFIX

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: ensure the listings index when ES is available. Shutdown: close the ES client."""
    try:
        await ensure_listings_index()
    except Exception as exc:
        # ES may be down; everything but text search keeps working
        logger.warning("Elasticsearch not available at startup: %s", exc)
    logger.info("%s started", app.title)
    yield
    await close_elasticsearch()
    logger.info("%s shutting down", app.title)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        description="Marketplace API: users, category taxonomy, listings with search, filters and geo radius.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Lives as long as this app instance; the auth gate reads it from app.state
    app.state.revocation_registry = build_revocation_registry(settings)

    register_error_handlers(app)

    # CORS for frontend/API consumers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus metrics at /metrics
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    app.include_router(api_router, prefix="/api")

    # Listing images written by LocalImageStorage
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(upload_dir)), name="uploads")

    return app


app = create_app()
