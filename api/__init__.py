"""
FastAPI application factory for the gallery API server.

Serves JSON endpoints for the gallery client.
"""

import os
import sys

# Ensure the project root is in Python path for local imports
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup/shutdown hooks."""
    # Startup: make sure tables exist and warm the lookup cache
    from api.database import get_store
    from db import init_database
    store = get_store()
    init_database(store.db_path)
    store.is_lookup_available()
    yield
    # Shutdown: nothing to clean up (sqlite connections are per-request)


def create_app() -> FastAPI:
    """FastAPI application factory."""
    from api.config import GALLERY_CONFIG

    app = FastAPI(
        title="Gallery API",
        description="Tagged photo gallery: filter by people and event",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=GALLERY_CONFIG['cors_origins'],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    from api.routers.gallery import router as gallery_router
    from api.routers.persons import router as persons_router
    from api.routers.filter_options import router as filter_options_router
    from api.routers.share import router as share_router

    app.include_router(gallery_router)
    app.include_router(persons_router)
    app.include_router(filter_options_router)
    app.include_router(share_router)

    return app
