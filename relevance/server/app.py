"""
Relevance Engine API: FastAPI app factory.

Use: python -m relevance.server
Or:  uvicorn relevance.server.app:create_app --factory
Or:  from relevance.server import create_app
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..engine import RelevanceEngine
from ..settings import ServiceSettings, load_settings
from .routes import register_routes

API_VERSION = "1.0.0"


def create_app(
    engine: Optional[RelevanceEngine] = None,
    settings: Optional[ServiceSettings] = None,
) -> FastAPI:
    """Build FastAPI app with CORS and routes. The engine is held on app.state."""
    if settings is None:
        settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if engine is None:
        engine = RelevanceEngine.from_settings(settings)

    app = FastAPI(
        title="Relevance Engine API",
        description="Personalized relevance scoring runs and save/skip feedback hook",
        version=API_VERSION,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine
    app.state.settings = settings
    register_routes(app)
    return app
