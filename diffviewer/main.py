from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from diffviewer import __version__
from diffviewer.api.routes import router
from diffviewer.config.settings import Settings
from diffviewer.exceptions.errors import CommentStoreError
from diffviewer.exceptions.handlers import register_exception_handlers
from diffviewer.middleware.request_context import RequestContextMiddleware
from diffviewer.services.comment_store import CommentStore
from diffviewer.shared.logging import setup_logging

logger = logging.getLogger("diffviewer")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    setup_logging(settings.log_level)

    if settings.source_dir is None:
        raise RuntimeError("SOURCE_DIR is not configured (set SOURCE_DIR or pass a directory)")

    store = CommentStore(settings.source_dir)
    try:
        store.ensure_dir()
    except CommentStoreError as e:
        logger.warning("Failed to initialize comments directory: %s", e)

    app = FastAPI(title="Git Diff Viewer", version=__version__)
    app.state.settings = settings
    app.state.comment_store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)
    app.include_router(router)

    logger.info("Serving repositories under %s", settings.source_dir)
    return app
