# diffviewer/exceptions/handlers.py
from __future__ import annotations

import logging
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from diffviewer.core.context import REQUEST_ID_HEADER, current_request_id
from diffviewer.exceptions.errors import DiffViewerError

logger = logging.getLogger("diffviewer")


def register_exception_handlers(app) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = current_request_id(request)
        logger.warning(
            "VALIDATION request_id=%s path=%s errors=%s",
            request_id,
            request.url.path,
            exc.errors(),
        )
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors()), "request_id": request_id})

    @app.exception_handler(DiffViewerError)
    async def diffviewer_exception_handler(request: Request, exc: DiffViewerError):
        request_id = current_request_id(request)
        logger.warning(
            "ERROR request_id=%s path=%s type=%s error=%s",
            request_id,
            request.url.path,
            type(exc).__name__,
            exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc), "request_id": request_id},
        )

    # runs in the outermost error middleware, so the response skips
    # RequestContextMiddleware and the header is set here
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        request_id = current_request_id(request)
        logger.exception(
            "UNHANDLED request_id=%s path=%s type=%s",
            request_id,
            request.url.path,
            type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "request_id": request_id},
            headers={REQUEST_ID_HEADER: request_id},
        )
