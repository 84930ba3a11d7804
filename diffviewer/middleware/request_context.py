from __future__ import annotations

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from diffviewer.core.context import REQUEST_ID_HEADER, choose_request_id, folder_of, request_id_var

logger = logging.getLogger("diffviewer")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (the caller's X-Request-Id when usable),
    echoes it back in the response header and writes one REQ access line.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = choose_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        # path_params land in the shared scope once the router has matched
        logger.info(
            "REQ request_id=%s %s %s folder=%s status=%s elapsed=%.1fms",
            request_id,
            request.method,
            request.url.path,
            folder_of(request),
            response.status_code,
            elapsed_ms,
        )
        return response
