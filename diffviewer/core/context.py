from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-Id"

# what a client may supply; anything else gets a fresh id
_CLIENT_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._:-]{1,128}", re.ASCII)

request_id_var: ContextVar[str] = ContextVar("request_id", default="unknown")


def choose_request_id(incoming: Optional[str]) -> str:
    """Reuse the caller's request id when it is a plain token, otherwise mint one."""
    if incoming and _CLIENT_REQUEST_ID_RE.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


def current_request_id(request: Request) -> str:
    """
    The id assigned by RequestContextMiddleware.

    request.state outlives the context variable, which is already reset by the
    time the outermost error middleware runs its handler.
    """
    return getattr(request.state, "request_id", None) or request_id_var.get()


def folder_of(request: Request) -> str:
    """`folder_name` path parameter of the matched route, "-" when there is none."""
    return (request.scope.get("path_params") or {}).get("folder_name", "-")
