"""
Things API: Format Suffix Handling
====================================

What:  Handles the optional format suffix on namespaced paths.
How:   FormatSuffixMiddleware rewrites `/api/things.json` and
       `/api/things/1.json` to the plain path before routing and records
       the suffix on `request.state.format`. The router-level dependency
       `require_supported_format` then answers anything but `json` with
       406. It is declared after authentication, so an unauthenticated
       `/api/things/1.xml` still gets 401.

Paths outside the namespace (/openapi.json, /docs, /health) pass untouched.
"""

import logging
from typing import Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from thingsapi.exceptions import UnsupportedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = frozenset({"json"})


def split_format(path: str) -> Tuple[str, Optional[str]]:
    """Split `/api/things/1.json` into (`/api/things/1`, `json`)."""
    head, _, last = path.rpartition("/")
    stem, dot, suffix = last.rpartition(".")
    if not dot or not stem or not suffix:
        return path, None
    return f"{head}/{stem}", suffix.lower()


class FormatSuffixMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, namespace: str = "/api"):
        super().__init__(app)
        self.namespace = namespace.rstrip("/")

    def _in_namespace(self, path: str) -> bool:
        return path == self.namespace or path.startswith(self.namespace + "/") or (
            path.startswith(self.namespace + ".")
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.scope["path"]
        if not self._in_namespace(path):
            return await call_next(request)

        stripped, fmt = split_format(path)
        if fmt is None:
            return await call_next(request)

        # Routing reads scope["path"]; call_next passes this same scope on
        request.scope["path"] = stripped
        request.scope["raw_path"] = stripped.encode("utf-8")
        request.state.format = fmt
        return await call_next(request)


async def require_supported_format(request: Request) -> str:
    """
    Router dependency rejecting unsupported format suffixes.

    Raises:
        UnsupportedFormatError: suffix other than `json` (→ 406)
    """
    fmt = getattr(request.state, "format", None) or "json"
    if fmt not in SUPPORTED_FORMATS:
        logger.warning("Rejected format '%s' for %s %s", fmt, request.method, request.url.path)
        raise UnsupportedFormatError(fmt)
    return fmt
