from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from loto_scan.core.config import settings
from loto_scan.core.logging import get_logger, log_event

logger = get_logger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds `max_upload_bytes`."""

    async def dispatch(self, request: Request, call_next) -> Response:
        raw = request.headers.get("content-length")
        if raw and raw.isdigit() and int(raw) > settings.max_upload_bytes:
            log_event(
                logger,
                "http.request.too_large",
                path=request.url.path,
                byte_size=int(raw),
                limit=settings.max_upload_bytes,
            )
            return JSONResponse(status_code=413, content={"error": "Request body is too large"})
        return await call_next(request)
