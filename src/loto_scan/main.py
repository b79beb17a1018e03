from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from loto_scan.api.router import router as api_router
from loto_scan.core.errors import (
    DocumentConversionError,
    FallbackExtractionError,
    MalformedInputError,
)
from loto_scan.core.limits import BodySizeLimitMiddleware
from loto_scan.core.logging import RequestContextMiddleware, get_logger, log_event

logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Loto Scan", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(MalformedInputError)
    async def _malformed_input(_: Request, exc: MalformedInputError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(DocumentConversionError)
    async def _conversion_failed(_: Request, exc: DocumentConversionError) -> JSONResponse:
        log_event(logger, "documents.conversion_failed", error=str(exc))
        return JSONResponse(status_code=422, content={"error": str(exc)})

    @app.exception_handler(FallbackExtractionError)
    async def _fallback_failed(_: Request, exc: FallbackExtractionError) -> JSONResponse:
        log_event(logger, "extraction.fallback.failed", error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Error processing document"})

    app.include_router(api_router)
    return app


app = create_app()
