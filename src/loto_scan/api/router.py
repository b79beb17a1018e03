from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from loto_scan.modules.extraction.api import image_router as extraction_image_router
from loto_scan.modules.extraction.api import router as extraction_router
from loto_scan.modules.versions.api import router as versions_router

router = APIRouter()

router.include_router(extraction_router, prefix="/api")
router.include_router(versions_router, prefix="/api")
router.include_router(extraction_image_router)


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/test", response_class=PlainTextResponse)
def test_endpoint() -> str:
    return "GET request to the /test endpoint is successful!"
