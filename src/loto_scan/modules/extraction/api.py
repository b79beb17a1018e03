from __future__ import annotations

import base64

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from loto_scan.api.deps import require_api_key
from loto_scan.core.config import settings
from loto_scan.core.errors import FallbackExtractionError, MalformedInputError
from loto_scan.core.logging import get_logger, log_event
from loto_scan.modules.documents.service import (
    convert_document_to_text,
    detect_file_kind,
    image_mime_type,
)
from loto_scan.modules.extraction.schemas import ImageAnalysisIn, TextExtractionIn
from loto_scan.modules.extraction.service import extract_image_grids, extract_ticket_grids

router = APIRouter(tags=["grids"], dependencies=[Depends(require_api_key)])
image_router = APIRouter(tags=["grids"], dependencies=[Depends(require_api_key)])
logger = get_logger(__name__)

_READ_CHUNK_BYTES = 1024 * 1024


@router.post("/grids/text")
async def extract_grids_from_text(payload: TextExtractionIn) -> JSONResponse:
    if not payload.text or not payload.text.strip():
        raise MalformedInputError("Text is required")
    outcome = await extract_ticket_grids(text=payload.text)
    return JSONResponse(content=outcome.to_payload())


@router.post("/grids/upload")
async def extract_grids_from_upload(upload: UploadFile = File(...)) -> JSONResponse:
    try:
        body = await _read_upload(upload, limit=settings.max_upload_bytes)
        filename = upload.filename or "upload.bin"
        log_event(
            logger,
            "upload.received",
            filename=filename,
            content_type=upload.content_type,
            byte_size=len(body),
        )
        if not body:
            raise MalformedInputError("Uploaded file is empty")

        kind = detect_file_kind(filename=filename, content_type=upload.content_type, body=body)
        if kind == "image":
            result = await extract_image_grids(
                image_base64=base64.b64encode(body).decode("ascii"),
                mime_type=image_mime_type(filename=filename, content_type=upload.content_type),
            )
            return JSONResponse(content=result)

        text = await run_in_threadpool(
            convert_document_to_text,
            filename=filename,
            content_type=upload.content_type,
            body=body,
        )
        outcome = await extract_ticket_grids(text=text)
        return JSONResponse(content=outcome.to_payload())
    finally:
        await upload.close()


@image_router.post("/analyze-image")
async def analyze_image(payload: ImageAnalysisIn) -> JSONResponse:
    if not payload.base64_image:
        raise MalformedInputError("Base64 image data is required")
    try:
        result = await extract_image_grids(
            image_base64=payload.base64_image, mime_type=payload.mime_type
        )
    except FallbackExtractionError:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Error processing image"},
        )
    return JSONResponse(content=result)


async def _read_upload(upload: UploadFile, *, limit: int) -> bytes:
    chunks: list[bytes] = []
    size = 0
    while True:
        chunk = await upload.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Uploaded file is too large",
            )
        chunks.append(chunk)
    return b"".join(chunks)
