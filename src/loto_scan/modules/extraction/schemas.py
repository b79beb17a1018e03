from __future__ import annotations

from pydantic import BaseModel, Field


class TextExtractionIn(BaseModel):
    text: str | None = None


class ImageAnalysisIn(BaseModel):
    base64_image: str | None = Field(default=None, alias="base64Image")
    mime_type: str = Field(default="image/jpeg", alias="mimeType")
