from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any

from loto_scan.core.errors import FallbackExtractionError
from loto_scan.core.logging import get_logger, log_event, log_exception, monotonic_ms
from loto_scan.modules.extraction.ai import extract_grids_with_ai
from loto_scan.modules.extraction.classifier import TicketVariant, classify_ticket_text
from loto_scan.modules.extraction.grids import Grid
from loto_scan.modules.extraction.parsers.cartaloto import (
    CartalotoResult,
    parse_cartaloto_grids,
)
from loto_scan.modules.extraction.parsers.lotoquine import parse_lotoquine_grids

logger = get_logger(__name__)


class PipelineState(str, enum.Enum):
    START = "start"
    CLASSIFIED = "classified"
    MANUAL_PARSE_ATTEMPTED = "manual_parse_attempted"
    MANUAL_SUCCEEDED = "manual_succeeded"
    FALLBACK_INVOKED = "fallback_invoked"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ExtractionOutcome:
    variant: TicketVariant = TicketVariant.UNKNOWN
    grids: list[Grid] = field(default_factory=list)
    fallback_payload: Any = None
    states: list[PipelineState] = field(default_factory=lambda: [PipelineState.START])

    @property
    def state(self) -> PipelineState:
        return self.states[-1]

    @property
    def used_fallback(self) -> bool:
        return PipelineState.FALLBACK_INVOKED in self.states

    def advance(self, state: PipelineState) -> None:
        self.states.append(state)

    def to_payload(self) -> Any:
        if self.used_fallback:
            return self.fallback_payload
        if self.variant == TicketVariant.CARTALOTO:
            return CartalotoResult(grids=self.grids).to_payload()
        return [g.to_payload() for g in self.grids]


async def extract_ticket_grids(
    *,
    text: str,
    image_base64: str | None = None,
    mime_type: str = "image/jpeg",
) -> ExtractionOutcome:
    """
    Classify, parse deterministically, and fall back to the generative model
    only when no grid was recovered.

    `image_base64` is the original document image, sent to the model instead
    of the text when present.

    Raises FallbackExtractionError when the fallback is needed and fails.
    """
    start = time.monotonic()
    outcome = ExtractionOutcome()
    log_event(logger, "extraction.start", text_chars=len(text or ""))

    outcome.variant = classify_ticket_text(text)
    outcome.advance(PipelineState.CLASSIFIED)
    log_event(logger, "extraction.classified", variant=outcome.variant.value)

    if outcome.variant != TicketVariant.UNKNOWN:
        outcome.grids = _run_vendor_parser(outcome.variant, text)
        outcome.advance(PipelineState.MANUAL_PARSE_ATTEMPTED)
        log_event(
            logger,
            "extraction.manual.parsed",
            variant=outcome.variant.value,
            grid_count=len(outcome.grids),
        )
        if outcome.grids:
            outcome.advance(PipelineState.MANUAL_SUCCEEDED)
            outcome.advance(PipelineState.DONE)
            log_event(
                logger,
                "extraction.finish",
                status="success",
                method="manual",
                variant=outcome.variant.value,
                grid_count=len(outcome.grids),
                duration_ms=monotonic_ms(start),
            )
            return outcome

    outcome.advance(PipelineState.FALLBACK_INVOKED)
    log_event(
        logger,
        "extraction.fallback.invoked",
        variant=outcome.variant.value,
        with_image=bool(image_base64),
    )
    payload = await extract_grids_with_ai(
        text=None if image_base64 else text,
        image_base64=image_base64,
        mime_type=mime_type,
    )
    if payload is None:
        outcome.advance(PipelineState.FAILED)
        log_event(
            logger,
            "extraction.finish",
            status="failed",
            method="ai_fallback",
            variant=outcome.variant.value,
            duration_ms=monotonic_ms(start),
        )
        raise FallbackExtractionError("Generative extraction returned no usable JSON")

    outcome.fallback_payload = payload
    outcome.advance(PipelineState.DONE)
    log_event(
        logger,
        "extraction.finish",
        status="success",
        method="ai_fallback",
        variant=outcome.variant.value,
        duration_ms=monotonic_ms(start),
    )
    return outcome


async def extract_image_grids(*, image_base64: str, mime_type: str = "image/jpeg") -> Any:
    """Images carry no text to parse; only the generative model can read them."""
    start = time.monotonic()
    log_event(logger, "extraction.fallback.invoked", variant="image", with_image=True)
    payload = await extract_grids_with_ai(image_base64=image_base64, mime_type=mime_type)
    if payload is None:
        log_event(
            logger,
            "extraction.finish",
            status="failed",
            method="ai_fallback",
            duration_ms=monotonic_ms(start),
        )
        raise FallbackExtractionError("Generative extraction returned no usable JSON")
    log_event(
        logger,
        "extraction.finish",
        status="success",
        method="ai_fallback",
        duration_ms=monotonic_ms(start),
    )
    return payload


def _run_vendor_parser(variant: TicketVariant, text: str) -> list[Grid]:
    try:
        if variant == TicketVariant.LOTOQUINE:
            return parse_lotoquine_grids(text)
        if variant == TicketVariant.CARTALOTO:
            return parse_cartaloto_grids(text).grids
    except Exception:  # noqa: BLE001
        log_exception(logger, "extraction.parser.error", variant=variant.value)
    return []
