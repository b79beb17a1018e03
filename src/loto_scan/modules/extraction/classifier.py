from __future__ import annotations

import enum

LOTOQUINE_MARKER = "LOTOQUINE"
CARTALOTO_MARKER = "CARTALOTO"


class TicketVariant(str, enum.Enum):
    LOTOQUINE = "lotoquine"
    CARTALOTO = "cartaloto"
    UNKNOWN = "unknown"


def classify_ticket_text(text: str) -> TicketVariant:
    t = (text or "").upper()
    if LOTOQUINE_MARKER in t:
        return TicketVariant.LOTOQUINE
    if CARTALOTO_MARKER in t:
        return TicketVariant.CARTALOTO
    return TicketVariant.UNKNOWN
