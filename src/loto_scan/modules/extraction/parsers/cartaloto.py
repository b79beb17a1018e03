from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loto_scan.core.logging import get_logger, log_exception
from loto_scan.modules.extraction.grids import (
    LINE_SIZE,
    LINES_PER_GRID,
    MAX_NUMBER,
    MIN_NUMBER,
    Grid,
    build_grid,
    decode_number_line,
    split_into_lines,
)

CARTALOTO_SOURCE = "cartaloto"

_NUMBERS_PER_GRID = LINE_SIZE * LINES_PER_GRID

# "123 456" printed as the card code; a second form allows the groups to touch.
_CARD_CODE_RE = re.compile(r"\b\d{3}\s+\d{3}\b")
_SUFFIX_ID_RE = re.compile(r"\b\d{3}[ \t]*\d{3}\b")
_ENCODED_LINE_RE = re.compile(r"\b\d{9,}\b")
_NUMERIC_LINE_RE = re.compile(r"^\d+$")
_STANDALONE_ID_RE = re.compile(r"^\d{3,8}$")

logger = get_logger(__name__)


@dataclass(frozen=True)
class CartalotoResult:
    grids: list[Grid]
    source: str = CARTALOTO_SOURCE

    @property
    def total_count(self) -> int:
        return len(self.grids)

    def to_payload(self) -> dict[str, Any]:
        return {
            "cartons": [g.to_payload() for g in self.grids],
            "source": self.source,
            "totalCartons": self.total_count,
        }


def parse_cartaloto_grids(text: str) -> CartalotoResult:
    """
    Run every heuristic and merge what they find.

    Heuristics can read the same card; the first grid emitted for an id wins.
    """
    grids: list[Grid] = []
    seen_ids: set[str] = set()
    for heuristic in HEURISTICS:
        try:
            found = heuristic(text or "")
        except Exception:  # noqa: BLE001
            log_exception(logger, "cartaloto.heuristic.error", heuristic=heuristic.__name__)
            continue
        for grid in found:
            if grid.id in seen_ids:
                continue
            seen_ids.add(grid.id)
            grids.append(grid)
    return CartalotoResult(grids=grids)


def first_card_grids(text: str) -> list[Grid]:
    """Standalone id line plus the doubled numbers of the first card."""
    lines = _text_lines(text)
    grid_id = _standalone_numeric_line(lines)
    numbers = _repeated_numbers(lines)
    if not grid_id or len(numbers) < _NUMBERS_PER_GRID:
        return []
    grid = build_grid(grid_id, split_into_lines(numbers))
    return [grid] if grid else []


def id_suffix_grids(text: str) -> list[Grid]:
    """Doubled numbers plus a trailing "123 456" style ticket id."""
    numbers = _repeated_numbers(_text_lines(text))
    if len(numbers) < _NUMBERS_PER_GRID:
        return []
    matches = list(_SUFFIX_ID_RE.finditer(text))
    if not matches:
        return []
    grid_id = re.sub(r"\s+", " ", matches[-1].group(0)).strip()
    grid = build_grid(grid_id, split_into_lines(numbers))
    return [grid] if grid else []


def block_id_grids(text: str) -> list[Grid]:
    """Card codes as block boundaries, each followed by three encoded rows."""
    markers = [m.group(0) for m in _CARD_CODE_RE.finditer(text)]
    markers.reverse()
    tokens = _ENCODED_LINE_RE.findall(text)

    grids: list[Grid] = []
    for idx, marker in enumerate(markers):
        if idx == 0:
            continue
        offset = (idx - 1) * LINES_PER_GRID
        block = tokens[offset : offset + LINES_PER_GRID]
        if len(block) != LINES_PER_GRID:
            continue
        grid = build_grid(marker, (decode_number_line(tok) for tok in block))
        if grid:
            grids.append(grid)
    return grids


HEURISTICS: tuple[Callable[[str], list[Grid]], ...] = (
    first_card_grids,
    id_suffix_grids,
    block_id_grids,
)


def _text_lines(text: str) -> list[str]:
    return [ln.strip() for ln in text.splitlines() if ln.strip()]


def _repeated_numbers(lines: list[str]) -> list[int]:
    # OCR of these cards prints every drawn number twice, one under the other.
    out: list[int] = []
    i = 0
    while i + 1 < len(lines):
        current = lines[i]
        if _NUMERIC_LINE_RE.match(current) and lines[i + 1] == current:
            n = int(current)
            if MIN_NUMBER <= n <= MAX_NUMBER:
                out.append(n)
            i += 2
            continue
        i += 1
    return out


def _standalone_numeric_line(lines: list[str]) -> str | None:
    for idx, ln in enumerate(lines):
        if not _STANDALONE_ID_RE.match(ln):
            continue
        prev_ln = lines[idx - 1] if idx > 0 else None
        next_ln = lines[idx + 1] if idx + 1 < len(lines) else None
        if ln in (prev_ln, next_ln):
            continue
        return ln
    return None
