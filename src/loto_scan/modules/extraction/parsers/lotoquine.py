from __future__ import annotations

import re

from loto_scan.modules.extraction.classifier import LOTOQUINE_MARKER
from loto_scan.modules.extraction.grids import Grid, build_grid, decode_number_line

_MARKER_RE = re.compile(re.escape(LOTOQUINE_MARKER), re.I)


def parse_lotoquine_grids(text: str) -> list[Grid]:
    """
    Parse the section-marker layout.

    Every ticket starts with the marker, followed by three rows of digits and
    the ticket number on the fourth line:

        LOTOQUINE
        712345678
        1023456789
        ...
        100001
    """
    sections = _MARKER_RE.split(text or "")[1:]
    seen_ids: set[str] = set()
    grids: list[Grid] = []
    for section in sections:
        lines = [ln.strip() for ln in section.strip().splitlines() if ln.strip()]
        if len(lines) < 4:
            continue
        grid_id = lines[3]
        if grid_id in seen_ids:
            continue
        seen_ids.add(grid_id)

        grid = build_grid(grid_id, (decode_number_line(ln) for ln in lines[:3]))
        if grid:
            grids.append(grid)
    return grids
