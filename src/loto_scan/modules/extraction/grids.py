from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

LINE_SIZE = 5
LINES_PER_GRID = 3
MIN_NUMBER = 1
MAX_NUMBER = 90

Line = tuple[int, ...]


@dataclass(frozen=True)
class Grid:
    """One ticket ("carton"): an id and three rows ("quines") of five numbers."""

    id: str
    lines: tuple[Line, ...]

    def to_payload(self) -> dict[str, Any]:
        return {"numero": self.id, "quines": [list(line) for line in self.lines]}


def is_valid_line(line: Sequence[int] | None) -> bool:
    if line is None or len(line) != LINE_SIZE:
        return False
    return all(MIN_NUMBER <= n <= MAX_NUMBER for n in line)


def is_valid_grid(grid: Grid) -> bool:
    if len(grid.lines) != LINES_PER_GRID:
        return False
    return all(is_valid_line(line) for line in grid.lines)


def build_grid(grid_id: str, lines: Iterable[Sequence[int] | None]) -> Grid | None:
    """Return a Grid only when every line is valid; partial grids are never built."""
    candidate = list(lines)
    if len(candidate) != LINES_PER_GRID:
        return None
    if not all(is_valid_line(line) for line in candidate):
        return None
    return Grid(id=grid_id, lines=tuple(tuple(line) for line in candidate))


def decode_number_line(raw: str) -> Line | None:
    """
    Decode one printed row of digits.

    A 9-character row carries a 1-digit first number followed by four 2-digit
    numbers ("712345678" -> 7, 12, 34, 56, 78). Any other row is read as
    consecutive 2-digit numbers. Rows whose first number is >= 10 but still
    9 characters long cannot be told apart and decode wrongly.
    """
    s = (raw or "").strip()
    if not s:
        return None
    if len(s) == 9:
        chunks = [s[0]] + [s[i : i + 2] for i in range(1, 9, 2)]
    else:
        chunks = [s[i : i + 2] for i in range(0, len(s), 2)]
    if not all(chunk.isdecimal() for chunk in chunks):
        return None
    numbers = tuple(int(chunk) for chunk in chunks)
    return numbers if is_valid_line(numbers) else None


def split_into_lines(numbers: Sequence[int]) -> list[Line]:
    """Partition the first 15 numbers into three consecutive rows of five."""
    needed = LINE_SIZE * LINES_PER_GRID
    head = list(numbers[:needed])
    return [tuple(head[i : i + LINE_SIZE]) for i in range(0, len(head), LINE_SIZE)]
