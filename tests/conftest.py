from __future__ import annotations

import os

import pytest

# Set env before any loto_scan imports (settings are created at import time).
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("GRID_AI_ENABLED", "true")

LOTOQUINE_TWO_TICKETS = (
    "LOTOQUINE\n"
    "712345678\n"
    "1023456789\n"
    "0612233445\n"
    "100001\n"
    "LOTOQUINE\n"
    "305152637\n"
    "1122334455\n"
    "2131415161\n"
    "100002\n"
)

FIRST_CARD_NUMBERS = [7, 13, 46, 50, 89, 12, 34, 40, 51, 78, 6, 23, 68, 77, 80]


def doubled(numbers: list[int]) -> str:
    return "".join(f"{n}\n{n}\n" for n in numbers)


@pytest.fixture
def lotoquine_text() -> str:
    return LOTOQUINE_TWO_TICKETS


@pytest.fixture
def first_card_text() -> str:
    return "CARTALOTO\nCarton\n4521\n" + doubled(FIRST_CARD_NUMBERS)


@pytest.fixture
def block_id_text() -> str:
    return (
        "CARTALOTO\n"
        "111 111\n"
        "712345678\n"
        "1023456789\n"
        "0612233445\n"
        "222 222\n"
        "305152637\n"
        "1122334455\n"
        "2131415161\n"
        "333 333\n"
    )


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch) -> None:
    from loto_scan.core.config import settings

    monkeypatch.setattr(settings, "api_key", None)
    monkeypatch.setattr(settings, "openai_api_key", "test-key")
    monkeypatch.setattr(settings, "grid_ai_enabled", True)
