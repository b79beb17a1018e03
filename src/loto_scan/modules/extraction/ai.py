from __future__ import annotations

import json
import re
from typing import Any

import httpx

from loto_scan.core.config import settings
from loto_scan.core.logging import get_logger, log_event

logger = get_logger(__name__)

GRID_EXTRACTION_INSTRUCTION = (
    "Renvoie moi uniquement un tableau JSON sans autre texte, avec un tableau de grilles "
    "loto respectant cette interface {\n"
    "  numero: number;\n"
    "  quines: number[][];\n"
    "}\n"
    "en remplissant uniquement les quines et le numero de la grille si tu le trouves. "
    "Chaque plaque devrait avoir 15 nombres differents, repartis en 3 lignes distinctes. "
    "Chacune de ces lignes ou quines comporte exactement 5 nombres. "
    "Respecte l'ordre des quines tel qu'il apparait dans le document. "
    "Le sens de lecture d'une grille se fait ligne par ligne, de haut en bas."
)

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.I)
_FENCE_END_RE = re.compile(r"\s*```$")


def grid_ai_available() -> bool:
    return bool(settings.grid_ai_enabled and settings.openai_api_key)


async def extract_grids_with_ai(
    *,
    text: str | None = None,
    image_base64: str | None = None,
    mime_type: str = "image/jpeg",
) -> Any | None:
    """
    Ask the generative model for the grids of a document.

    Either `text` (already extracted document text) or `image_base64` must be
    given. Returns the decoded JSON value, or None when the call fails or the
    model answers with something that is not JSON. A bare JSON `null` answer
    carries no grids and is rejected the same way.
    """
    if not grid_ai_available():
        log_event(logger, "ai.grids.unavailable")
        return None

    content: list[dict[str, Any]] = [{"type": "text", "text": GRID_EXTRACTION_INSTRUCTION}]
    if image_base64:
        content.append(
            {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
            }
        )
    elif text and text.strip():
        content.append(
            {
                "type": "text",
                "text": "Texte du document:\n"
                + _truncate_text(text, max_chars=int(settings.grid_ai_max_chars or 0)),
            }
        )
    else:
        return None

    payload = {
        "model": settings.openai_model,
        "temperature": 0,
        "messages": [{"role": "user", "content": content}],
    }

    try:
        raw = await _post_chat_completion(payload)
    except (httpx.HTTPError, ValueError) as e:
        log_event(logger, "ai.grids.request_failed", error=type(e).__name__)
        return None

    try:
        msg = raw["choices"][0]["message"]
        if isinstance(msg, dict) and msg.get("refusal"):
            return None
        answer = msg.get("content") if isinstance(msg, dict) else None
    except (KeyError, IndexError, TypeError):
        log_event(logger, "ai.grids.bad_response")
        return None

    if not isinstance(answer, str) or not answer.strip():
        return None

    parsed = parse_model_json(answer)
    if parsed is None:
        log_event(
            logger,
            "ai.grids.non_json",
            answer_chars=len(answer),
            null_answer=_is_null_answer(answer),
        )
    return parsed


async def _post_chat_completion(payload: dict[str, Any]) -> Any:
    headers = {
        "Authorization": f"Bearer {settings.openai_api_key}",
        "Content-Type": "application/json",
    }
    url = settings.openai_base_url.rstrip("/") + "/chat/completions"
    async with httpx.AsyncClient(
        timeout=float(settings.grid_ai_timeout_seconds or 60.0),
        follow_redirects=True,
    ) as client:
        resp = await client.post(url, headers=headers, json=payload)
        resp.raise_for_status()
        return resp.json()


def parse_model_json(content: str) -> Any | None:
    """Decode a model answer, tolerating a surrounding ```json fence."""
    c = (content or "").strip()
    c = _FENCE_START_RE.sub("", c)
    c = _FENCE_END_RE.sub("", c).strip()
    if not c:
        return None
    try:
        return json.loads(c)
    except ValueError:
        return None


def _is_null_answer(content: str) -> bool:
    c = _FENCE_START_RE.sub("", (content or "").strip())
    return _FENCE_END_RE.sub("", c).strip() == "null"


def _truncate_text(text: str, *, max_chars: int) -> str:
    t = (text or "").replace("\u202f", " ").replace("\xa0", " ").strip()
    if max_chars <= 0 or len(t) <= max_chars:
        return t
    return t[: max_chars - 20].rstrip() + "\n\n[TRUNCATED]"
