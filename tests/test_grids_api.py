from __future__ import annotations

import base64

from fastapi.testclient import TestClient

AI_GRIDS = [{"numero": 100001, "quines": [[7, 13, 46, 50, 89]]}]


def _client() -> TestClient:
    from loto_scan.main import create_app

    return TestClient(create_app())


def _stub_ai(monkeypatch, result=AI_GRIDS) -> list[dict]:
    from loto_scan.modules.extraction import service as extraction_service

    calls: list[dict] = []

    async def _fake(**kwargs):
        calls.append(kwargs)
        return result

    monkeypatch.setattr(extraction_service, "extract_grids_with_ai", _fake)
    return calls


def test_healthz_and_test_routes():
    client = _client()
    assert client.get("/healthz").json() == {"status": "ok"}
    resp = client.get("/test")
    assert resp.status_code == 200
    assert resp.text == "GET request to the /test endpoint is successful!"


def test_text_extraction_returns_grids(monkeypatch, lotoquine_text):
    calls = _stub_ai(monkeypatch)

    resp = _client().post("/api/grids/text", json={"text": lotoquine_text})

    assert resp.status_code == 200
    assert calls == []
    body = resp.json()
    assert body[0] == {
        "numero": "100001",
        "quines": [[7, 12, 34, 56, 78], [10, 23, 45, 67, 89], [6, 12, 23, 34, 45]],
    }
    assert resp.headers["x-request-id"]


def test_cartaloto_text_returns_carton_envelope(monkeypatch, first_card_text):
    _stub_ai(monkeypatch)

    resp = _client().post("/api/grids/text", json={"text": first_card_text})

    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "cartaloto"
    assert body["totalCartons"] == len(body["cartons"]) == 1


def test_missing_text_is_rejected_before_parsing(monkeypatch):
    calls = _stub_ai(monkeypatch)

    resp = _client().post("/api/grids/text", json={})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Text is required"}
    assert calls == []


def test_fallback_json_is_returned_compact(monkeypatch):
    _stub_ai(monkeypatch, result={"grilles": [1, 2]})

    resp = _client().post("/api/grids/text", json={"text": "illisible"})

    assert resp.status_code == 200
    assert resp.content == b'{"grilles":[1,2]}'


def test_fallback_failure_is_a_generic_error(monkeypatch):
    _stub_ai(monkeypatch, result=None)

    resp = _client().post("/api/grids/text", json={"text": "illisible"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Error processing document"}


def test_csv_upload_is_converted_and_parsed(monkeypatch, lotoquine_text):
    calls = _stub_ai(monkeypatch)

    resp = _client().post(
        "/api/grids/upload",
        files={"upload": ("tickets.csv", lotoquine_text.encode(), "text/csv")},
    )

    assert resp.status_code == 200
    assert calls == []
    assert [g["numero"] for g in resp.json()] == ["100001", "100002"]


def test_image_upload_goes_to_vision_fallback(monkeypatch):
    calls = _stub_ai(monkeypatch)
    image = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

    resp = _client().post(
        "/api/grids/upload",
        files={"upload": ("scan.png", image, "image/png")},
    )

    assert resp.status_code == 200
    assert resp.json() == AI_GRIDS
    assert calls[0]["image_base64"] == base64.b64encode(image).decode("ascii")
    assert calls[0]["mime_type"] == "image/png"


def test_unsupported_upload_surfaces_conversion_error(monkeypatch):
    calls = _stub_ai(monkeypatch)

    resp = _client().post(
        "/api/grids/upload",
        files={"upload": ("tickets.docx", b"\x00\x01\x02\x03", "application/octet-stream")},
    )

    assert resp.status_code == 422
    assert resp.json() == {"error": "Unsupported file type: tickets.docx"}
    assert calls == []


def test_analyze_image_requires_payload(monkeypatch):
    calls = _stub_ai(monkeypatch)

    resp = _client().post("/analyze-image", json={})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Base64 image data is required"}
    assert calls == []


def test_analyze_image_returns_model_json(monkeypatch):
    calls = _stub_ai(monkeypatch)

    resp = _client().post("/analyze-image", json={"base64Image": "aGVsbG8="})

    assert resp.status_code == 200
    assert resp.json() == AI_GRIDS
    assert calls[0]["image_base64"] == "aGVsbG8="


def test_analyze_image_failure_message(monkeypatch):
    _stub_ai(monkeypatch, result=None)

    resp = _client().post("/analyze-image", json={"base64Image": "aGVsbG8="})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Error processing image"}


def test_api_key_is_enforced_when_configured(monkeypatch, lotoquine_text):
    from loto_scan.core.config import settings

    _stub_ai(monkeypatch)
    monkeypatch.setattr(settings, "api_key", "s3cret")
    client = _client()

    assert client.post("/api/grids/text", json={"text": lotoquine_text}).status_code == 401
    assert (
        client.post(
            "/api/grids/text",
            json={"text": lotoquine_text},
            headers={"x-api-key": "wrong"},
        ).status_code
        == 401
    )
    resp = client.post(
        "/api/grids/text", json={"text": lotoquine_text}, headers={"x-api-key": "s3cret"}
    )
    assert resp.status_code == 200
    assert client.get("/healthz").status_code == 200


def test_corrupt_workbook_upload_is_a_conversion_error(monkeypatch):
    import zipfile
    from io import BytesIO

    calls = _stub_ai(monkeypatch)
    buf = BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("xl/workbook.xml", "<not xml")

    resp = _client().post(
        "/api/grids/upload",
        files={"upload": ("tickets.xlsx", buf.getvalue(), "application/octet-stream")},
    )

    assert resp.status_code == 422
    assert resp.json()["error"].startswith("Unreadable spreadsheet")
    assert calls == []


def test_null_model_answer_is_a_processing_error(monkeypatch):
    from loto_scan.modules.extraction import ai

    async def _null(_payload):
        return {"choices": [{"message": {"role": "assistant", "content": "null"}}]}

    monkeypatch.setattr(ai, "_post_chat_completion", _null)

    resp = _client().post("/api/grids/text", json={"text": "illisible"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Error processing document"}


def test_oversized_bodies_are_rejected(monkeypatch):
    from loto_scan.core.config import settings

    calls = _stub_ai(monkeypatch)
    monkeypatch.setattr(settings, "max_upload_bytes", 64)
    client = _client()

    resp = client.post("/analyze-image", json={"base64Image": "A" * 200})
    assert resp.status_code == 413
    assert resp.json() == {"error": "Request body is too large"}

    resp = client.post(
        "/api/grids/upload",
        files={"upload": ("tickets.txt", b"LOTOQUINE\n" * 20, "text/plain")},
    )
    assert resp.status_code == 413
    assert calls == []


def test_upload_read_stops_past_the_limit():
    import asyncio
    from io import BytesIO

    import pytest
    from fastapi import HTTPException, UploadFile

    from loto_scan.modules.extraction import api as extraction_api

    upload = UploadFile(file=BytesIO(b"x" * 100), filename="big.txt")

    assert asyncio.run(extraction_api._read_upload(upload, limit=100)) == b"x" * 100
    upload.file.seek(0)
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(extraction_api._read_upload(upload, limit=99))
    assert exc_info.value.status_code == 413
