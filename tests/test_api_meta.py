from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from apps.api.main import app
from core.rules.mode_store import ModeStore


@pytest.mark.anyio
async def test_healthz_returns_ok_and_request_id() -> None:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Prose-Request-Id"]


@pytest.mark.anyio
async def test_meta_reports_defaults_and_limits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROSE_MAX_SUBSTITUTIONS", "not-a-number")
    monkeypatch.delenv("PROSE_MAX_INPUT_CHARS", raising=False)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/meta")

    assert response.status_code == 200
    body = response.json()
    assert body["split_kinds"] == ["count", "pattern"]
    assert body["default_exception_words"] == ["jpg", "png", "com", "vn", "net"]
    assert body["max_substitutions"] == 50_000
    assert body["max_input_chars"] == 2_000_000
    assert body["version"]


@pytest.mark.anyio
async def test_modes_lists_store_contents(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store_path = tmp_path / "prose_settings.json"
    ModeStore(store_path).create("novel")
    monkeypatch.setenv("PROSE_SETTINGS_STORE", str(store_path))

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/v1/modes")

    assert response.status_code == 200
    assert response.json() == {"modes": ["default", "novel"], "current_mode": "novel"}
