"""
Tests for server.py — upload and health endpoints.

Covers:
  - GET /health: catalog size in the body
  - POST /upload: recognized text → top matches JSON
  - missing "image" field → 400
  - recognition failure → 500 with a generic error body
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
from aiohttp import test_utils

from server import build_web_app


def upload_form(field: str = "image") -> aiohttp.FormData:
    form = aiohttp.FormData()
    form.add_field(field, b"\xff\xd8\xffjpeg", filename="label.jpg", content_type="image/jpeg")
    return form


@pytest.mark.asyncio
class TestUploadServer:
    async def test_health(self, drinks_catalog):
        async with test_utils.TestClient(test_utils.TestServer(build_web_app(drinks_catalog))) as client:
            resp = await client.get("/health")
            assert resp.status == 200
            assert "5 products loaded" in await resp.text()

    async def test_upload_returns_matches(self, drinks_catalog):
        with patch("recognition.extract_text", new_callable=AsyncMock,
                   return_value="칠성사이다\n500ml\n펩시콜라") as extract:
            async with test_utils.TestClient(test_utils.TestServer(build_web_app(drinks_catalog))) as client:
                resp = await client.post("/upload", data=upload_form())
                assert resp.status == 200
                body = await resp.json()

        extract.assert_awaited_once_with(b"\xff\xd8\xffjpeg")
        matches = body["matches"]
        assert len(matches) == 3
        assert {m["match"] for m in matches[:2]} == {"칠성사이다", "펩시콜라"}
        first = matches[0]
        assert set(first) == {"match", "alias", "line", "score", "allergens"}
        assert first["score"] == 1.0
        assert first["allergens"] == ["없음"]

    async def test_upload_no_text_gives_empty_list(self, drinks_catalog):
        with patch("recognition.extract_text", new_callable=AsyncMock, return_value=""):
            async with test_utils.TestClient(test_utils.TestServer(build_web_app(drinks_catalog))) as client:
                resp = await client.post("/upload", data=upload_form())
                assert resp.status == 200
                assert await resp.json() == {"matches": []}

    async def test_missing_image_field(self, drinks_catalog):
        async with test_utils.TestClient(test_utils.TestServer(build_web_app(drinks_catalog))) as client:
            resp = await client.post("/upload", data=upload_form(field="photo"))
            assert resp.status == 400

    async def test_recognition_error_is_500(self, drinks_catalog):
        with patch("recognition.extract_text", new_callable=AsyncMock,
                   side_effect=RuntimeError("GOOGLE_VISION_API_KEY is not set.")):
            async with test_utils.TestClient(test_utils.TestServer(build_web_app(drinks_catalog))) as client:
                resp = await client.post("/upload", data=upload_form())
                assert resp.status == 500
                assert await resp.json() == {"error": "OCR processing failed"}
