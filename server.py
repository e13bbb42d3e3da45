"""
server.py — HTTP upload endpoint.

Runs an aiohttp web server around the short "top matches" path.

Endpoints:
  POST /upload   multipart form with an "image" file field
                 → {"matches": [{"match", "alias", "line", "score", "allergens"}, ...]}
  GET  /health   plain-text health check

The catalog is loaded once by the caller and shared read-only by every request.
"""
from __future__ import annotations

import logging

from aiohttp import web

import config
import recognition
from catalog import CatalogIndex
from resolver import resolve

logger = logging.getLogger(__name__)

CATALOG_KEY = web.AppKey("catalog", CatalogIndex)


# ── Request handlers ───────────────────────────────────────────────────────────

async def handle_upload(request: web.Request) -> web.Response:
    """Recognize text in the uploaded image and return the top catalog matches."""
    form = await request.post()
    field = form.get("image")
    if not isinstance(field, web.FileField):
        return web.json_response({"error": "multipart field 'image' is required"}, status=400)

    try:
        image_bytes = field.file.read()
        text = await recognition.extract_text(image_bytes)
        matches = resolve(text, request.app[CATALOG_KEY], top_n=config.TOP_N)
    except Exception as exc:
        logger.error("Upload processing failed: %s", exc, exc_info=True)
        return web.json_response({"error": "OCR processing failed"}, status=500)

    return web.json_response({"matches": [m.to_dict() for m in matches]})


async def handle_health(request: web.Request) -> web.Response:
    """Health check — returns 200 OK with the catalog size."""
    return web.Response(
        text=f"OK — {len(request.app[CATALOG_KEY])} products loaded",
        content_type="text/plain",
    )


# ── App factory ────────────────────────────────────────────────────────────────

def build_web_app(catalog: CatalogIndex) -> web.Application:
    app = web.Application()
    app[CATALOG_KEY] = catalog
    app.router.add_post("/upload", handle_upload)
    app.router.add_get("/health",  handle_health)
    return app


async def start_server(catalog: CatalogIndex) -> web.AppRunner:
    """Start the web server. Returns runner so caller can shut it down cleanly."""
    app    = build_web_app(catalog)
    runner = web.AppRunner(app, access_log=logger)
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", config.SERVER_PORT)
    await site.start()
    logger.info("📷 Upload server listening on port %d", config.SERVER_PORT)
    return runner
