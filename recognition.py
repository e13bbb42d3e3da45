"""
recognition.py — Google Cloud Vision TEXT_DETECTION client.

Only the full-text annotation is used: textAnnotations[0].description holds
every recognized line joined by newlines.

A failed or empty recognition returns "" so the caller ends up with an empty
candidate list instead of an error. A missing API key is a configuration
problem and raises.
"""
from __future__ import annotations

import asyncio
import base64
import logging
from pathlib import Path

import aiohttp

import config

logger = logging.getLogger(__name__)

VISION_URL = "https://vision.googleapis.com/v1/images:annotate"


async def extract_text(image_bytes: bytes) -> str:
    """Run text detection on image_bytes. Returns the recognized text or ""."""
    api_key = config.GOOGLE_VISION_API_KEY
    if not api_key:
        raise RuntimeError("GOOGLE_VISION_API_KEY is not set.")

    body = {
        "requests": [
            {
                "image": {"content": base64.b64encode(image_bytes).decode()},
                "features": [{"type": "TEXT_DETECTION"}],
            }
        ]
    }

    try:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                VISION_URL,
                params={"key": api_key},
                json=body,
                timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT),
            ) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    logger.warning("Vision API error %d: %s", resp.status, text[:200])
                    return ""
                data = await resp.json()
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
        # ValueError: a 200 response whose body is not JSON
        logger.warning("Vision API call failed: %s", exc)
        return ""

    return _first_description(data)


def _first_description(data: object) -> str:
    if not isinstance(data, dict):
        logger.warning("Vision API returned %s, expected an object", type(data).__name__)
        return ""
    responses = data.get("responses") or [{}]
    annotations = responses[0].get("textAnnotations") or []
    if not annotations:
        logger.info("Vision API found no text")
        return ""
    return annotations[0].get("description", "") or ""


async def extract_text_from_file(path: str | Path) -> str:
    """Read path and run text detection on it. OSError propagates."""
    return await extract_text(Path(path).read_bytes())
