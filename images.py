"""
images.py — image payloads for the generation service.

Local files are read from disk; catalog images are fetched over HTTP after
a small set of known data-entry fixes is applied to the URL. The catalog
has a few recurring typos (a tripled "c" in the HACCP host, a doubled "r"
in ".kr") and stray whitespace pasted into URLs.
"""
from __future__ import annotations

import logging
import mimetypes
import re
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import aiohttp

import config
from providers.base import InlineImage

logger = logging.getLogger(__name__)

# (wrong, right), applied in order
URL_FIXES: tuple[tuple[str, str], ...] = (
    ("hacccp.or.kr", "haccp.or.kr"),
    (".krr", ".kr"),
)

_WHITESPACE_RE = re.compile(r"\s+")


def clean_url(url: Optional[str]) -> Optional[str]:
    """Apply URL_FIXES and strip embedded whitespace. Empty → None."""
    if not url:
        return None
    for wrong, right in URL_FIXES:
        url = url.replace(wrong, right)
    return _WHITESPACE_RE.sub("", url) or None


def detect_mime(data: bytes, name_hint: str = "") -> str:
    """Sniff the image type from magic bytes, then the file extension; default image/png."""
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:4] == b"GIF8":
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"

    guessed, _ = mimetypes.guess_type(name_hint)
    if guessed and guessed.startswith("image/"):
        return guessed
    return "image/png"


def load_image(path: str | Path) -> InlineImage:
    """Read a local image. OSError propagates — an unreadable source image aborts the run."""
    path = Path(path)
    data = path.read_bytes()
    return InlineImage(mime_type=detect_mime(data, path.name), data=data)


async def fetch_image(url: str) -> InlineImage:
    """Download an image. Raises RuntimeError on a non-200 response."""
    timeout = aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT)
    async with aiohttp.ClientSession() as session:
        async with session.get(url, timeout=timeout) as resp:
            if resp.status != 200:
                raise RuntimeError(f"Image fetch failed {resp.status}: {url}")
            data = await resp.read()

    # query string is not part of the extension
    return InlineImage(mime_type=detect_mime(data, urlsplit(url).path), data=data)
