"""
Shared types and base class for all generation providers.

A provider takes a structured prompt — text parts plus zero or more inline
images — and returns the model's free-form text. Callers that expect JSON
run the reply through parse_json_response (fatal) or
try_parse_json_response (tolerant).
"""
from __future__ import annotations

import base64
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence, Union

logger = logging.getLogger(__name__)


# ── Prompt parts ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InlineImage:
    """An image sent inline with a prompt."""
    mime_type: str
    data: bytes

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode()


Part = Union[str, InlineImage]


# ── Structured payload extraction ──────────────────────────────────────────────

# ```json ... ``` or ``` ... ``` around the whole reply
_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*|\s*```$")


def strip_code_fence(raw: str | None) -> str:
    """Trim the reply and drop a surrounding Markdown code fence if present."""
    text = (raw or "").strip()
    return _FENCE_RE.sub("", text).strip()


def parse_json_response(raw: str | None, provider_name: str) -> Any:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Returns whatever JSON value was sent (object, array, ...).
    Raises ValueError on parse failure.
    """
    text = strip_code_fence(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", provider_name, (raw or "")[:300])
        raise ValueError(f"[{provider_name}] JSON parse error: {exc}") from exc


def try_parse_json_response(raw: str | None, provider_name: str, default: Any = None) -> Any:
    """Like parse_json_response, but returns default instead of raising."""
    text = strip_code_fence(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("[%s] Could not parse JSON, using default: %s", provider_name, (raw or "")[:300])
        return default


# ── Abstract base ──────────────────────────────────────────────────────────────

class GenerationProvider(ABC):
    """Base class all generation providers must implement."""

    name: str           # e.g. "google"
    model_id: str       # e.g. "gemini-2.0-flash"

    @abstractmethod
    async def generate(self, parts: Sequence[Part]) -> str:
        """Send text and inline images in order. Returns the raw reply text."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"
