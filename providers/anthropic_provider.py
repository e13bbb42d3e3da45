"""
Anthropic generation provider — supports claude-3-5-sonnet and claude-3-haiku.

Claude reads fine print on packaging well, which makes it a reasonable
second choice for the pairwise image comparison.
"""
from __future__ import annotations

import time
import logging
from typing import Sequence

import anthropic

from providers.base import GenerationProvider, InlineImage, Part

logger = logging.getLogger(__name__)


class AnthropicProvider(GenerationProvider):

    def __init__(self, api_key: str, model: str = "claude-3-haiku-20240307"):
        self.name = "anthropic"
        self.model_id = model
        self._client = anthropic.AsyncAnthropic(api_key=api_key)

    async def generate(self, parts: Sequence[Part]) -> str:
        content: list[dict] = []
        for part in parts:
            if isinstance(part, InlineImage):
                content.append({
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": part.mime_type,
                        "data": part.to_base64(),
                    },
                })
            else:
                content.append({"type": "text", "text": part})

        t0 = time.monotonic()
        message = await self._client.messages.create(
            model=self.model_id,
            max_tokens=1024,
            messages=[{"role": "user", "content": content}],
        )
        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("[%s] reply in %dms", self.full_name, latency_ms)

        return message.content[0].text if message.content else ""
