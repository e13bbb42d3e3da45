"""
OpenAI generation provider — supports gpt-4o and gpt-4o-mini.

Images are sent as base64 data URLs with detail=high so small label text
survives downscaling.
"""
from __future__ import annotations

import time
import logging
from typing import Sequence

from openai import AsyncOpenAI

from providers.base import GenerationProvider, InlineImage, Part

logger = logging.getLogger(__name__)


class OpenAIProvider(GenerationProvider):

    def __init__(self, api_key: str, model: str = "gpt-4o-mini"):
        self.name = "openai"
        self.model_id = model
        self._client = AsyncOpenAI(api_key=api_key)

    async def generate(self, parts: Sequence[Part]) -> str:
        content: list[dict] = []
        for part in parts:
            if isinstance(part, InlineImage):
                content.append({
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{part.mime_type};base64,{part.to_base64()}",
                        "detail": "high",
                    },
                })
            else:
                content.append({"type": "text", "text": part})

        t0 = time.monotonic()
        response = await self._client.chat.completions.create(
            model=self.model_id,
            max_tokens=1024,
            temperature=0,
            messages=[{"role": "user", "content": content}],
        )
        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("[%s] reply in %dms", self.full_name, latency_ms)

        return response.choices[0].message.content or ""
