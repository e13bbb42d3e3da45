"""
Google Gemini generation provider — uses the google-genai SDK.

Default provider: variant expansion, re-ranking and image comparison were all
tuned against gemini-2.0-flash. Safety filters are switched off because
packaging photos (alcohol, medicine labels) trip them for no reason.
"""
from __future__ import annotations

import time
import logging
from typing import Sequence

from google import genai
from google.genai import types as genai_types

from providers.base import GenerationProvider, InlineImage, Part

logger = logging.getLogger(__name__)

_SAFETY_OFF = [
    genai_types.SafetySetting(category="HARM_CATEGORY_HARASSMENT",        threshold="OFF"),
    genai_types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH",       threshold="OFF"),
    genai_types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="OFF"),
    genai_types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="OFF"),
]


class GeminiProvider(GenerationProvider):

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash"):
        self.name     = "google"
        self.model_id = model
        self._client  = genai.Client(api_key=api_key)

    async def generate(self, parts: Sequence[Part]) -> str:
        contents: list = []
        for part in parts:
            if isinstance(part, InlineImage):
                contents.append(genai_types.Part.from_bytes(data=part.data, mime_type=part.mime_type))
            else:
                contents.append(part)

        gen_config = genai_types.GenerateContentConfig(
            temperature=0,
            safety_settings=_SAFETY_OFF,
        )

        t0 = time.monotonic()
        response = await self._client.aio.models.generate_content(
            model=self.model_id,
            contents=contents,
            config=gen_config,
        )
        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.debug("[%s] reply in %dms", self.full_name, latency_ms)

        return response.text or ""
