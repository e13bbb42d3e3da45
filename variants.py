"""
variants.py — Korean ↔ English name variants and detected product names.

OCR on a Korean label often reads only the English half (or vice versa),
while the catalog may list the product under the other language. Each
candidate is therefore expanded into {original, korean, english} before
matching. Expansion can never fail the run: on any problem the original
name is returned alone.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from providers.base import GenerationProvider, InlineImage, try_parse_json_response

logger = logging.getLogger(__name__)

# ── Prompts ────────────────────────────────────────────────────────────────────

_PAIR_PROMPT = """
"{name}"를 한국어 <-> 영어 1:1 변환.
다른 출력 없이 JSON 형식으로만.
예시 :
{{
  "korean": "한글",
  "english": "영어"
}}
"""

_DETECT_PROMPT = """다음 이미지를 분석해서 상품별로 반드시 다음 형식의 JSON만을 반환.
{
  "상품명1": { "한글": "한글명", "영어": "영문명" },
  "상품명2": { "한글": "한글명", "영어": "영문명" }
}"""


# ── Variant expansion ──────────────────────────────────────────────────────────

async def expand_variants(name: str, provider: GenerationProvider) -> list[str]:
    """
    Return [name, korean, english] with duplicates and blanks removed.
    name is always first, even when the provider call or its JSON fails.
    """
    variants: dict[str, None] = {name: None}

    try:
        raw = await provider.generate([_PAIR_PROMPT.format(name=name)])
    except Exception as exc:
        logger.warning("[%s] Variant expansion failed for '%s': %s", provider.full_name, name, exc)
        return list(variants)

    parsed = try_parse_json_response(raw, provider.full_name)
    if not isinstance(parsed, dict):
        logger.warning("Variant expansion for '%s' returned no usable pair", name)
        return list(variants)

    logger.info("Variants for '%s': %s", name, parsed)
    for key in ("korean", "english"):
        value = parsed.get(key)
        if isinstance(value, str) and value.strip():
            variants[value.strip()] = None
    return list(variants)


async def expand_all(candidates: Iterable[str], provider: GenerationProvider) -> list[str]:
    """Expand every candidate, one call at a time; union in first-seen order."""
    merged: dict[str, None] = {}
    for candidate in candidates:
        for variant in await expand_variants(candidate, provider):
            merged[variant] = None
    return list(merged)


# ── Detected product names ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class DetectedProduct:
    """A product the generation service spotted in the photo."""
    korean: str
    english: str = ""

    @property
    def display(self) -> str:
        return f"{self.korean} ({self.english})" if self.english else self.korean


async def extract_product_names_from_image(
    image: InlineImage,
    provider: GenerationProvider,
) -> list[DetectedProduct]:
    """
    Ask the provider for every product in the photo.
    A failed call or unparseable output → [] (logged); entries without a Korean
    name fall back to the English one, entries with neither are dropped.
    """
    try:
        raw = await provider.generate([image, _DETECT_PROMPT])
    except Exception as exc:
        logger.warning("[%s] Product detection failed: %s", provider.full_name, exc)
        return []

    parsed = try_parse_json_response(raw, provider.full_name, default={})
    if not isinstance(parsed, dict):
        logger.warning("[%s] Product detection returned %s, expected an object",
                       provider.full_name, type(parsed).__name__)
        return []

    products: list[DetectedProduct] = []
    for key, names in parsed.items():
        if not isinstance(names, dict):
            continue
        korean  = str(names.get("한글") or "").strip()
        english = str(names.get("영어") or "").strip()
        if not korean and not english:
            logger.debug("Detected entry '%s' has no name", key)
            continue
        products.append(DetectedProduct(korean=korean or english, english=english))

    logger.info("Detected %d product(s): %s", len(products), [p.display for p in products])
    return products
