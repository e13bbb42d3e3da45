"""
resolver.py — public interface for the short "top matches" path.

  resolve(text)          recognized text → ranked MatchCandidates
  resolve_image(path)    photo → text recognition → (variants) → ranked MatchCandidates

The long path with visual verification lives in refinement.resolve_with_verification.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import recognition
from candidates import extract_candidates
from catalog import CatalogIndex
from matcher import MatchCandidate, match_product_names
from providers.base import GenerationProvider
from variants import expand_all

logger = logging.getLogger(__name__)

__all__ = ["resolve", "resolve_image"]


def resolve(
    recognized_text: str,
    catalog: CatalogIndex,
    top_n: Optional[int] = None,
) -> list[MatchCandidate]:
    """Extract candidate lines from recognized text and rank catalog matches (default config.TOP_N)."""
    candidates = extract_candidates(recognized_text)
    logger.info("%d candidate line(s): %s", len(candidates), candidates)
    return match_product_names(candidates, catalog, top_n=top_n)


async def resolve_image(
    image_path: str | Path,
    catalog: CatalogIndex,
    provider: Optional[GenerationProvider] = None,
    top_n: Optional[int] = None,
) -> list[MatchCandidate]:
    """
    Recognize text in the photo and rank catalog matches.

    With a provider, every candidate line is first expanded into its
    Korean/English variants (one call per line, in order); without one the
    raw lines are matched directly.
    """
    text = await recognition.extract_text_from_file(image_path)
    candidates = extract_candidates(text)
    logger.info("%d candidate line(s): %s", len(candidates), candidates)

    if provider is not None and candidates:
        candidates = await expand_all(candidates, provider)
        logger.info("%d name variant(s) after expansion", len(candidates))

    return match_product_names(candidates, catalog, top_n=top_n)
