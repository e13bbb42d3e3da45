"""
verification.py — pairwise visual verification of catalog candidates.

is_same_product_image() sends the source photo and one catalog image to the
generation service and expects {"sameProduct": true|false}. Anything that
goes wrong for a single candidate (image fetch, provider error, bad JSON)
counts as "not the same product" so the caller can move on to the next one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import images
from matcher import MatchCandidate
from providers.base import GenerationProvider, InlineImage, try_parse_json_response
from task_queue import SequentialTaskQueue

logger = logging.getLogger(__name__)

# ── Prompts ────────────────────────────────────────────────────────────────────

SAME_PRODUCT_PROMPT = """
You are an expert-level image comparison system specializing in product identification.

Your task is to determine if the two provided images represent the **same exact product**.

Use the following strict criteria to make your decision:

1. Identical product name text (visible on the packaging)
2. Matching brand logo or specific design elements
3. Consistent packaging color, layout, and visual motifs
4. Identical structure, labels, and characters (OCR-based comparison allowed)

Priority should be given to the product name.

Output Format:
Return only one of the following JSON objects, with nothing else:

If the images show the same product:
{ "sameProduct": true }

If the images show different products:
{ "sameProduct": false }

Absolutely no other commentary or explanations. Return only valid JSON."""

MOST_SIMILAR_PROMPT = """
The first image is a photo of a product. The following {count} images are catalog
pictures of candidate products, numbered 0 to {last} in the order given:

{names}

None of them was confirmed as an exact match. Pick the candidate that looks the
most similar to the photographed product (name text first, then brand, then packaging).

Return only this JSON object, with nothing else:
{{ "index": <number> }}"""


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of one visual comparison."""
    candidate: MatchCandidate
    confirmed: bool
    image_url: Optional[str] = None


# ── Single comparison ──────────────────────────────────────────────────────────

async def is_same_product_image(
    provider: GenerationProvider,
    base_image: InlineImage,
    compare_url: str,
) -> bool:
    """True only when the provider answers {"sameProduct": true}."""
    try:
        target_image = await images.fetch_image(compare_url)
        reply = await provider.generate([SAME_PRODUCT_PROMPT, base_image, target_image])
    except Exception as exc:
        logger.warning("Comparison against %s failed: %s", compare_url, exc)
        return False

    parsed = try_parse_json_response(reply, provider.full_name)
    if not isinstance(parsed, dict):
        return False
    return parsed.get("sameProduct") is True


async def verify_candidate(
    provider: GenerationProvider,
    base_image: InlineImage,
    candidate: MatchCandidate,
) -> VerificationOutcome:
    url = images.clean_url(candidate.image_url)
    if not url:
        return VerificationOutcome(candidate=candidate, confirmed=False)
    confirmed = await is_same_product_image(provider, base_image, url)
    logger.info("%s %s: %s", "✅" if confirmed else "❌", candidate.matched_name, url)
    return VerificationOutcome(candidate=candidate, confirmed=confirmed, image_url=url)


# ── Best guess ─────────────────────────────────────────────────────────────────

async def find_most_similar_product_image(
    provider: GenerationProvider,
    base_image: InlineImage,
    candidates: Sequence[MatchCandidate],
) -> Optional[MatchCandidate]:
    """
    Pick the most similar candidate when none was confirmed.

    One multi-image call asks for the index of the closest candidate. If that
    call fails, cannot be parsed, or names an index that is out of range, the
    candidate with the highest fuzzy score is returned instead.
    Returns None only for an empty candidate list.
    """
    if not candidates:
        return None
    by_score = max(candidates, key=lambda c: c.score)

    usable: list[tuple[MatchCandidate, InlineImage]] = []
    for candidate in candidates:
        url = images.clean_url(candidate.image_url)
        if not url:
            continue
        try:
            usable.append((candidate, await images.fetch_image(url)))
        except Exception as exc:
            logger.warning("Skipping %s for best guess: %s", candidate.matched_name, exc)

    if not usable:
        return by_score

    prompt = MOST_SIMILAR_PROMPT.format(
        count=len(usable),
        last=len(usable) - 1,
        names="\n".join(f"{i}. {c.matched_name}" for i, (c, _) in enumerate(usable)),
    )
    try:
        reply = await provider.generate([prompt, base_image, *[img for _, img in usable]])
    except Exception as exc:
        logger.warning("Best-guess call failed, using fuzzy score: %s", exc)
        return by_score

    parsed = try_parse_json_response(reply, provider.full_name)
    index = parsed.get("index") if isinstance(parsed, dict) else None
    if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(usable):
        return usable[index][0]

    logger.warning("Best-guess reply unusable (%r), using fuzzy score", parsed)
    return by_score


# ── Summary-path report ────────────────────────────────────────────────────────

async def verify_top_matches(
    provider: GenerationProvider,
    base_image: InlineImage,
    matches: Sequence[MatchCandidate],
    queue: Optional[SequentialTaskQueue] = None,
) -> list[VerificationOutcome]:
    """Compare the photo against every top match that has an image (no early stop)."""
    queue = queue or SequentialTaskQueue()
    with_image = [m for m in matches if images.clean_url(m.image_url)]
    return await queue.map(with_image, lambda m: verify_candidate(provider, base_image, m))
