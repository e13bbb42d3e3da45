"""
refinement.py — refinement & verification pipeline.

Per detected product name:

  1. coarse filter   — wide fuzzy match (COARSE_TOP_N), keep records with an image
  2. LLM re-rank     — provider keeps at most RERANK_TOP_K plausible names
  3. verification    — compare photo vs. each candidate image, in order;
                       the first confirmed candidate wins      → CONFIRMED
  4. fallback        — most similar candidate                  → BEST_GUESS
                       nothing to compare                      → NO_MATCH

A re-rank reply that is not a JSON array aborts the run with RerankError:
without it there is no trustworthy candidate set to verify.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import config
import images
from catalog import CatalogIndex, ProductRecord
from matcher import MatchCandidate, find_roughly_similar_products
from providers.base import GenerationProvider, InlineImage, parse_json_response
from task_queue import SequentialTaskQueue
from variants import extract_product_names_from_image
from verification import find_most_similar_product_image, verify_candidate

logger = logging.getLogger(__name__)

_RERANK_PROMPT = """
다음은 "{name}"이라는 상품명과 유사한 제품 이름 목록이야.
가장 유사한 상품을 최대 {top_k}개까지 JSON 배열로만 반환해줘.

예시:
["제품A", "제품B", "제품C"]

제품 리스트:
{candidates}
"""


class RerankError(ValueError):
    """The re-rank reply could not be turned into a list of names."""


class ResolutionStatus(str, enum.Enum):
    CONFIRMED  = "confirmed"
    BEST_GUESS = "best_guess"
    NO_MATCH   = "no_match"


@dataclass
class ResolutionOutcome:
    """Terminal state of the pipeline for one detected product name."""
    product_name: str
    status: ResolutionStatus
    candidate: Optional[MatchCandidate] = None
    image_url: Optional[str] = None
    checked: list[str] = field(default_factory=list)   # names compared, in order

    @property
    def record(self) -> Optional[ProductRecord]:
        return self.candidate.record if self.candidate else None

    def to_dict(self) -> dict:
        record = self.record
        return {
            "product_name": self.product_name,
            "status":       self.status.value,
            "match":        record.primary_name if record else None,
            "allergens":    list(record.allergens) if record else [],
            "image_url":    self.image_url,
            "checked":      list(self.checked),
        }


# ── Steps ──────────────────────────────────────────────────────────────────────

def coarse_filter(
    product_name: str,
    catalog: CatalogIndex,
    top_n: Optional[int] = None,
) -> list[MatchCandidate]:
    """Top-N fuzzy matches (default config.COARSE_TOP_N) whose record has an image reference."""
    matches = find_roughly_similar_products(product_name, catalog, top_n=top_n)
    return [m for m in matches if images.clean_url(m.image_url)]


async def rerank_with_llm(
    provider: GenerationProvider,
    product_name: str,
    candidates: Sequence[MatchCandidate],
    top_k: Optional[int] = None,
) -> list[MatchCandidate]:
    """
    Ask the provider for at most top_k (default config.RERANK_TOP_K) plausible
    names and keep every candidate the reply names, in the original coarse
    order. top_k only goes into the prompt; the reply is never truncated.
    Raises RerankError on an unusable reply.
    """
    top_k = config.RERANK_TOP_K if top_k is None else top_k
    prompt = _RERANK_PROMPT.format(
        name=product_name,
        top_k=top_k,
        candidates="\n".join(f"- {c.matched_name}" for c in candidates),
    )
    reply = await provider.generate([prompt])

    try:
        names = parse_json_response(reply, provider.full_name)
    except ValueError as exc:
        raise RerankError(str(exc)) from exc
    if not isinstance(names, list):
        logger.error("[%s] Re-rank reply is %s, expected a list", provider.full_name, type(names).__name__)
        raise RerankError(f"[{provider.full_name}] re-rank reply is not a JSON array")

    keep = {str(n).strip() for n in names}
    refined = [c for c in candidates if c.matched_name in keep]
    logger.info("Re-rank '%s': %d → %d candidate(s)", product_name, len(candidates), len(refined))
    return refined


async def verify_product_name(
    product_name: str,
    base_image: InlineImage,
    catalog: CatalogIndex,
    provider: GenerationProvider,
    queue: Optional[SequentialTaskQueue] = None,
) -> ResolutionOutcome:
    """Run steps 1-4 for one product name."""
    queue = queue or SequentialTaskQueue(config.VERIFY_CONCURRENCY)

    candidates = coarse_filter(product_name, catalog)
    if not candidates:
        logger.info("No catalog candidates with images for '%s'", product_name)
        return ResolutionOutcome(product_name=product_name, status=ResolutionStatus.NO_MATCH)

    refined = await rerank_with_llm(provider, product_name, candidates)
    if not refined:
        return ResolutionOutcome(product_name=product_name, status=ResolutionStatus.NO_MATCH)

    checked: list[str] = []

    async def _check(candidate: MatchCandidate) -> bool:
        checked.append(candidate.matched_name)
        outcome = await verify_candidate(provider, base_image, candidate)
        return outcome.confirmed

    confirmed = await queue.first_match(refined, _check)
    if confirmed is not None:
        logger.info("✅ Confirmed '%s' → %s", product_name, confirmed.matched_name)
        return ResolutionOutcome(
            product_name=product_name,
            status=ResolutionStatus.CONFIRMED,
            candidate=confirmed,
            image_url=images.clean_url(confirmed.image_url),
            checked=checked,
        )

    guess = await find_most_similar_product_image(provider, base_image, refined)
    logger.info("🟡 Best guess for '%s' → %s", product_name, guess.matched_name if guess else None)
    return ResolutionOutcome(
        product_name=product_name,
        status=ResolutionStatus.BEST_GUESS if guess else ResolutionStatus.NO_MATCH,
        candidate=guess,
        image_url=images.clean_url(guess.image_url) if guess else None,
        checked=checked,
    )


# ── Public entry point ─────────────────────────────────────────────────────────

async def resolve_with_verification(
    image_path: str | Path,
    catalog: CatalogIndex,
    provider: GenerationProvider,
    queue: Optional[SequentialTaskQueue] = None,
) -> list[ResolutionOutcome]:
    """
    Detect every product in the photo and resolve each one against the catalog,
    one product at a time. Returns one outcome per detected product.
    """
    base_image = images.load_image(image_path)
    products = await extract_product_names_from_image(base_image, provider)

    outcomes: list[ResolutionOutcome] = []
    for product in products:
        logger.info("📌 Detected product: %s", product.display)
        outcomes.append(await verify_product_name(product.korean, base_image, catalog, provider, queue))
    return outcomes
