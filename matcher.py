"""
matcher.py — fuzzy matching of candidate lines against the catalog.

Scoring uses the Dice coefficient over character bigrams of the normalized
strings: 2·|common bigrams| / (|bigrams a| + |bigrams b|), with identical
strings scoring 1.0. Every alias of a record is scored independently; the
best-scoring pair per catalog product is kept.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

import config
from candidates import normalize
from catalog import CatalogIndex, ProductRecord

logger = logging.getLogger(__name__)


def compare_two_strings(first: str, second: str) -> float:
    """Bigram Dice similarity in [0, 1]. Whitespace is ignored."""
    first  = "".join(first.split())
    second = "".join(second.split())

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = Counter(first[i:i + 2] for i in range(len(first) - 1))
    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i:i + 2]
        if first_bigrams[bigram] > 0:
            first_bigrams[bigram] -= 1
            intersection += 1

    return 2.0 * intersection / (len(first) + len(second) - 2)


@dataclass(frozen=True)
class MatchCandidate:
    """One scored (candidate line × catalog name) pair."""
    source_line: str
    matched_name: str           # record.primary_name
    alias_used: str             # the name or alias that produced the score
    score: float
    record: ProductRecord

    @property
    def allergens(self) -> tuple[str, ...]:
        return self.record.allergens

    @property
    def image_url(self) -> Optional[str]:
        return self.record.image_url

    def to_dict(self) -> dict:
        return {
            "match":     self.matched_name,
            "alias":     self.alias_used,
            "line":      self.source_line,
            "score":     round(self.score, 4),
            "allergens": list(self.allergens),
        }


def match_product_names(
    candidates: Iterable[str],
    catalog: CatalogIndex,
    top_n: Optional[int] = None,
) -> list[MatchCandidate]:
    """
    Score every candidate against every catalog name and alias.
    top_n defaults to config.TOP_N.

    Steps:
      1. Score each (line, name) pair on normalized forms.
      2. Sort by score, highest first (stable → enumeration order breaks ties).
      3. Keep the first entry per catalog product.
      4. Truncate to top_n.
    """
    top_n = config.TOP_N if top_n is None else top_n
    names = catalog.names_with_aliases()
    scored: list[MatchCandidate] = []

    for line in candidates:
        norm_line = normalize(line)
        for name, record in names:
            scored.append(MatchCandidate(
                source_line=line,
                matched_name=record.primary_name,
                alias_used=name,
                score=compare_two_strings(norm_line, normalize(name)),
                record=record,
            ))

    scored.sort(key=lambda m: m.score, reverse=True)

    seen: set[str] = set()
    top: list[MatchCandidate] = []
    for match in scored:
        if match.matched_name in seen:
            continue
        seen.add(match.matched_name)
        top.append(match)
        if len(top) >= top_n:
            break

    logger.debug("Scored %d pair(s) → %d match(es)", len(scored), len(top))
    return top


def find_roughly_similar_products(
    target_name: str,
    catalog: CatalogIndex,
    top_n: Optional[int] = None,
) -> list[MatchCandidate]:
    """Wide match for a single detected name, used as the refinement coarse pass."""
    top_n = config.COARSE_TOP_N if top_n is None else top_n
    return match_product_names([target_name], catalog, top_n=top_n)
