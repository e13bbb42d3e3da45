"""
style.py — console report formatting.

All text the CLI prints for a result goes through this module, so the
top-matches report, the image check and the verification outcome share one
visual language: a header, a divider, one block per item.
"""
from __future__ import annotations

from typing import Sequence

from matcher import MatchCandidate
from refinement import ResolutionOutcome, ResolutionStatus
from verification import VerificationOutcome

# ── Visual constants ──────────────────────────────────────────────────────────

DIV  = "━━━━━━━━━━━━━━━━━━━━━━━━━━"    # thick divider
SDIV = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"    # subtle divider

STATUS = {
    ResolutionStatus.CONFIRMED:  "✅ 최종 매칭된 상품",
    ResolutionStatus.BEST_GUESS: "🟡 가장 유사한 제품 (이미지 기반 추천)",
    ResolutionStatus.NO_MATCH:   "❌ 최종 매칭 실패",
}

NO_ALLERGEN_INFO = "정보 없음"


def allergen_line(allergens: Sequence[str]) -> str:
    return f"⚠️ 알레르기 정보: {', '.join(allergens) if allergens else NO_ALLERGEN_INFO}"


# ══════════════════════════════════════════════════════════════════════════════
# TOP MATCHES
# ══════════════════════════════════════════════════════════════════════════════

def format_top_matches(matches: Sequence[MatchCandidate]) -> str:
    if not matches:
        return f"🔍 OCR 분석 결과\n{DIV}\n❌ 일치하는 제품이 없습니다."

    lines = [f"🔍 OCR 분석된 유사 제품 {len(matches)}가지", DIV]
    for idx, m in enumerate(matches, 1):
        alias = f"  (별칭: {m.alias_used})" if m.alias_used != m.matched_name else ""
        lines += [
            f"{idx}. 제품명: {m.matched_name}{alias}",
            f"   원본 텍스트: \"{m.source_line}\"   유사도: {m.score:.2f}",
            f"   알레르겐: [{', '.join(m.allergens)}]",
        ]
    return "\n".join(lines)


def format_verification(outcomes: Sequence[VerificationOutcome]) -> str:
    if not outcomes:
        return f"🖼️ 이미지 비교\n{SDIV}\n비교할 이미지가 없습니다."

    lines = ["🖼️ 이미지 비교 결과", SDIV]
    for o in outcomes:
        verdict = "유사함" if o.confirmed else "다름"
        lines.append(f"{'✅' if o.confirmed else '▫️'} {o.candidate.matched_name} → {verdict}")
        lines.append(f"   {o.image_url}")
    return "\n".join(lines)


# ══════════════════════════════════════════════════════════════════════════════
# VERIFICATION OUTCOME
# ══════════════════════════════════════════════════════════════════════════════

def format_outcome(outcome: ResolutionOutcome) -> str:
    lines = [f"📌 분석된 상품명: {outcome.product_name}", SDIV]

    if outcome.checked:
        lines.append("🔍 이미지 비교 대상: " + ", ".join(outcome.checked))

    lines.append(STATUS[outcome.status])
    record = outcome.record
    if record is not None:
        lines += [
            f"- {record.primary_name}",
            allergen_line(record.allergens),
            f"🖼️ 이미지: {outcome.image_url or '-'}",
        ]
    return "\n".join(lines)


def format_outcomes(outcomes: Sequence[ResolutionOutcome]) -> str:
    if not outcomes:
        return f"📌 상품 인식 결과\n{DIV}\n❌ 이미지에서 상품명을 찾지 못했습니다."
    return f"\n{DIV}\n".join(format_outcome(o) for o in outcomes)
