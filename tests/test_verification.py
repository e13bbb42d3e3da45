"""
Tests for verification.py.

Covers:
  - is_same_product_image(): strict boolean, tolerant of fences, failures → False
  - verify_candidate(): URL correction, missing image
  - find_most_similar_product_image(): index reply, fallbacks to fuzzy score
  - verify_top_matches(): every match with an image, in order
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from conftest import FakeProvider, make_record
from matcher import MatchCandidate
from providers.base import InlineImage
from verification import (
    SAME_PRODUCT_PROMPT,
    find_most_similar_product_image,
    is_same_product_image,
    verify_candidate,
    verify_top_matches,
)

CANDIDATE_IMAGE = InlineImage(mime_type="image/jpeg", data=b"\xff\xd8\xffcandidate")


def make_candidate(name: str, score: float = 0.5, image_url="http://img.kr/x.jpg") -> MatchCandidate:
    record = make_record(name, image_url=image_url)
    return MatchCandidate(source_line=name, matched_name=name, alias_used=name, score=score, record=record)


@pytest.fixture
def fetch():
    with patch("images.fetch_image", new_callable=AsyncMock, return_value=CANDIDATE_IMAGE) as mock:
        yield mock


# ── is_same_product_image ─────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestIsSameProductImage:
    async def test_true_reply(self, fetch, base_image):
        provider = FakeProvider(['{ "sameProduct": true }'])
        assert await is_same_product_image(provider, base_image, "http://img.kr/a.jpg") is True
        assert provider.calls[0] == [SAME_PRODUCT_PROMPT, base_image, CANDIDATE_IMAGE]
        fetch.assert_awaited_once_with("http://img.kr/a.jpg")

    async def test_false_reply(self, fetch, base_image):
        provider = FakeProvider(['{ "sameProduct": false }'])
        assert await is_same_product_image(provider, base_image, "u") is False

    async def test_fenced_reply(self, fetch, base_image):
        provider = FakeProvider(['```json\n{"sameProduct": true}\n```'])
        assert await is_same_product_image(provider, base_image, "u") is True

    @pytest.mark.parametrize("reply", ['{"sameProduct": "true"}', '{"sameProduct": 1}', "true", "네, 같은 제품입니다", "{}"])
    async def test_anything_but_strict_true_is_false(self, fetch, base_image, reply):
        provider = FakeProvider([reply])
        assert await is_same_product_image(provider, base_image, "u") is False

    async def test_provider_error_is_false(self, fetch, base_image):
        provider = FakeProvider([RuntimeError("503")])
        assert await is_same_product_image(provider, base_image, "u") is False

    async def test_fetch_error_is_false_and_skips_provider(self, base_image):
        provider = FakeProvider([])
        with patch("images.fetch_image", new_callable=AsyncMock, side_effect=RuntimeError("404")):
            assert await is_same_product_image(provider, base_image, "u") is False
        assert provider.calls == []


# ── verify_candidate ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestVerifyCandidate:
    async def test_uses_corrected_url(self, fetch, base_image):
        provider = FakeProvider(['{"sameProduct": true}'])
        candidate = make_candidate("칠성사이다", image_url="http://www.hacccp.or.kr/ci der.jpg")
        outcome = await verify_candidate(provider, base_image, candidate)
        assert outcome.confirmed is True
        assert outcome.image_url == "http://www.haccp.or.kr/cider.jpg"
        fetch.assert_awaited_once_with("http://www.haccp.or.kr/cider.jpg")

    async def test_no_image_is_unconfirmed_without_calls(self, fetch, base_image):
        provider = FakeProvider([])
        outcome = await verify_candidate(provider, base_image, make_candidate("콜라", image_url=None))
        assert outcome.confirmed is False
        assert provider.calls == []


# ── find_most_similar_product_image ───────────────────────────────────────────

@pytest.mark.asyncio
class TestFindMostSimilar:
    async def test_empty_list(self, fetch, base_image):
        assert await find_most_similar_product_image(FakeProvider([]), base_image, []) is None

    async def test_index_reply_selects_candidate(self, fetch, base_image):
        candidates = [make_candidate("A", 0.9), make_candidate("B", 0.4), make_candidate("C", 0.3)]
        provider = FakeProvider(['{"index": 2}'])
        assert await find_most_similar_product_image(provider, base_image, candidates) is candidates[2]

        parts = provider.calls[0]
        assert parts[1] is base_image
        assert len(parts) == 2 + 3           # prompt, photo, three candidates
        assert "2. C" in parts[0]

    async def test_bad_reply_falls_back_to_score(self, fetch, base_image):
        candidates = [make_candidate("A", 0.2), make_candidate("B", 0.8)]
        provider = FakeProvider(["B looks closest"])
        assert await find_most_similar_product_image(provider, base_image, candidates) is candidates[1]

    @pytest.mark.parametrize("reply", ['{"index": 5}', '{"index": -1}', '{"index": true}', '{"index": "0"}'])
    async def test_unusable_index_falls_back_to_score(self, fetch, base_image, reply):
        candidates = [make_candidate("A", 0.2), make_candidate("B", 0.8)]
        result = await find_most_similar_product_image(FakeProvider([reply]), base_image, candidates)
        assert result is candidates[1]

    async def test_provider_error_falls_back_to_score(self, fetch, base_image):
        candidates = [make_candidate("A", 0.7), make_candidate("B", 0.1)]
        provider = FakeProvider([RuntimeError("boom")])
        assert await find_most_similar_product_image(provider, base_image, candidates) is candidates[0]

    async def test_images_that_fail_to_fetch_are_left_out(self, base_image):
        candidates = [make_candidate("A", 0.9), make_candidate("B", 0.5)]
        provider = FakeProvider(['{"index": 0}'])
        with patch("images.fetch_image", new_callable=AsyncMock,
                   side_effect=[RuntimeError("404"), CANDIDATE_IMAGE]):
            result = await find_most_similar_product_image(provider, base_image, candidates)
        # index 0 refers to the first usable image, which is B
        assert result is candidates[1]

    async def test_no_usable_images_skips_call(self, base_image):
        candidates = [make_candidate("A", 0.3, image_url=None), make_candidate("B", 0.6, image_url=None)]
        provider = FakeProvider([])
        assert await find_most_similar_product_image(provider, base_image, candidates) is candidates[1]
        assert provider.calls == []


# ── verify_top_matches ────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestVerifyTopMatches:
    async def test_checks_every_match_with_image_in_order(self, fetch, base_image):
        matches = [make_candidate("A"), make_candidate("B", image_url=None), make_candidate("C")]
        provider = FakeProvider(['{"sameProduct": true}', '{"sameProduct": false}'])
        outcomes = await verify_top_matches(provider, base_image, matches)
        assert [(o.candidate.matched_name, o.confirmed) for o in outcomes] == [("A", True), ("C", False)]

    async def test_no_early_stop(self, fetch, base_image):
        matches = [make_candidate("A"), make_candidate("B")]
        provider = FakeProvider(['{"sameProduct": true}', '{"sameProduct": true}'])
        outcomes = await verify_top_matches(provider, base_image, matches)
        assert len(outcomes) == 2
        assert len(provider.calls) == 2
