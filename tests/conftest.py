"""
Shared pytest fixtures.

No test talks to a real service: generation calls go through FakeProvider,
HTTP calls are patched at aiohttp.ClientSession, and catalogs are built
in memory.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Sequence, Union
from unittest.mock import AsyncMock, MagicMock

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from catalog import CatalogIndex, ProductRecord          # noqa: E402
from providers.base import GenerationProvider, InlineImage, Part   # noqa: E402


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeProvider(GenerationProvider):
    """
    Generation provider that replies from a script.

    replies may be a list (consumed in order; an Exception item is raised)
    or a callable taking the parts and returning the reply.
    """

    def __init__(self, replies: Union[list, Callable[[Sequence[Part]], str]]):
        self.name = "fake"
        self.model_id = "scripted"
        self._replies = replies
        self.calls: list[list[Part]] = []

    async def generate(self, parts: Sequence[Part]) -> str:
        self.calls.append(list(parts))
        if callable(self._replies):
            return self._replies(parts)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def prompts(self) -> list[str]:
        """First text part of every call."""
        return [next(p for p in call if isinstance(p, str)) for call in self.calls]


def fake_session(status: int = 200, json_data=None, text: str = "error text", body: bytes = b""):
    """Build a fake aiohttp.ClientSession whose get/post return one canned response."""
    mock_resp = MagicMock()
    mock_resp.status = status
    mock_resp.json = AsyncMock(return_value=json_data)
    mock_resp.text = AsyncMock(return_value=text)
    mock_resp.read = AsyncMock(return_value=body)
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)

    mock_session = MagicMock()
    mock_session.get = MagicMock(return_value=mock_resp)
    mock_session.post = MagicMock(return_value=mock_resp)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    return mock_session


def make_record(name: str, aliases=(), image_url=None, allergens=()) -> ProductRecord:
    return ProductRecord(
        primary_name=name,
        aliases=tuple(aliases),
        image_url=image_url,
        allergens=tuple(allergens),
    )


@pytest.fixture
def base_image() -> InlineImage:
    return InlineImage(mime_type="image/png", data=PNG_BYTES)


@pytest.fixture
def drinks_catalog() -> CatalogIndex:
    return CatalogIndex([
        make_record("칠성사이다", aliases=["사이다", "Chilsung Cider"],
                    image_url="http://www.hacccp.or.kr/img/cider.jpg", allergens=["없음"]),
        make_record("펩시콜라", aliases=["Pepsi"],
                    image_url="http://img.example.krr/pepsi.png", allergens=["없음"]),
        make_record("코카콜라", aliases=["Coca-Cola", "콜라"],
                    image_url="http://img.example.kr/coke.png"),
        make_record("바나나우유", aliases=["바나나맛우유"],
                    image_url=None, allergens=["우유", "대두"]),
        make_record("밀크팝콘", image_url="http://img.example.kr/popcorn.png",
                    allergens=["우유", "옥수수"]),
    ])
