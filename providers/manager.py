"""
Provider Manager — picks the generation provider used by the pipeline.

Modes (config.GENERATION_PROVIDER):
  auto       — first provider whose key is set: google → openai → anthropic
  google     — Gemini only
  openai     — OpenAI only
  anthropic  — Anthropic only

The chosen provider is cached for the life of the process; reset_provider()
drops the cache (tests, or after changing keys at runtime).
"""
from __future__ import annotations

import logging
from typing import Optional

import config
from providers.base import GenerationProvider

logger = logging.getLogger(__name__)

# Module-level cache
_provider: Optional[GenerationProvider] = None


def _make_google() -> Optional[GenerationProvider]:
    if not config.GEMINI_API_KEY:
        return None
    from providers.gemini_provider import GeminiProvider
    return GeminiProvider(config.GEMINI_API_KEY, config.GEMINI_MODEL)


def _make_openai() -> Optional[GenerationProvider]:
    if not config.OPENAI_API_KEY:
        return None
    from providers.openai_provider import OpenAIProvider
    return OpenAIProvider(config.OPENAI_API_KEY, config.OPENAI_MODEL)


def _make_anthropic() -> Optional[GenerationProvider]:
    if not config.ANTHROPIC_API_KEY:
        return None
    from providers.anthropic_provider import AnthropicProvider
    return AnthropicProvider(config.ANTHROPIC_API_KEY, config.ANTHROPIC_MODEL)


_FACTORIES = {
    "google":    (_make_google,    "GEMINI_API_KEY"),
    "openai":    (_make_openai,    "OPENAI_API_KEY"),
    "anthropic": (_make_anthropic, "ANTHROPIC_API_KEY"),
}


def _build_provider() -> GenerationProvider:
    """Instantiate the provider selected by config.GENERATION_PROVIDER."""
    mode = config.GENERATION_PROVIDER.strip().lower()

    if mode in _FACTORIES:
        factory, env_var = _FACTORIES[mode]
        provider = factory()
        if provider is None:
            raise RuntimeError(f"GENERATION_PROVIDER={mode} but {env_var} is not set.")
        return provider

    if mode != "auto":
        available = ", ".join(["auto", *_FACTORIES])
        raise ValueError(f"Unknown GENERATION_PROVIDER '{mode}'. Available: {available}")

    for name, (factory, _) in _FACTORIES.items():
        provider = factory()
        if provider is not None:
            logger.info("Auto-selected %s provider", name)
            return provider

    raise RuntimeError(
        "No generation provider available.\n"
        "Set at least one key in .env:\n"
        "  • GEMINI_API_KEY (or GOOGLE_API_KEY)\n"
        "  • OPENAI_API_KEY\n"
        "  • ANTHROPIC_API_KEY"
    )


def get_provider() -> GenerationProvider:
    """Return the active provider, initialising it once on first call."""
    global _provider
    if _provider is None:
        _provider = _build_provider()
        logger.info("Generation provider: %s", _provider.full_name)
    return _provider


def reset_provider() -> None:
    global _provider
    _provider = None
