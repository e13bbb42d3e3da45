"""
Central configuration — reads from .env file.

Every setting is a plain module attribute so tests can monkeypatch config.X
and all code reading config.X gets the patched value.
Missing API keys never fail at import time; the component that needs a key
raises a RuntimeError naming the variable instead.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Text recognition ──────────────────────────────────────────────────────────
# Google Cloud Vision REST API key (TEXT_DETECTION feature)
GOOGLE_VISION_API_KEY: str | None = os.getenv("GOOGLE_VISION_API_KEY")

# ── Generation / comparison providers ─────────────────────────────────────────
# Add keys for whichever providers you have access to.
GEMINI_API_KEY: str | None    = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
OPENAI_API_KEY: str | None    = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")

# Which provider to use:
#   auto       → google, then openai, then anthropic (first key present wins)
#   google     → Gemini only
#   openai     → OpenAI only
#   anthropic  → Anthropic only
GENERATION_PROVIDER: str = os.getenv("GENERATION_PROVIDER", "auto")

GEMINI_MODEL: str    = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
OPENAI_MODEL: str    = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-3-haiku-20240307")

# ── Catalog ───────────────────────────────────────────────────────────────────
# .xlsx or .csv; workbooks use the first sheet
CATALOG_PATH: str = os.getenv("CATALOG_PATH", os.path.join("DB", "all_data.xlsx"))

# Image used by the CLI when no path is given
DEFAULT_IMAGE_PATH: str = os.getenv(
    "DEFAULT_IMAGE_PATH", os.path.join("test_img", "chilsung_eng2.jpg")
)

# ── Matching behaviour ────────────────────────────────────────────────────────
TOP_N: int        = int(os.getenv("TOP_N", "3"))          # summary path
COARSE_TOP_N: int = int(os.getenv("COARSE_TOP_N", "100"))  # refinement coarse filter
RERANK_TOP_K: int = int(os.getenv("RERANK_TOP_K", "5"))    # names kept by the LLM re-rank

# Width of the visual-verification queue. 1 keeps every external call strictly
# sequential; larger values verify that many candidates per batch.
VERIFY_CONCURRENCY: int = int(os.getenv("VERIFY_CONCURRENCY", "1"))

# Seconds for every outbound HTTP call (image fetch, text recognition)
HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "15"))

# ── Upload server ─────────────────────────────────────────────────────────────
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "3000"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
