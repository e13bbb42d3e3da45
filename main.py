"""
main.py — command-line entry point.

  python main.py top3   [IMAGE] [--no-variants] [--compare]
      OCR → candidate lines → (Korean/English variants) → top catalog matches.
      --compare also checks the photo against each match's catalog image.

  python main.py verify [IMAGE]
      Detect products in the photo, narrow the catalog with fuzzy matching and
      an LLM re-rank, then confirm visually (or fall back to a best guess).

  python main.py serve
      Start the upload server (POST /upload) in this event loop.

IMAGE defaults to DEFAULT_IMAGE_PATH; the catalog comes from CATALOG_PATH
unless --catalog is given.
"""
import argparse
import asyncio
import logging
import signal
import sys

import config
from catalog import CatalogIndex

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    handlers=[logging.StreamHandler(sys.stderr)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


# ── Commands ──────────────────────────────────────────────────────────────────

async def run_top3(args: argparse.Namespace, catalog: CatalogIndex) -> None:
    import images
    import style
    from providers.manager import get_provider
    from resolver import resolve_image
    from verification import verify_top_matches

    provider = get_provider() if args.compare or not args.no_variants else None
    matches = await resolve_image(
        args.image, catalog, provider=None if args.no_variants else provider,
    )
    print(style.format_top_matches(matches))

    if args.compare and matches:
        outcomes = await verify_top_matches(provider, images.load_image(args.image), matches)
        print()
        print(style.format_verification(outcomes))


async def run_verify(args: argparse.Namespace, catalog: CatalogIndex) -> None:
    import style
    from providers.manager import get_provider
    from refinement import resolve_with_verification
    from task_queue import SequentialTaskQueue

    outcomes = await resolve_with_verification(
        args.image,
        catalog,
        get_provider(),
        SequentialTaskQueue(config.VERIFY_CONCURRENCY),
    )
    print(style.format_outcomes(outcomes))


async def run_serve(args: argparse.Namespace, catalog: CatalogIndex) -> None:
    from server import start_server

    runner = await start_server(catalog)

    stop_event = asyncio.Event()

    def _stop(*_):
        logger.info("Shutdown signal received.")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _stop)
        except (NotImplementedError, RuntimeError):
            # Windows doesn't support add_signal_handler for all signals
            pass

    logger.info("✅ Server is running. Press Ctrl+C to stop.")
    try:
        await stop_event.wait()
    finally:
        await runner.cleanup()
        logger.info("Goodbye.")


_COMMANDS = {
    "top3":   run_top3,
    "verify": run_verify,
    "serve":  run_serve,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve a product photo to a catalog entry.")
    parser.add_argument("--catalog", default=config.CATALOG_PATH, help="catalog .xlsx/.csv path")
    sub = parser.add_subparsers(dest="command", required=True)

    top3 = sub.add_parser("top3", help="OCR + fuzzy match, print the top matches")
    top3.add_argument("image", nargs="?", default=config.DEFAULT_IMAGE_PATH)
    top3.add_argument("--no-variants", action="store_true", help="skip Korean/English expansion")
    top3.add_argument("--compare", action="store_true", help="compare the photo with each match image")

    verify = sub.add_parser("verify", help="full refinement + visual verification")
    verify.add_argument("image", nargs="?", default=config.DEFAULT_IMAGE_PATH)

    sub.add_parser("serve", help="start the upload server")
    return parser


async def run(args: argparse.Namespace) -> None:
    catalog = CatalogIndex.from_file(args.catalog)
    await _COMMANDS[args.command](args, catalog)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
