"""
Stash - Server Entry Point
============================
CLI entry point that:
    1. Loads settings (fail-fast on a missing ``MONGO_PASSWORD`` or a
       malformed ``MONGO_HOSTS``).
    2. Prints the resolved store target with credentials masked.
    3. Either probes the store and exits (``--check``) or serves the
       gateway with ``uvicorn``.

Flags:
    --host       Interface to bind (default: ``LISTEN_HOST``).
    --port       Port to listen on (default: ``LISTEN_PORT``).
    --check      Connect, count stored records, and exit 0 (reachable) or 1.

Usage:
    python -m stash.scripts.serve
    python -m stash.scripts.serve --port 9000
    python -m stash.scripts.serve --check
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import logging

    from stash.config.settings import Settings

# ── Ensure project root is importable when run directly ────────────────
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


# ── CLI Argument Parsing ───────────────────────────────────────────────

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="serve", description="Stash — serve the payload gateway.")
    parser.add_argument("--host", default=None, help="Interface to bind (overrides LISTEN_HOST).")
    parser.add_argument("--port", type=int, default=None, help="TCP port to listen on (overrides LISTEN_PORT).")
    parser.add_argument("--check", action="store_true", default=False, help="Probe the store and exit without serving.")
    return parser.parse_args(argv)


# ── Main Orchestration ─────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        from stash.config.settings import settings
    except Exception as exc:
        print("\n[FATAL] Configuration error — check your .env file:\n")
        print(f"  {exc}")
        print()
        return 1

    from stash.src.utils.logger import get_logger
    logger = get_logger(__name__)

    host = args.host if args.host is not None else settings.LISTEN_HOST
    port = args.port if args.port is not None else settings.LISTEN_PORT
    _print_header(settings, host, port)

    if args.check:
        return asyncio.run(_check_store(settings, logger))

    import uvicorn

    from stash.src.main import app

    logger.info("Serving on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)
    return 0


async def _check_store(settings: Settings, logger: logging.Logger) -> int:
    from stash.src.database.errors import StoreError
    from stash.src.database.store_connector import connect

    t_start = time.perf_counter()
    try:
        connector = await connect(
            settings.MONGO_HOSTS,
            settings.MONGO_USERNAME,
            settings.MONGO_PASSWORD.get_secret_value(),
            database=settings.MONGO_DB_NAME,
            collection=settings.MONGO_COLLECTION,
            tls=settings.MONGO_TLS,
            auth_source=settings.MONGO_AUTH_SOURCE,
            server_selection_timeout_ms=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        )
    except StoreError:
        logger.exception("Store check failed.")
        return 1

    try:
        async with connector.derive_session() as session:
            total = await connector.count(session)
    except StoreError:
        logger.exception("Store reachable but '%s' could not be counted.", connector.namespace)
        return 1
    finally:
        connector.close()

    elapsed_ms = (time.perf_counter() - t_start) * 1000
    print(f"  Store OK — {total} record(s) in {connector.namespace} ({elapsed_ms:.1f}ms)")
    print()
    return 0


# ── Pretty-print helpers ──────────────────────────────────────────────

def _print_header(settings: Settings, host: str, port: int) -> None:
    password = settings.MONGO_PASSWORD.get_secret_value()
    masked = "****" if password else "(empty)"

    print()
    print("=" * 60)
    print("  STASH — Payload Gateway")
    print("=" * 60)
    print(f"  Environment  : {settings.ENV}")
    print(f"  MongoDB      : {', '.join(settings.MONGO_HOSTS)}")
    print(f"  Namespace    : {settings.MONGO_DB_NAME}.{settings.MONGO_COLLECTION}")
    print(f"  TLS          : {settings.MONGO_TLS}")
    print(f"  Credentials  : {settings.MONGO_USERNAME} / {masked}")
    print(f"  Listening on : {host}:{port}")
    print("=" * 60)
    print()


# ── Entry point ────────────────────────────────────────────────────────

if __name__ == "__main__":
    sys.exit(main())
