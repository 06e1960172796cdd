"""
Uvicorn launcher for the asset registry API.

Usage:
  python -m asset_registry.main [--host 127.0.0.1] [--port 8080] [--reload]
                                [--log-level info]

Defaults come from the ASSET_REGISTRY_* settings (see asset_registry.config).
"""

from __future__ import annotations

import argparse
from typing import Optional

import uvicorn

from .config import load_config
from .logging import setup_logging


def main(argv: Optional[list[str]] = None) -> None:
    cfg = load_config()

    parser = argparse.ArgumentParser(description="Run the asset registry API (uvicorn)")
    parser.add_argument("--host", default=cfg.host, help="Bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=cfg.port, help="Port (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", default=False, help="Enable autoreload (dev only)")
    parser.add_argument(
        "--log-level", default=cfg.log_level.lower(), help="Log level (default: %(default)s)"
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper(), log_format=cfg.log_format)

    # Factory import string; a single worker keeps registry calls serialized
    # on one process-wide lock.
    uvicorn.run(
        "asset_registry.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
