from __future__ import annotations

import argparse
from typing import Optional, Sequence

import uvicorn

from .core.config import get_settings
from .core.logging import configure_logging


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port '{value}'") from exc
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 1 and 65535, got {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="hotcoffee",
        description="Coffee shop order fulfillment and inventory service.",
    )
    parser.add_argument("--port", type=_port, default=settings.PORT, help="Port number to listen on")
    parser.add_argument("--host", default=settings.HOST, help="Interface to bind")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "hotcoffee.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
