"""Run the demo verification server."""

import argparse
import logging
import os

import uvicorn

from src.config.settings import get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Command-line options; defaults come from settings."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the reCAPTCHA verification demo")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Application log level",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    # src.app reads settings at import time
    os.environ["LOG_LEVEL"] = args.log_level
    get_settings.cache_clear()

    logger.info("Starting server on http://%s:%s", args.host, args.port)
    uvicorn.run("src.app:app", host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
