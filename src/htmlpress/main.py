"""Command line entry point for compacting rendered HTML files."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

import structlog

from .config import AppConfig, load_settings
from .engine import HtmlPress
from .errors import PressError


def configure_logging(level: int) -> None:
    """Configure structured logging with JSON output on stderr."""

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        timestamper,
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="htmlpress", description="Compact rendered HTML documents.")
    parser.add_argument("files", nargs="*", type=Path, help="HTML files to compact (stdin when omitted)")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("-o", "--output", type=Path, help="write the result here instead of stdout")
    target.add_argument("-i", "--in-place", action="store_true", help="rewrite each file in place")
    parser.add_argument("--cache-dir", type=Path, help="content-addressed cache directory")
    parser.add_argument("--log-level", help="override HTMLPRESS_LOG_LEVEL")
    return parser


def main(config: AppConfig, argv: Sequence[str] | None = None) -> int:
    """Compact the requested documents and return a process exit code."""

    args = build_parser().parse_args(argv)
    logger = structlog.get_logger("htmlpress")

    options = config.options
    if args.cache_dir is not None:
        options = options.with_overrides(cache_dir=args.cache_dir)
    compressor = HtmlPress(options)

    if args.output is not None and len(args.files) > 1:
        logger.error("output_requires_single_file", files=len(args.files))
        return 2

    try:
        if not args.files:
            result = compressor.press(sys.stdin)
            if args.output is not None:
                args.output.write_text(result, encoding="utf-8")
            else:
                sys.stdout.write(result)
            return 0

        for path in args.files:
            result = compressor.press(path.read_bytes())
            if args.in_place:
                path.write_text(result, encoding="utf-8")
            elif args.output is not None:
                args.output.write_text(result, encoding="utf-8")
            else:
                sys.stdout.write(result)
            logger.info("file_pressed", path=str(path))
    except PressError as exc:
        logger.error("press_failed", error=str(exc))
        return 1
    return 0


def run(argv: Sequence[str] | None = None) -> None:
    """Entry-point helper used by command line scripts."""

    config = load_settings()
    args = build_parser().parse_args(argv)
    level = config.logging.level
    if args.log_level:
        level = logging._nameToLevel.get(args.log_level.upper(), level)  # noqa: SLF001 - name lookup only
    configure_logging(level)
    raise SystemExit(main(config, argv))


if __name__ == "__main__":
    run()
