# src/main.py — v1
"""CLI entry point — links, files, sample-csv commands.

Usage:
    matingest links <csv-or-txt> [--course-id ID] [--folder-id ID] [--dry-run]
    matingest files <path>... [--course-id ID] [--folder-id ID] [--dry-run]
    matingest sample-csv [-o FILE]

Exit codes: 0 all created, 2 some items failed, 1 precondition or fatal
error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from matingest.version import __version__

if TYPE_CHECKING:
    from matingest.api.facade import BatchSession
    from matingest.core.models import ItemOutcome
    from matingest.upload.progress import ProgressObserver

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2
EXIT_INTERRUPTED = 130

LINK_LIST_SUFFIXES = (".csv", ".txt")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FATAL

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FATAL


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="matingest",
        description=f"matingest v{__version__} — Batch material ingestion",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- links ---
    p_links = subparsers.add_parser(
        "links", help="Create materials from a CSV/TXT list of links",
    )
    p_links.add_argument("file", type=Path, help="Path to a .csv or .txt link list")
    _add_batch_options(p_links)
    p_links.set_defaults(func=_cmd_links)

    # --- files ---
    p_files = subparsers.add_parser(
        "files", help="Create materials from local files",
    )
    p_files.add_argument("paths", type=Path, nargs="+", help="Files to upload")
    _add_batch_options(p_files)
    p_files.set_defaults(func=_cmd_files)

    # --- sample-csv ---
    p_sample = subparsers.add_parser(
        "sample-csv", help="Write a sample link list",
    )
    p_sample.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Destination file (default: ./batch-upload-sample.csv)",
    )
    p_sample.set_defaults(func=_cmd_sample)

    return parser


def _add_batch_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--course-id", default=None, help="Target course id")
    p.add_argument("--folder-id", default=None, help="Destination folder id")
    p.add_argument(
        "--dry-run", action="store_true",
        help="Resolve metadata and print the items without uploading",
    )


async def _cmd_links(args: argparse.Namespace) -> int:
    """Execute a link batch."""
    path: Path = args.file
    if not path.is_file():
        logger.error("File not found: %s", path)
        return EXIT_FATAL
    if path.suffix.lower() not in LINK_LIST_SUFFIXES:
        logger.error("Unsupported link list format: %s (use .csv or .txt)", path.suffix)
        return EXIT_FATAL

    text = path.read_text(encoding="utf-8-sig")
    return await _run_batch("links", args, lambda s: s.add_links(text))


async def _cmd_files(args: argparse.Namespace) -> int:
    """Execute a file batch."""
    paths: list[Path] = args.paths
    return await _run_batch("files", args, lambda s: s.add_files(paths))


async def _cmd_sample(args: argparse.Namespace) -> int:
    """Write the sample CSV."""
    from matingest.ingest.sample import write_sample_csv

    written = write_sample_csv(args.output)
    print(f"Sample written to {written}")
    return EXIT_OK


async def _run_batch(kind: str, args: argparse.Namespace, add) -> int:
    from matingest.api.facade import BatchSession
    from matingest.config.settings import load_settings
    from matingest.core.errors import PreconditionViolation
    from matingest.core.models import BatchDefaults
    from matingest.logging.logger import setup_logging
    from matingest.upload.aggregator import summarize

    settings = load_settings()
    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    async with BatchSession(kind, settings=settings) as session:
        report = add(session)
        for rejected in report.rejected:
            logger.warning(
                "Skipped input %d (%s): %s %s",
                rejected.position + 1, rejected.reason, rejected.raw, rejected.detail,
            )
        if not report.items:
            logger.error("Nothing to upload")
            return EXIT_FATAL

        await session.wait_until_settled()
        _print_items(session)
        if args.dry_run:
            return EXIT_OK

        defaults = BatchDefaults(
            target_course_id=args.course_id,
            folder_id=args.folder_id,
            visibility=settings.default_visibility,
            restriction=settings.default_restriction,
        )
        try:
            result = await session.upload(defaults, _progress_observer())
        except PreconditionViolation as exc:
            for problem in exc.problems:
                logger.error("Not ready: %s", problem)
            return EXIT_FATAL

    print(f"\nUpload complete: {summarize(result)}")
    for failure in result.failures:
        print(f"  FAILED {failure.title}: {failure.error}")
    return EXIT_OK if result.all_succeeded else EXIT_PARTIAL


def _print_items(session: BatchSession) -> None:
    """Print one line per resolved item."""
    snapshot = session.snapshot()
    print(f"\n{snapshot.count} item(s):")
    for position, view in enumerate(snapshot.items, start=1):
        extra = f", {view.page_count} pages" if view.page_count else ""
        preview = "local preview" if view.has_local_preview else (view.preview_url or "no preview")
        print(f"  {position:>2}. {view.title} [{view.material_type}{extra}] {view.locator}")
        print(f"      {preview}")


def _print_progress(completed: int, total: int, outcome: ItemOutcome) -> None:
    status = "ok" if outcome.success else f"error: {outcome.error}"
    print(f"  [{completed}/{total}] {outcome.title}: {status}")


def _progress_observer() -> ProgressObserver:
    """Print progress on a terminal; log it when output is redirected."""
    from matingest.upload.progress import CallbackObserver, LoggingObserver

    if sys.stdout.isatty():
        return CallbackObserver(_print_progress)
    return LoggingObserver()


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from matingest.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "INFO")
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
