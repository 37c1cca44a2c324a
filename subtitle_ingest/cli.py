"""Command line interface for subtitle ingestion.

Commands:
    fingerprint  print the content fingerprint of one or more files
    ingest       run files through an in-process orchestrator and write subtitles
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from . import __version__
from .config.settings import ConfigurationError, get_settings
from .dedup.fingerprint import fingerprint_file
from .exceptions import IngestError, TranscriptionError
from .services.orchestrator import UploadOrchestrator, build_orchestrator
from .storage.memory import InMemoryDurableStore
from .utils.logging_factory import LoggingFactory

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration based on verbosity level."""
    LoggingFactory.initialize(level=logging.DEBUG if verbose else logging.INFO)
    LoggingFactory.configure_verbose(verbose)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="subtitle-ingest",
        description="Deduplicating video ingest with resilient subtitle generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Fingerprint files
  subtitle-ingest fingerprint clip.mp4 other.mp4

  # Generate subtitles (requires GEMINI_API_KEY)
  subtitle-ingest ingest clip.mp4 --language en --output-dir ./subs

  # Identical files are transcribed once
  subtitle-ingest ingest clip.mp4 copy-of-clip.mp4 --verbose
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    fp_parser = subparsers.add_parser("fingerprint", help="Print SHA-256 content fingerprints")
    fp_parser.add_argument("files", nargs="+", help="Files to fingerprint")
    fp_parser.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    ingest_parser = subparsers.add_parser(
        "ingest", help="Ingest videos and generate WebVTT subtitles"
    )
    ingest_parser.add_argument("files", nargs="+", help="Video files to ingest")
    ingest_parser.add_argument(
        "--language", default=None, help="Language hint (default: TRANSCRIPTION_DEFAULT_LANGUAGE)"
    )
    ingest_parser.add_argument(
        "--mime", default=None, help="Override the content type guessed from the file name"
    )
    ingest_parser.add_argument(
        "--output-dir", default=None, help="Write <name>.vtt files to this directory"
    )

    return parser


def fingerprint_command(args: argparse.Namespace, console: Console) -> int:
    """Handle the fingerprint subcommand."""
    results = {}
    exit_code = 0
    for name in args.files:
        try:
            results[name] = fingerprint_file(name)
        except OSError as e:
            logger.error(f"Cannot read {name}: {e}")
            exit_code = 1

    if args.json:
        console.print_json(json.dumps(results))
    else:
        table = Table(title="Content fingerprints")
        table.add_column("File")
        table.add_column("SHA-256", style="cyan")
        for name, fp in results.items():
            table.add_row(name, fp)
        console.print(table)
    return exit_code


async def _ingest_files(
    orchestrator: UploadOrchestrator,
    files: List[str],
    language: str,
    mime_override: Optional[str],
    output_dir: Optional[Path],
    console: Console,
) -> int:
    exit_code = 0
    table = Table(title="Ingest results")
    for column in ("File", "Video", "Subtitle", "Duplicate", "Attempts"):
        table.add_column(column)

    for name in files:
        path = Path(name)
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error(f"Cannot read {name}: {e}")
            exit_code = 1
            continue

        mime_type = mime_override or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            result = await orchestrator.handle_upload(
                data, path.name, len(data), mime_type, language=language
            )
        except TranscriptionError as e:
            logger.error(f"{name}: {e.message} (video {e.video_id} kept without subtitle)")
            exit_code = 1
            continue
        except IngestError as e:
            logger.error(f"{name}: {e.message}")
            exit_code = 1
            continue

        table.add_row(
            name,
            result.video_id,
            result.subtitle_id or "-",
            "yes" if result.is_duplicate else "no",
            str(result.transcription_attempts),
        )
        if output_dir is not None and result.subtitle_id:
            _write_subtitle(orchestrator, result.video_id, output_dir / f"{path.stem}.vtt")

    console.print(table)
    stats = orchestrator.get_stats()
    console.print(
        f"Cache: {stats['cache']['entry_count']} entries, hit rate {stats['cache']['hit_rate']}; "
        f"file hashes: {stats['file_hashes']['total']} "
        f"({stats['file_hashes']['with_subtitles']} with subtitles)"
    )
    return exit_code


def _write_subtitle(orchestrator: UploadOrchestrator, video_id: str, target: Path) -> None:
    cached = orchestrator.entities.get_cached_subtitle(video_id)
    if cached is None:
        logger.warning(f"Subtitle for video {video_id} is no longer cached; not writing {target}")
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(cached["content"], encoding="utf-8")
    logger.info(f"Subtitle written to {target}")


def ingest_command(args: argparse.Namespace, console: Console) -> int:
    """Handle the ingest subcommand."""
    try:
        settings = get_settings()
        orchestrator = build_orchestrator(settings, store=InMemoryDurableStore())
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 2

    language = args.language or settings.transcription.default_language
    output_dir = Path(args.output_dir) if args.output_dir else None

    async def run() -> int:
        try:
            return await _ingest_files(
                orchestrator, args.files, language, args.mime, output_dir, console
            )
        finally:
            await orchestrator.aclose()

    return asyncio.run(run())


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    console = Console()

    try:
        if args.command == "fingerprint":
            return fingerprint_command(args, console)
        elif args.command == "ingest":
            return ingest_command(args, console)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
