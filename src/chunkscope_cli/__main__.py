"""
Chunkscope CLI entry point.

Usage:
    chunkscope PATH                                  # allocation summary
    chunkscope PATH --list-size 64KB [--page N] [--page-size N] [--short-ids]
    chunkscope PATH --read-chunk HEX [--content-format hex|binary|text]
                    [--output-file FILE] [--show-preview]

Mode precedence: --read-chunk, then --list-size, then the summary.
"""

import argparse
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from chunkscope_core.config import settings
from chunkscope_core.exceptions import AccountingMismatchError, ChunkscopeError
from chunkscope_core.logging_service import LoggingService
from chunkscope_core.utils import configure_logging, get_logger

__version__ = "0.1.0"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ACCOUNTING_MISMATCH = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chunkscope",
        description="Read-only chunk viewer for analyzing chunk engine metadata",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument("path", type=Path, help="Path to the storage directory")

    parser.add_argument(
        "--list-size",
        metavar="SIZE",
        help='List chunks of one size bucket (e.g., "64KB", "8MB", "1GB" or raw bytes)',
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=settings.default_page_size,
        help=f"Number of chunks to display per page (default: {settings.default_page_size})",
    )
    parser.add_argument(
        "--page", type=int, default=1, help="Page number to display (default: 1)"
    )
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Show only summary statistics (default behavior)",
    )
    parser.add_argument(
        "--short-ids",
        action="store_true",
        help="Show short chunk IDs for compact display",
    )

    parser.add_argument(
        "--read-chunk",
        metavar="CHUNK_ID",
        help="Read and display content of a specific chunk by ID (hex format)",
    )
    parser.add_argument(
        "--content-format",
        default="hex",
        help="Output format for chunk content: hex, binary, text (default: hex)",
    )
    parser.add_argument(
        "--output-file",
        metavar="FILE",
        help="Write chunk content to FILE instead of stdout",
    )
    parser.add_argument(
        "--show-preview",
        action="store_true",
        help="Show a text preview (first bytes as text) along with hex/binary",
    )

    parser.add_argument(
        "--backend",
        default=None,
        help="Storage backend: 'snapshot' or 'package.module:factory' (default: from settings)",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: from settings)")
    parser.add_argument(
        "--log-format", choices=["console", "json"], default=None, help="Log output format"
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Execute the selected mode and return the process exit status."""
    # Imported here so --help/--version never touch the storage layer.
    from chunkscope_core.browser import ChunkBrowser
    from chunkscope_core.inspector import ChunkContentReader
    from chunkscope_core.reconciliation import ReconciliationEngine
    from chunkscope_core.sizes import parse_size
    from chunkscope_db.backends import open_storage

    logger = get_logger("chunkscope_cli")
    correlation_id = str(uuid.uuid4())
    backend = args.backend or settings.backend

    try:
        with open_storage(args.path, backend=backend) as storage:
            if args.read_chunk is not None:
                reader = ChunkContentReader(
                    storage.meta_store, storage.engine, preview_bytes=settings.preview_bytes
                )
                reader.read_chunk_content(
                    args.read_chunk,
                    args.content_format,
                    args.output_file,
                    args.show_preview,
                )
            elif args.list_size is not None:
                target_size = parse_size(args.list_size)
                browser = ChunkBrowser(storage.meta_store, short_id_chars=settings.short_id_chars)
                browser.list_chunks(target_size, args.page_size, args.page, args.short_ids)
            else:
                engine = ReconciliationEngine(storage.meta_store, storage.allocator_loader)
                engine.show_summary()
    except AccountingMismatchError as e:
        LoggingService.log_error(e, correlation_id, context={"path": str(args.path)})
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ACCOUNTING_MISMATCH
    except ChunkscopeError as e:
        LoggingService.log_error(e, correlation_id, context={"path": str(args.path)})
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    logger.debug("command_completed", correlation_id=correlation_id)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not LoggingService.is_configured():
        try:
            configure_logging(level=args.log_level, format=args.log_format)
        except ValueError as e:
            parser.error(str(e))

    sys.exit(run(args))


if __name__ == "__main__":
    main()
