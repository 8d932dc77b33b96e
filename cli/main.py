#!/usr/bin/env python3
"""CLI tool to extract rendered pages with docsnap."""

import argparse
import asyncio
import sys
from contextlib import redirect_stdout
from pathlib import Path

from clients.embeddings_client import get_embeddings_client
from config.utils import get_batch_concurrency, get_batch_delay_ms, get_settle_time_ms, is_headless
from docsnap import (
    BatchItemError,
    ExtractedDocument,
    ExtractionError,
    ExtractionOptions,
    RenderSession,
    WebExtractor,
    format_document,
    install_signal_handlers,
)
from docsnap.formatter import FILE_EXTENSIONS
from docsnap.urls import safe_filename


def build_extractor() -> WebExtractor:
    return WebExtractor(
        session=RenderSession(headless=is_headless()),
        sink=get_embeddings_client(),
        settle_time_ms=get_settle_time_ms(),
    )


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def options_from_args(args: argparse.Namespace) -> ExtractionOptions:
    return ExtractionOptions(
        selector=args.selector,
        wait_for_selector=args.wait_for,
        max_wait_time_ms=args.max_wait,
        remove_selectors=args.remove or [],
        extract_images=args.images,
        extract_links=args.links,
    )


def write_output(document: ExtractedDocument, fmt: str, out_dir: str | None) -> None:
    """Print the formatted document, or save it to out_dir/<safe-name>.<ext>."""
    content = format_document(document, fmt)
    if out_dir is None:
        sys.stdout.write(content)
        return

    out_path = Path(out_dir) / f"{safe_filename(document.url)}.{FILE_EXTENSIONS[fmt]}"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(content, encoding="utf-8")
    print(f"Saved to {out_path} ({len(content)} chars)", file=sys.stderr)


async def _run(extractor: WebExtractor, work):
    install_signal_handlers(extractor)
    async with extractor:
        return await work(extractor)


def cmd_extract(args: argparse.Namespace, extractor: WebExtractor | None = None) -> int:
    """Extract a single URL."""
    extractor = extractor or build_extractor()
    options = options_from_args(args)

    # Progress lines go to stderr so stdout carries only the document
    with redirect_stdout(sys.stderr):
        try:
            document = asyncio.run(_run(extractor, lambda e: e.extract_one(args.url, options)))
        except ExtractionError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    write_output(document, args.format, args.out_dir)
    return 0


def cmd_batch(args: argparse.Namespace, extractor: WebExtractor | None = None) -> int:
    """Extract many URLs in waves."""
    extractor = extractor or build_extractor()
    options = options_from_args(args)

    with redirect_stdout(sys.stderr):
        try:
            results = asyncio.run(_run(
                extractor,
                lambda e: e.extract_many(
                    args.urls, options, concurrency=args.concurrency, inter_batch_delay_ms=args.delay
                ),
            ))
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    failed = [r for r in results if isinstance(r, BatchItemError)]
    for result in results:
        if not isinstance(result, BatchItemError):
            write_output(result, args.format, args.out_dir)

    print(f"\nTotal: {len(results)} | Success: {len(results) - len(failed)} | Failed: {len(failed)}", file=sys.stderr)
    for err in failed:
        print(f"  {err.url}: [{err.code}] {err.error_message}", file=sys.stderr)
    return 1 if failed else 0


def _add_extraction_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--selector", "-s", default=None, help="CSS selector scoping the extracted content")
    parser.add_argument("--wait-for", default=None, metavar="SELECTOR", help="Wait for this selector before capturing")
    parser.add_argument("--max-wait", type=positive_int, default=10000, metavar="MS", help="Wait timeout in ms (default: 10000)")
    parser.add_argument("--remove", nargs="+", metavar="SELECTOR", help="Remove matching elements before extraction")
    parser.add_argument("--images", action="store_true", help="Include images")
    parser.add_argument("--links", action="store_true", help="Include links")
    parser.add_argument(
        "--format", "-f",
        choices=list(FILE_EXTENSIONS),
        default="markdown",
        help="Output format (default: markdown)",
    )
    parser.add_argument("--out-dir", "-o", default=None, help="Save output files here instead of printing")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docsnap", description="Extract content from rendered web pages")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract a single URL")
    extract.add_argument("url")
    _add_extraction_args(extract)
    extract.set_defaults(handler=cmd_extract)

    batch = subparsers.add_parser("batch", help="Extract many URLs")
    batch.add_argument("urls", nargs="+")
    batch.add_argument(
        "--concurrency", "-c",
        type=int,
        default=get_batch_concurrency(),
        help="URLs per wave (default: BATCH_CONCURRENCY or 3)",
    )
    batch.add_argument(
        "--delay",
        type=int,
        default=get_batch_delay_ms(),
        metavar="MS",
        help="Delay between waves in ms (default: BATCH_DELAY_MS or 1000)",
    )
    _add_extraction_args(batch)
    batch.set_defaults(handler=cmd_batch)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
