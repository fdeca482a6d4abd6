from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import urlparse

from .models import FetchSettings


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download every chapter of a web novel and bundle them into one EPUB file.",
    )
    parser.add_argument(
        "url",
        help="Listing page URL of the work (must be https).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=".",
        help="Destination directory for the EPUB file (default: current directory).",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=3,
        help="Number of retries after a 429 rate-limit answer (default: 3).",
    )
    parser.add_argument(
        "--backoff",
        type=float,
        default=3.0,
        help="Initial wait (seconds) after a 429 answer; doubled on every retry (default: 3.0).",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.9,
        help="Courtesy pause (seconds) after every successful request (default: 0.9).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="HTTP timeout in seconds (default: 60).",
    )
    parser.add_argument(
        "--lang",
        default="en",
        help="Language code recorded in the EPUB metadata (default: en).",
    )
    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    if urlparse(args.url).scheme != "https" or not urlparse(args.url).netloc:
        raise SystemExit(f"Listing URL must be an https URL: {args.url}")
    if args.retries < 0:
        raise SystemExit("Retries must be zero or greater.")
    if args.backoff < 0:
        raise SystemExit("Backoff must be zero or greater.")
    if args.delay < 0:
        raise SystemExit("Delay must be zero or greater.")
    if args.timeout <= 0:
        raise SystemExit("Timeout must be a positive number.")
    if not args.lang.strip():
        raise SystemExit("Language code must not be empty.")
    output_path = Path(args.output)
    if output_path.exists() and not output_path.is_dir():
        raise SystemExit(f"Output path exists and is not a directory: {output_path}")


def settings_from_args(args: argparse.Namespace) -> FetchSettings:
    return FetchSettings(
        retries=args.retries,
        backoff=args.backoff,
        courtesy_delay=args.delay,
        timeout=args.timeout,
        language=args.lang.strip(),
    )
