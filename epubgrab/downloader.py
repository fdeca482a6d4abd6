from __future__ import annotations

import time
from contextlib import closing
from pathlib import Path
from typing import Callable, Iterator, Optional

import cloudscraper

from .assembly import EpubAssembler
from .http_utils import create_scraper, fetch_page
from .models import Chapter, FetchSettings, ListingResult
from .parsing import extract_chapter, extract_listing
from .ui import ConsoleUI


def _fetch(
    scraper: cloudscraper.CloudScraper,
    url: str,
    settings: FetchSettings,
    ui: ConsoleUI,
    sleep: Callable[[float], None],
) -> Iterator[bytes]:
    return fetch_page(
        scraper,
        url,
        retries=settings.retries,
        backoff=settings.backoff,
        courtesy_delay=settings.courtesy_delay,
        timeout=settings.timeout,
        ui=ui,
        sleep=sleep,
    )


def collect_listing(
    scraper: cloudscraper.CloudScraper,
    listing_url: str,
    settings: FetchSettings,
    *,
    ui: ConsoleUI,
    sleep: Callable[[float], None] = time.sleep,
) -> ListingResult:
    ui.update_status("Reading listing page...", level="info")
    ui.update_detail(None)
    with closing(_fetch(scraper, listing_url, settings, ui, sleep)) as body:
        listing = extract_listing(body)
    ui.log_event(f"{listing.title or '(untitled)'} by {listing.author or '(unknown author)'}", level="info")
    if not listing.links:
        ui.log_event("No chapter links were detected on the listing page.", level="warning")
    return listing


def fetch_chapter(
    scraper: cloudscraper.CloudScraper,
    url: str,
    chapter_index: int,
    settings: FetchSettings,
    *,
    ui: ConsoleUI,
    sleep: Callable[[float], None] = time.sleep,
) -> Chapter:
    with closing(_fetch(scraper, url, settings, ui, sleep)) as body:
        result = extract_chapter(body)
    return Chapter(index=chapter_index, url=url, title=result.title, body=result.body)


def download_book(
    listing_url: str,
    output_directory: Path,
    *,
    settings: Optional[FetchSettings] = None,
    ui: Optional[ConsoleUI] = None,
    scraper: Optional[cloudscraper.CloudScraper] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    settings = settings or FetchSettings()
    internal_ui = ui or ConsoleUI()
    should_finalize = ui is None
    scraper = scraper or create_scraper()

    try:
        listing = collect_listing(scraper, listing_url, settings, ui=internal_ui, sleep=sleep)
        total_chapters = len(listing.links)
        internal_ui.log_event(f"Found {total_chapters} chapters to download.", level="success")

        assembler = EpubAssembler(listing.author, listing.title, language=settings.language)
        start_monotonic = time.perf_counter()

        for idx, url in enumerate(listing.links, start=1):
            internal_ui.log_event(url, level="muted")
            chapter = fetch_chapter(scraper, url, idx, settings, ui=internal_ui, sleep=sleep)
            assembler.add_chapter(chapter)
            internal_ui.update_progress(idx, total_chapters, chapter.title or url)
            internal_ui.update_detail(f"Remaining downloads: {total_chapters - idx}")

        internal_ui.update_status("Writing EPUB...", level="info")
        output_path = assembler.write(output_directory)
        total_elapsed = time.perf_counter() - start_monotonic
        internal_ui.update_status("Download complete", level="success")
        internal_ui.update_detail(None)
        internal_ui.log_event(
            f"Saved {output_path.name} ({assembler.chapter_count} chapters in {total_elapsed:,.1f}s).",
            level="success",
        )
        return output_path
    finally:
        if should_finalize:
            internal_ui.finalize()
