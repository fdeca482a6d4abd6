from __future__ import annotations

import time
from typing import Callable, Iterator, Optional, TYPE_CHECKING

import cloudscraper
import requests

from .errors import RateLimitRetriesExhausted, TransportError

if TYPE_CHECKING:
    from .ui import ConsoleUI


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/126.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

RATE_LIMITED = 429
CHUNK_SIZE = 16 * 1024


def create_scraper() -> cloudscraper.CloudScraper:
    scraper = cloudscraper.create_scraper(
        browser={"browser": "chrome", "platform": "windows", "mobile": False},
    )
    scraper.headers.update(DEFAULT_HEADERS)
    return scraper


def _get(scraper: requests.Session, url: str, timeout: float) -> requests.Response:
    try:
        return scraper.get(url, timeout=timeout, stream=True)
    except requests.RequestException as exc:
        message = str(exc).strip() or exc.__class__.__name__
        raise TransportError(f"GET {url} failed: {message}") from exc


def fetch_page(
    scraper: requests.Session,
    url: str,
    *,
    retries: int = 3,
    backoff: float = 3.0,
    courtesy_delay: float = 0.9,
    timeout: float = 60.0,
    ui: Optional["ConsoleUI"] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[bytes]:
    """GET ``url`` and return its body as an iterator of byte chunks.

    A 429 answer is retried up to ``retries`` times, sleeping ``backoff``
    seconds before the first retry and doubling the wait each time. Every
    other failure is raised at once as :class:`TransportError`. A successful
    response is followed by a ``courtesy_delay`` pause before returning.
    """
    remaining = retries
    delay = backoff
    attempt = 1
    while True:
        response = _get(scraper, url, timeout)
        if response.status_code != RATE_LIMITED:
            break
        response.close()
        if remaining <= 0:
            if ui:
                ui.update_detail(f"Rate limited on {url}; giving up.", level="error")
            raise RateLimitRetriesExhausted(url, attempt)
        if ui:
            ui.update_detail(
                f"Rate limited (attempt {attempt}/{retries + 1}). Retrying in {delay:.1f}s...",
                level="warning",
            )
        sleep(delay)
        delay *= 2
        remaining -= 1
        attempt += 1

    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        response.close()
        raise TransportError(f"GET {url} failed: {exc}") from exc

    if ui and attempt > 1:
        ui.update_detail(None)
    if courtesy_delay:
        sleep(courtesy_delay)
    return _iter_body(response, url)


def _iter_body(response: requests.Response, url: str) -> Iterator[bytes]:
    try:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if chunk:
                yield chunk
    except requests.RequestException as exc:
        raise TransportError(f"Reading body of {url} failed: {exc}") from exc
    finally:
        response.close()
