from __future__ import annotations

import pytest
import requests

from epubgrab.errors import RateLimitRetriesExhausted, TransportError
from epubgrab.http_utils import fetch_page


class _FakeResponse:
    def __init__(self, status_code: int, body: bytes = b"") -> None:
        self.status_code = status_code
        self._body = body
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


class _FakeScraper:
    def __init__(self, responses: list[object]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, float, bool]] = []

    def get(self, url: str, *, timeout: float, stream: bool):
        self.calls.append((url, timeout, stream))
        if not self._responses:
            raise AssertionError("No fake response configured")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


URL = "https://example.com/book"


def test_success_applies_courtesy_delay_and_returns_body() -> None:
    delays: list[float] = []
    scraper = _FakeScraper([_FakeResponse(200, b"<html>ok</html>")])

    body = b"".join(fetch_page(scraper, URL, courtesy_delay=0.9, timeout=5.0, sleep=delays.append))

    assert body == b"<html>ok</html>"
    assert delays == [0.9]
    assert scraper.calls == [(URL, 5.0, True)]


def test_three_rate_limits_then_success_doubles_backoff() -> None:
    delays: list[float] = []
    scraper = _FakeScraper([_FakeResponse(429), _FakeResponse(429), _FakeResponse(429), _FakeResponse(200, b"ok")])

    body = b"".join(
        fetch_page(scraper, URL, retries=3, backoff=3.0, courtesy_delay=0.9, sleep=delays.append)
    )

    assert body == b"ok"
    assert delays == [3.0, 6.0, 12.0, 0.9]
    assert len(scraper.calls) == 4


def test_rate_limit_beyond_budget_raises_and_stops_requesting() -> None:
    delays: list[float] = []
    responses = [_FakeResponse(429) for _ in range(6)]
    scraper = _FakeScraper(responses)

    with pytest.raises(RateLimitRetriesExhausted) as excinfo:
        fetch_page(scraper, URL, retries=3, backoff=3.0, sleep=delays.append)

    assert len(scraper.calls) == 4
    assert delays == [3.0, 6.0, 12.0]
    assert excinfo.value.attempts == 4
    assert all(response.closed for response in responses[:4])


def test_zero_retry_budget_fails_on_first_rate_limit() -> None:
    delays: list[float] = []
    scraper = _FakeScraper([_FakeResponse(429)])

    with pytest.raises(RateLimitRetriesExhausted):
        fetch_page(scraper, URL, retries=0, sleep=delays.append)

    assert delays == []
    assert len(scraper.calls) == 1


def test_other_error_status_is_not_retried() -> None:
    delays: list[float] = []
    scraper = _FakeScraper([_FakeResponse(503), _FakeResponse(200, b"never")])

    with pytest.raises(TransportError):
        fetch_page(scraper, URL, sleep=delays.append)

    assert len(scraper.calls) == 1
    assert delays == []


def test_connection_error_is_wrapped_and_not_retried() -> None:
    scraper = _FakeScraper([requests.ConnectionError("reset by peer"), _FakeResponse(200)])

    with pytest.raises(TransportError, match="reset by peer"):
        fetch_page(scraper, URL, sleep=lambda _: None)

    assert len(scraper.calls) == 1


def test_backoff_and_courtesy_delay_are_independent() -> None:
    delays: list[float] = []
    scraper = _FakeScraper([_FakeResponse(429), _FakeResponse(200, b"ok")])

    list(fetch_page(scraper, URL, backoff=0.5, courtesy_delay=2.0, sleep=delays.append))

    assert delays == [0.5, 2.0]


def test_body_is_closed_after_reading() -> None:
    response = _FakeResponse(200, b"x" * 40000)
    scraper = _FakeScraper([response])

    chunks = list(fetch_page(scraper, URL, sleep=lambda _: None))

    assert len(chunks) == 3
    assert response.closed
