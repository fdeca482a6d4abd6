from __future__ import annotations


class EpubGrabError(RuntimeError):
    """Base class for every fatal condition that aborts a download."""


class TransportError(EpubGrabError):
    """Network failure or a non-429 HTTP error status."""


class RateLimitRetriesExhausted(EpubGrabError):
    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(f"Still rate limited after {attempts} attempts: {url}")
        self.url = url
        self.attempts = attempts


class TokenDecodingError(EpubGrabError):
    """Page bytes could not be decoded as UTF-8 text."""


class AssemblyError(EpubGrabError):
    """The EPUB writer rejected a chapter or failed to write the book."""
