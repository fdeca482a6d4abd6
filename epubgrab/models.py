from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class TagOpen:
    name: str
    attributes: tuple[tuple[str, str], ...] = ()
    self_closing: bool = False


@dataclass(frozen=True)
class TagClose:
    name: str


@dataclass(frozen=True)
class Text:
    content: str


@dataclass(frozen=True)
class EndOfInput:
    pass


Token = Union[TagOpen, TagClose, Text, EndOfInput]


@dataclass
class ListingResult:
    author: str = ""
    title: str = ""
    links: list[str] = field(default_factory=list)


@dataclass
class ChapterResult:
    title: str = ""
    body: str = ""


@dataclass(frozen=True)
class Chapter:
    index: int
    url: str
    title: str
    body: str


@dataclass(frozen=True)
class FetchSettings:
    retries: int = 3
    backoff: float = 3.0
    courtesy_delay: float = 0.9
    timeout: float = 60.0
    language: str = "en"
