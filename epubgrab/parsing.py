from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable

from .models import ChapterResult, ListingResult, TagClose, TagOpen, Text, Token
from .tokens import run_tokenizer

LINK_PREFIX = "https:"
LINE_BREAK = "<br />"
EM_SPACE = "\u2003"


class ListingRegion(enum.Flag):
    NONE = 0
    AUTHOR_MARKER = enum.auto()
    AUTHOR = enum.auto()
    TITLE = enum.auto()
    LINKS = enum.auto()


_LISTING_CLOSABLE = ListingRegion.AUTHOR | ListingRegion.TITLE | ListingRegion.LINKS
_LISTING_TEXT = ListingRegion.AUTHOR | ListingRegion.TITLE


class ChapterRegion(enum.Flag):
    NONE = 0
    TITLE = enum.auto()
    BODY = enum.auto()


@dataclass
class ListingState:
    regions: ListingRegion = ListingRegion.NONE
    author: str = ""
    title: str = ""
    links: list[str] = field(default_factory=list)


@dataclass
class ChapterState:
    regions: ChapterRegion = ChapterRegion.NONE
    title_parts: list[str] = field(default_factory=list)
    body_parts: list[str] = field(default_factory=list)


class ListingExtractor:
    """Collects author, work title and chapter links from a listing page.

    ``<span class="author">`` arms the author marker and the next anchor opens
    the author region; ``<span class="title">`` opens the title region and
    ``<ul id="chapter-list">`` opens the link list. Text inside author or title
    replaces the previous value, so only the last text run survives.

    Regions end on the first tag close seen while exactly one of them is open
    (the link list only on ``</ul>``). Nothing tracks element depth, so a
    nested element inside the author or title region ends it early.
    """

    def __init__(self) -> None:
        self.state = ListingState()

    def process_token(self, token: Token) -> None:
        if isinstance(token, TagOpen):
            self._open(token)
        elif isinstance(token, TagClose):
            self._close(token)
        elif isinstance(token, Text):
            self._text(token.content)

    def _open(self, tag: TagOpen) -> None:
        state = self.state
        if tag.name == "span":
            for name, value in tag.attributes:
                if (name, value) == ("class", "author"):
                    state.regions |= ListingRegion.AUTHOR_MARKER
                elif (name, value) == ("class", "title"):
                    state.regions |= ListingRegion.TITLE
        elif tag.name == "a":
            # An armed author marker takes the anchor even inside the link list.
            if ListingRegion.AUTHOR_MARKER in state.regions:
                state.regions |= ListingRegion.AUTHOR
            elif ListingRegion.LINKS in state.regions:
                for name, value in tag.attributes:
                    if name == "href":
                        state.links.append(LINK_PREFIX + value)
        elif tag.name == "ul":
            if ("id", "chapter-list") in tag.attributes:
                state.regions |= ListingRegion.LINKS

    def _close(self, tag: TagClose) -> None:
        state = self.state
        open_regions = state.regions & _LISTING_CLOSABLE
        if open_regions == ListingRegion.AUTHOR:
            state.regions &= ~(ListingRegion.AUTHOR | ListingRegion.AUTHOR_MARKER)
        elif open_regions == ListingRegion.TITLE:
            state.regions &= ~ListingRegion.TITLE
        elif open_regions == ListingRegion.LINKS and tag.name == "ul":
            state.regions &= ~ListingRegion.LINKS

    def _text(self, content: str) -> None:
        region = self.state.regions & _LISTING_TEXT
        if region == ListingRegion.AUTHOR:
            self.state.author = content
        elif region == ListingRegion.TITLE:
            self.state.title = content

    def result(self) -> ListingResult:
        return ListingResult(
            author=self.state.author,
            title=self.state.title,
            links=list(self.state.links),
        )


class ChapterExtractor:
    """Collects the chapter title and body markup from a chapter page.

    Any start tag with ``class="name"`` opens the title region and
    ``class="content"`` opens the body region. Title text is concatenated
    verbatim; body text has newlines turned into ``<br />`` and em spaces
    dropped. Any tag close ends whichever single region is open.
    """

    def __init__(self) -> None:
        self.state = ChapterState()

    def process_token(self, token: Token) -> None:
        state = self.state
        if isinstance(token, TagOpen):
            for name, value in token.attributes:
                if (name, value) == ("class", "name"):
                    state.regions |= ChapterRegion.TITLE
                elif (name, value) == ("class", "content"):
                    state.regions |= ChapterRegion.BODY
        elif isinstance(token, TagClose):
            if state.regions in (ChapterRegion.TITLE, ChapterRegion.BODY):
                state.regions = ChapterRegion.NONE
        elif isinstance(token, Text):
            if state.regions == ChapterRegion.TITLE:
                state.title_parts.append(token.content)
            elif state.regions == ChapterRegion.BODY:
                if not token.content:
                    return
                state.body_parts.append(clean_body_text(token.content))

    def result(self) -> ChapterResult:
        return ChapterResult(
            title="".join(self.state.title_parts),
            body="".join(self.state.body_parts),
        )


def clean_body_text(text: str) -> str:
    return text.replace("\n", LINE_BREAK).replace(EM_SPACE, "")


def extract_listing(chunks: Iterable[bytes]) -> ListingResult:
    extractor = ListingExtractor()
    run_tokenizer(chunks, extractor)
    return extractor.result()


def extract_chapter(chunks: Iterable[bytes]) -> ChapterResult:
    extractor = ChapterExtractor()
    run_tokenizer(chunks, extractor)
    return extractor.result()
