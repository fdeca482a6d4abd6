from __future__ import annotations

import html
import re
import uuid
from pathlib import Path

from ebooklib import epub
from lxml import etree

from .errors import AssemblyError
from .models import Chapter

MAX_FILENAME_LEN = 120
DEFAULT_FILENAME = "untitled"
EPUB_SUFFIX = ".epub"

_WINDOWS_RESERVED_NAMES = {
    "CON",
    "PRN",
    "AUX",
    "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}

CHAPTER_SHELL = """<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head>
<title>{title}</title>
</head>
<body>
<div>{body}</div>
</body>
</html>"""


def safe_filename(name: str, default: str = DEFAULT_FILENAME, max_length: int = MAX_FILENAME_LEN) -> str:
    name = re.sub(r'[\\/:*?"<>|\x00-\x1f]+', "", name)
    name = re.sub(r"\s+", " ", name).strip()
    if max_length > 0 and len(name) > max_length:
        name = name[:max_length]
    name = name.rstrip(" .")
    if not name:
        name = default
    if name.upper() in _WINDOWS_RESERVED_NAMES:
        name = f"_{name}"
    return name


def chapter_document(chapter: Chapter) -> str:
    return CHAPTER_SHELL.format(title=html.escape(chapter.title), body=chapter.body)


class EpubAssembler:
    """Collects chapters in order and writes them as one EPUB 3 book."""

    def __init__(self, author: str, title: str, *, language: str = "en") -> None:
        self.author = author
        self.title = title
        self._book = epub.EpubBook()
        self._book.set_identifier(uuid.uuid5(uuid.NAMESPACE_URL, f"{author}/{title}").urn)
        self._book.set_title(title)
        self._book.set_language(language)
        if author:
            self._book.add_author(author)
        self._chapters: list[epub.EpubHtml] = []
        self._toc: list[epub.Link] = []
        self._file_names: set[str] = set()
        self._written = False

    @property
    def chapter_count(self) -> int:
        return len(self._chapters)

    def add_chapter(self, chapter: Chapter) -> None:
        """Queue a chapter; markup problems surface as AssemblyError from write()."""
        if self._written:
            raise AssemblyError("Book has already been written")
        file_name = f"{chapter.index}.xhtml"
        if file_name in self._file_names:
            raise AssemblyError(f"Chapter {chapter.index} was already added")
        content = chapter_document(chapter).encode("utf-8")

        toc_title = chapter.title.strip() or f"Chapter {chapter.index}"
        item = epub.EpubHtml(title=toc_title, file_name=file_name, lang=self._book.language)
        item.content = content
        self._book.add_item(item)
        self._chapters.append(item)
        self._file_names.add(file_name)
        self._toc.append(epub.Link(file_name, toc_title, f"chapter-{chapter.index}"))

    def output_path(self, output_directory: Path) -> Path:
        return output_directory / f"{safe_filename(self.title)}{EPUB_SUFFIX}"

    def write(self, output_directory: Path) -> Path:
        if self._written:
            raise AssemblyError("Book has already been written")
        book = self._book
        book.toc = tuple(self._toc)
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = ["nav", *self._chapters]

        path = self.output_path(output_directory)
        try:
            output_directory.mkdir(parents=True, exist_ok=True)
            epub.write_epub(str(path), book, {})
        except (OSError, ValueError, epub.EpubException, etree.LxmlError) as exc:
            raise AssemblyError(f"Writing {path.name} failed: {exc}") from exc
        self._written = True
        return path
