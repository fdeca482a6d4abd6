from __future__ import annotations

import codecs
from html.parser import HTMLParser
from typing import Iterable, Optional, Protocol

from .errors import TokenDecodingError
from .models import EndOfInput, TagClose, TagOpen, Text, Token


class TokenSink(Protocol):
    def process_token(self, token: Token) -> None:
        ...


class _TokenParser(HTMLParser):
    def __init__(self, sink: TokenSink) -> None:
        super().__init__(convert_charrefs=True)
        self._sink = sink
        self._text_parts: list[str] = []

    @staticmethod
    def _attributes(attrs: list[tuple[str, Optional[str]]]) -> tuple[tuple[str, str], ...]:
        return tuple((name, value if value is not None else "") for name, value in attrs)

    def flush_text(self) -> None:
        # One Text token per run of character data, however the bytes were chunked.
        if self._text_parts:
            text = "".join(self._text_parts)
            self._text_parts = []
            self._sink.process_token(Text(text))

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        self.flush_text()
        self._sink.process_token(TagOpen(tag, self._attributes(attrs)))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        # <br/> is a start tag only; no matching end tag is produced.
        self.flush_text()
        self._sink.process_token(TagOpen(tag, self._attributes(attrs), self_closing=True))

    def handle_endtag(self, tag: str) -> None:
        self.flush_text()
        self._sink.process_token(TagClose(tag))

    def handle_data(self, data: str) -> None:
        if data:
            self._text_parts.append(data)

    def handle_comment(self, data: str) -> None:
        self.flush_text()

    def close(self) -> None:
        super().close()
        self.flush_text()


class HtmlTokenizer:
    """Push raw page bytes in, get tokens delivered to ``sink`` in document order.

    Bytes are decoded as strict UTF-8 across chunk boundaries and line endings
    are normalised to ``\\n`` before tokenizing. Comments, doctypes and
    processing instructions produce no tokens.
    """

    def __init__(self, sink: TokenSink) -> None:
        self.sink = sink
        self._parser = _TokenParser(sink)
        self._decoder = codecs.getincrementaldecoder("utf-8-sig")(errors="strict")
        self._pending_cr = False
        self._ended = False

    def _decode(self, chunk: bytes, final: bool) -> str:
        try:
            return self._decoder.decode(chunk, final=final)
        except UnicodeDecodeError as exc:
            raise TokenDecodingError(f"Page is not valid UTF-8: {exc}") from exc

    def _normalize(self, text: str, final: bool) -> str:
        if self._pending_cr:
            text = "\r" + text
            self._pending_cr = False
        if not final and text.endswith("\r"):
            text = text[:-1]
            self._pending_cr = True
        return text.replace("\r\n", "\n").replace("\r", "\n")

    def feed(self, chunk: bytes) -> None:
        if self._ended:
            raise ValueError("Tokenizer already ended")
        text = self._normalize(self._decode(chunk, final=False), final=False)
        if text:
            self._parser.feed(text)

    def end(self) -> None:
        if self._ended:
            return
        text = self._normalize(self._decode(b"", final=True), final=True)
        if text:
            self._parser.feed(text)
        self._parser.close()
        self._ended = True
        self.sink.process_token(EndOfInput())


def run_tokenizer(chunks: Iterable[bytes], sink: TokenSink) -> TokenSink:
    tokenizer = HtmlTokenizer(sink)
    for chunk in chunks:
        tokenizer.feed(chunk)
    tokenizer.end()
    return sink
