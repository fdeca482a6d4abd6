from __future__ import annotations

from pathlib import Path

import pytest

from epubgrab.cli import parse_args, settings_from_args, validate_args
from epubgrab.models import FetchSettings


def test_defaults_match_fetch_settings() -> None:
    args = parse_args(["https://example.com/book/1"])
    validate_args(args)

    assert settings_from_args(args) == FetchSettings()
    assert args.output == "."


def test_options_flow_into_settings() -> None:
    args = parse_args(
        [
            "https://example.com/book/1",
            "--retries",
            "5",
            "--backoff",
            "1.5",
            "--delay",
            "0",
            "--timeout",
            "10",
            "--lang",
            "ja",
        ]
    )

    assert settings_from_args(args) == FetchSettings(
        retries=5, backoff=1.5, courtesy_delay=0.0, timeout=10.0, language="ja"
    )


@pytest.mark.parametrize(
    "argv",
    [
        ["http://example.com/book/1"],
        ["example.com/book/1"],
        ["https://example.com/b", "--retries", "-1"],
        ["https://example.com/b", "--backoff", "-0.1"],
        ["https://example.com/b", "--delay", "-1"],
        ["https://example.com/b", "--timeout", "0"],
        ["https://example.com/b", "--lang", " "],
    ],
)
def test_invalid_arguments_are_rejected(argv: list[str]) -> None:
    with pytest.raises(SystemExit):
        validate_args(parse_args(argv))


def test_output_path_must_not_be_a_file(tmp_path: Path) -> None:
    target = tmp_path / "book.epub"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(SystemExit):
        validate_args(parse_args(["https://example.com/b", "-o", str(target)]))
