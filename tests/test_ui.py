from __future__ import annotations

import io

from epubgrab.ui import ConsoleUI


def test_plain_stream_gets_labelled_lines() -> None:
    stream = io.StringIO()
    ui = ConsoleUI(stream=stream)

    ui.update_status("Reading listing page...")
    ui.update_detail("Rate limited", level="warning")
    ui.log_event("Saved book.epub", level="success")
    ui.finalize()

    assert stream.getvalue().splitlines() == [
        "[INFO] Reading listing page...",
        "[WARN] Rate limited",
        "[DONE] Saved book.epub",
    ]


def test_progress_line_shows_bar_and_truncated_label() -> None:
    stream = io.StringIO()
    ui = ConsoleUI(stream=stream)

    ui.update_progress(1, 4, "A chapter title that is definitely longer than the limit")

    line = stream.getvalue().strip()
    assert line.startswith("[INFO] [######------------------]  25.00% (1/4) ")
    assert line.endswith("...")
