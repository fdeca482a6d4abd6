from __future__ import annotations

import os
import sys
from typing import Optional, TextIO

import colorama


class ConsoleUI:
    _COLORS = {
        "info": "36",      # cyan
        "success": "32",   # green
        "warning": "33",   # yellow
        "error": "31",     # red
        "muted": "90",     # bright black / grey
    }
    _LABELS = {
        "info": "INFO",
        "success": "DONE",
        "warning": "WARN",
        "error": "ERR",
        "muted": "...",
    }
    _BAR_WIDTH = 24

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout
        isatty = getattr(self._stream, "isatty", None)
        self._supports_ansi = bool(isatty and isatty()) and os.getenv("TERM") != "dumb"
        self._status_line: Optional[str] = None
        self._status_level = "info"
        self._detail_line: Optional[str] = None
        self._detail_level = "muted"
        self._live_length = 0

        if os.name == "nt" and self._supports_ansi:
            colorama.just_fix_windows_console()

    def _format(self, message: str, level: str) -> str:
        if level == "muted":
            return f"  {message}"
        label = self._LABELS.get(level, level.upper())
        return f"[{label}] {message}"

    def _colorize(self, text: str, level: str) -> str:
        if not self._supports_ansi:
            return text
        code = self._COLORS.get(level)
        if not code:
            return text
        return f"\x1b[{code}m{text}\x1b[0m"

    def _clear_live(self) -> None:
        if not self._live_length:
            return
        self._stream.write("\r" + " " * self._live_length + "\r")
        self._stream.flush()
        self._live_length = 0

    def _render_live(self) -> None:
        # Non-terminals get status changes as plain log lines instead.
        if not self._supports_ansi:
            return
        parts: list[str] = []
        if self._status_line:
            parts.append(self._colorize(self._format(self._status_line, self._status_level), self._status_level))
        if self._detail_line:
            parts.append(self._colorize(self._detail_line, self._detail_level))
        self._clear_live()
        if not parts:
            return
        line = " | ".join(parts)
        self._stream.write(line)
        self._stream.flush()
        self._live_length = len(line)

    def update_status(self, message: str, *, level: str = "info") -> None:
        self._status_line = message
        self._status_level = level
        if not self._supports_ansi:
            print(self._format(message, level), file=self._stream, flush=True)
            return
        self._render_live()

    def update_detail(self, message: Optional[str], *, level: str = "muted") -> None:
        self._detail_line = message
        self._detail_level = level
        if not self._supports_ansi:
            if message is not None:
                print(self._format(message, level), file=self._stream, flush=True)
            return
        self._render_live()

    def update_progress(self, index: int, total: int, label: str) -> None:
        fraction = index / total if total else 1.0
        filled = int(fraction * self._BAR_WIDTH)
        bar = "#" * filled + "-" * (self._BAR_WIDTH - filled)
        if len(label) > 36:
            label = label[:33] + "..."
        self.update_status(f"[{bar}] {fraction * 100:6.2f}% ({index}/{total}) {label}")

    def log_event(self, message: str, *, level: str = "info") -> None:
        self._clear_live()
        print(self._colorize(self._format(message, level), level), file=self._stream, flush=True)
        self._render_live()

    def finalize(self) -> None:
        self._clear_live()
        self._status_line = None
        self._detail_line = None
