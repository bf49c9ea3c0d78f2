"""ANSI terminal access: raw input mode, key reading and cursor queries."""

from __future__ import annotations

import logging
import os
import re
import select
import shutil
import signal
import sys
import termios
import tty
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol, TextIO

from .keys import RESIZE_KEY, Key, decode_keys
from .render import HIDE_CURSOR, RESET, SHOW_CURSOR

log = logging.getLogger("reviewquiz.terminal")

CURSOR_QUERY = "\x1b[6n"
CURSOR_REPORT = re.compile(rb"\x1b\[(\d+);(\d+)R")
QUERY_TIMEOUT = 0.25


class RawTerminal(Protocol):
    """What the raw-mode guard needs from a terminal."""

    def enter_raw(self) -> Any: ...

    def leave_raw(self, saved: Any) -> None: ...


@contextmanager
def raw_mode(terminal: RawTerminal) -> Iterator[None]:
    """Hold raw key-by-key input for the duration of the block.

    Line-buffered mode and a visible cursor are restored on every exit path,
    including exceptions raised while reading or drawing.
    """
    saved = terminal.enter_raw()
    try:
        yield
    finally:
        terminal.leave_raw(saved)


class AnsiTerminal:
    """Real terminal on stdin/stdout, usable as renderer `Screen` and key source."""

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self.in_fd = self._stdin.fileno()
        self._pending: list[Key] = []
        self._wake_r: int | None = None
        self._wake_w: int | None = None
        self._previous_winch: Any = None
        self.supports_partial = (
            os.isatty(self.in_fd) and self._stdout.isatty() and os.environ.get("TERM", "") != "dumb"
        )

    def size(self) -> tuple[int, int]:
        columns, rows = shutil.get_terminal_size()
        return (columns, rows)

    def write(self, text: str) -> None:
        self._stdout.write(text)

    def flush(self) -> None:
        self._stdout.flush()

    def enter_raw(self) -> list[Any]:
        """Switch stdin to raw mode, hide the cursor and start watching resizes."""
        try:
            saved = termios.tcgetattr(self.in_fd)
        except termios.error as exc:
            raise OSError(*exc.args) from exc
        try:
            tty.setraw(self.in_fd)
            self._open_resize_channel()
            self.write(HIDE_CURSOR)
            self.flush()
        except termios.error as exc:
            self._abandon_raw(saved)
            raise OSError(*exc.args) from exc
        except BaseException:
            self._abandon_raw(saved)
            raise
        return saved

    def _abandon_raw(self, saved: list[Any]) -> None:
        """Undo a partial `enter_raw` while another error is propagating."""
        try:
            termios.tcsetattr(self.in_fd, termios.TCSADRAIN, saved)
        except termios.error as exc:
            log.warning("could not restore terminal attributes: %s", exc)
        finally:
            self._close_resize_channel()

    def leave_raw(self, saved: list[Any]) -> None:
        """Restore saved terminal attributes and show the cursor again."""
        try:
            termios.tcsetattr(self.in_fd, termios.TCSADRAIN, saved)
        except termios.error as exc:
            raise OSError(*exc.args) from exc
        finally:
            self._close_resize_channel()
            self.write(RESET + SHOW_CURSOR + "\n")
            self.flush()

    def _open_resize_channel(self) -> None:
        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_r, False)
        os.set_blocking(self._wake_w, False)
        self._previous_winch = signal.signal(signal.SIGWINCH, self._on_resize)

    def _close_resize_channel(self) -> None:
        if self._previous_winch is not None:
            signal.signal(signal.SIGWINCH, self._previous_winch)
            self._previous_winch = None
        for fd in (self._wake_r, self._wake_w):
            if fd is not None:
                os.close(fd)
        self._wake_r = None
        self._wake_w = None

    def _on_resize(self, signum: int, frame: object) -> None:
        if self._wake_w is None:
            return
        try:
            os.write(self._wake_w, b"r")
        except BlockingIOError:
            pass

    def _drain_wake_pipe(self) -> None:
        if self._wake_r is None:
            return
        while True:
            try:
                if not os.read(self._wake_r, 64):
                    return
            except BlockingIOError:
                return

    def read_key(self) -> Key:
        """Block until the next key event; resizes arrive as `RESIZE_KEY`."""
        if self._pending:
            return self._pending.pop(0)
        while True:
            watched = [self.in_fd] if self._wake_r is None else [self.in_fd, self._wake_r]
            ready, _, _ = select.select(watched, [], [])
            if self._wake_r is not None and self._wake_r in ready:
                self._drain_wake_pipe()
                return RESIZE_KEY
            data = os.read(self.in_fd, 64)
            if not data:
                return Key(name="ctrl-d")
            keys = decode_keys(data)
            if keys:
                self._pending.extend(keys[1:])
                return keys[0]

    def cursor_row(self) -> int | None:
        """Ask the terminal for the cursor position; None if it does not answer."""
        if not self.supports_partial:
            return None
        self.write(CURSOR_QUERY)
        self.flush()
        buffer = b""
        while True:
            ready, _, _ = select.select([self.in_fd], [], [], QUERY_TIMEOUT)
            if not ready:
                log.debug("cursor position query timed out; using full repaints only")
                self.supports_partial = False
                self._pending.extend(decode_keys(buffer))
                return None
            chunk = os.read(self.in_fd, 64)
            if not chunk:
                self._pending.extend(decode_keys(buffer))
                return None
            buffer += chunk
            match = CURSOR_REPORT.search(buffer)
            if match is not None:
                self._pending.extend(decode_keys(buffer[: match.start()] + buffer[match.end() :]))
                return int(match.group(1))
