from __future__ import annotations

import io
import os
import pty
import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from reviewquiz.terminal import AnsiTerminal  # noqa: E402


def _tmp_path_fixture() -> Iterator[Path]:
    """Per-test directory under ``.tmp_pytest/`` in the project.

    Replaces pytest's builtin ``tmp_path`` so exported banks and question
    directories stay inside the working tree.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


@pytest.fixture
def pty_terminal() -> Iterator[tuple[AnsiTerminal, int, io.StringIO]]:
    """AnsiTerminal reading a pseudo-terminal; tests type keys into the master fd."""
    master, slave = pty.openpty()
    stdin = os.fdopen(slave, "rb", buffering=0)
    stdout = io.StringIO()
    try:
        yield AnsiTerminal(stdin=stdin, stdout=stdout), master, stdout
    finally:
        stdin.close()
        os.close(master)


@pytest.fixture
def closed_pipe() -> Iterator[Any]:
    """Binary stdin stand-in that is not a tty and is already at end of input."""
    read_fd, write_fd = os.pipe()
    os.close(write_fd)
    stdin = os.fdopen(read_fd, "rb", buffering=0)
    try:
        yield stdin
    finally:
        stdin.close()
