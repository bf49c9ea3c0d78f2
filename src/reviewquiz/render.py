"""Adaptive terminal renderer for the question view.

The renderer draws a fixed layout (header, question, lettered options and an
instruction footer) and then keeps a per-option line cache so that focus moves
and toggles can redraw a single line instead of the whole screen.

Two coordinate strategies are used for that cache:

* top-anchored: when the options and footer fit below the cursor, nothing
  scrolls while printing, so the row read back from the terminal after each
  option line is a valid absolute row;
* bottom-anchored: when they do not fit, the terminal scrolls while printing
  and absolute rows read earlier are meaningless. Each option is instead
  cached as its distance from the bottom edge, and the absolute row is
  recomputed as ``rows - offset`` at redraw time.

Anything the cache cannot vouch for (size change, missing row, terminal that
does not answer cursor queries) makes the partial repaint report failure so
that the caller falls back to a full repaint.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol
from unicodedata import combining, east_asian_width

from .models import AnswerPhase, option_letter

if TYPE_CHECKING:
    from .session import QuizSession

ESC = "\x1b"
CLEAR_SCREEN = f"{ESC}[2J{ESC}[H"
CLEAR_LINE = f"{ESC}[2K"
HIDE_CURSOR = f"{ESC}[?25l"
SHOW_CURSOR = f"{ESC}[?25h"
GREEN = f"{ESC}[92m"
RED = f"{ESC}[91m"
YELLOW = f"{ESC}[93m"
CYAN = f"{ESC}[96m"
BOLD = f"{ESC}[1m"
DIM = f"{ESC}[2m"
RESET = f"{ESC}[0m"

NEWLINE = "\r\n"
FOOTER_LINES = 3
FOCUS_MARKER = ">"
CORRECT_GLYPH = "✔"
WRONG_GLYPH = "✘"


def move_to(row: int, column: int = 1) -> str:
    """Return cursor positioning sequence for a 1-based row and column."""
    return f"{ESC}[{row};{column}H"


class Anchor(Enum):
    """Coordinate strategy of the option line cache."""

    TOP = "top"
    BOTTOM = "bottom"


@dataclass
class RenderCache:
    """Per-option screen coordinates recorded by the last full repaint.

    In ``TOP`` mode ``rows`` holds absolute 1-based rows; in ``BOTTOM`` mode it
    holds offsets from the bottom edge of the terminal.
    """

    anchor: Anchor | None = None
    rows: dict[int, int] = field(default_factory=dict)
    size: tuple[int, int] | None = None
    valid: bool = False

    def invalidate(self) -> None:
        """Forget every coordinate; the next repaint must be a full one."""
        self.anchor = None
        self.rows.clear()
        self.size = None
        self.valid = False

    def row_for(self, index: int, terminal_rows: int) -> int | None:
        """Return absolute row for an option, or None when not cached."""
        if not self.valid or index not in self.rows:
            return None
        value = self.rows[index]
        if self.anchor is Anchor.BOTTOM:
            return terminal_rows - value
        return value


class Screen(Protocol):
    """Terminal primitives the renderer needs."""

    supports_partial: bool

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)``."""
        ...

    def cursor_row(self) -> int | None:
        """Return the 1-based cursor row, or None when it cannot be queried."""
        ...

    def write(self, text: str) -> None: ...

    def flush(self) -> None: ...


def choose_anchor(terminal_rows: int, cursor_row: int, option_count: int) -> Anchor:
    """Pick the coordinate strategy for options drawn from ``cursor_row``."""
    remaining = terminal_rows - cursor_row
    required = option_count + FOOTER_LINES
    if remaining >= required:
        return Anchor.TOP
    return Anchor.BOTTOM


def bottom_offset(index: int, option_count: int) -> int:
    """Distance of an option line from the bottom edge when content ends there."""
    return FOOTER_LINES + (option_count - 1 - index)


def char_width(char: str) -> int:
    """Terminal cells taken by one character."""
    if combining(char):
        return 0
    return 2 if east_asian_width(char) in ("W", "F") else 1


def display_width(text: str) -> int:
    return sum(char_width(char) for char in text)


def _clip(text: str, width: int) -> str:
    """Cut ``text`` to at most ``width`` cells, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if display_width(text) <= width:
        return text
    kept: list[str] = []
    used = 0
    for char in text:
        cells = char_width(char)
        if used + cells > width - 1:
            break
        kept.append(char)
        used += cells
    return "".join(kept) + "…"


class Renderer:
    """Draws quiz sessions onto a `Screen`."""

    def __init__(self, screen: Screen, *, color: bool = True) -> None:
        self.screen = screen
        self.color = color

    def _paint(self, code: str, text: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{RESET}"

    def option_line(self, session: QuizSession, index: int, columns: int) -> str:
        """Return one option line, clipped to the terminal width."""
        state = session.state
        option = state.option_at(index)
        focus = FOCUS_MARKER if index == state.focus else " "
        box = "[x]" if state.is_selected(option.id) else "[ ]"
        prefix = f"{focus} {option_letter(index)}. {box} "

        glyph = ""
        glyph_code = ""
        if state.phase is AnswerPhase.SHOWING_HINTS:
            revealed = state.revealed.get(option.id)
            if revealed is not None:
                glyph = CORRECT_GLYPH if revealed else WRONG_GLYPH
                glyph_code = GREEN if revealed else RED
        elif state.phase is AnswerPhase.FINAL_ANSWER:
            glyph = CORRECT_GLYPH if option.is_correct else WRONG_GLYPH
            glyph_code = GREEN if option.is_correct else RED

        budget = columns - 1
        suffix_width = display_width(glyph) + 2 if glyph else 0
        if glyph and display_width(prefix) + suffix_width > budget:
            glyph = ""
            suffix_width = 0
        room = budget - display_width(prefix) - suffix_width
        if room < 0:
            line = _clip(prefix + option.content, budget)
        else:
            line = prefix + _clip(option.content, room)
        if index == state.focus:
            line = self._paint(BOLD, line)
        if glyph:
            line += "  " + self._paint(glyph_code, glyph)
        return line

    def footer_lines(self, session: QuizSession) -> list[str]:
        """Return exactly `FOOTER_LINES` instruction lines for the phase."""
        count = session.state.option_count
        last_letter = option_letter(count - 1)
        match session.state.phase:
            case AnswerPhase.FIRST_ATTEMPT:
                lines = [
                    "",
                    f"Up/Down move, Space toggles, A-{last_letter} toggle by letter, Enter submits.",
                    "Esc or Ctrl-C quits.",
                ]
            case AnswerPhase.SHOWING_HINTS:
                lines = [
                    "",
                    f"Use the markers to fix your selection: {CORRECT_GLYPH} correct, {WRONG_GLYPH} wrong.",
                    "Enter submits again, Esc or Ctrl-C quits.",
                ]
            case AnswerPhase.FINAL_ANSWER:
                lines = ["", "Press Enter to finish.", ""]
        return lines

    def header_lines(self, session: QuizSession) -> list[str]:
        question = session.question
        lines = [
            self._paint(BOLD, f"{session.topic} - Code Review"),
            "=" * 47,
            "",
            self._paint(CYAN, question.title),
            "",
            "Requirements:",
        ]
        lines.extend(question.description.splitlines())
        lines.extend(["", "Code under review:"])
        lines.extend(self._paint(DIM, line) if line else line for line in question.code.splitlines())
        lines.extend(["", "Which problems does this code have? (select all that apply)", ""])
        return lines

    def full_repaint(self, session: QuizSession) -> None:
        """Redraw the whole question view and rebuild the line cache."""
        screen = self.screen
        cache = session.state.render_cache
        cache.invalidate()

        columns, rows = screen.size()
        screen.write(CLEAR_SCREEN)
        for line in self.header_lines(session):
            screen.write(line + NEWLINE)
        screen.flush()

        count = session.state.option_count
        start_row = screen.cursor_row() if screen.supports_partial else None
        anchor = None if start_row is None else choose_anchor(rows, start_row, count)

        recorded: dict[int, int] = {}
        for index in range(count):
            screen.write(self.option_line(session, index, columns))
            if anchor is Anchor.TOP:
                screen.flush()
                row = screen.cursor_row()
                if row is None:
                    anchor = None
                else:
                    recorded[index] = row
            elif anchor is Anchor.BOTTOM:
                recorded[index] = bottom_offset(index, count)
            screen.write(NEWLINE)

        footer = self.footer_lines(session)
        screen.write(NEWLINE.join(_clip(line, columns - 1) for line in footer))
        screen.flush()

        if anchor is not None:
            cache.anchor = anchor
            cache.rows.update(recorded)
            cache.size = (columns, rows)
            cache.valid = True

    def repaint_options(self, session: QuizSession, indices: Iterable[int]) -> bool:
        """Redraw only the given option lines; False means a full repaint is needed."""
        screen = self.screen
        cache = session.state.render_cache
        if not screen.supports_partial or not cache.valid:
            return False

        size = screen.size()
        if size != cache.size:
            cache.invalidate()
            return False
        columns, rows = size

        targets: list[tuple[int, int]] = []
        for index in sorted(set(indices)):
            row = cache.row_for(index, rows)
            if row is None or not 1 <= row <= rows:
                return False
            targets.append((index, row))

        for index, row in targets:
            screen.write(move_to(row) + CLEAR_LINE + self.option_line(session, index, columns))
        screen.flush()
        return True

    def refresh(self, session: QuizSession, changed: Iterable[int]) -> bool:
        """Partial repaint when possible, full repaint otherwise; True if partial."""
        if self.repaint_options(session, changed):
            return True
        self.full_repaint(session)
        return False

    def resize(self, session: QuizSession) -> None:
        """Drop every cached coordinate and redraw from scratch."""
        session.state.render_cache.invalidate()
        self.full_repaint(session)

    def _page(self, session: QuizSession | None, lines: Iterable[str]) -> None:
        if session is not None:
            session.state.render_cache.invalidate()
        self.screen.write(CLEAR_SCREEN)
        self.screen.write(NEWLINE.join(lines) + NEWLINE)
        self.screen.flush()

    def show_success(self, session: QuizSession) -> None:
        """Congratulate a first-try correct answer."""
        lines = [
            self._paint(GREEN, "Well done! You spotted every problem in this code."),
            "Reviewing AI-generated code like this is exactly the skill being trained.",
            "",
            "You correctly identified:",
        ]
        lines.extend(f"  • {option.content}" for option in session.question.options if option.is_correct)
        lines.extend(["", "Press any key to continue..."])
        self._page(session, lines)

    def show_keep_trying(self, session: QuizSession) -> None:
        """Tell the user the first attempt was wrong and hints follow."""
        lines = [
            self._paint(YELLOW, "Not quite, think it over!"),
            "",
            "Each option now shows whether it is correct. Adjust your selection.",
            "",
            "Press any key to continue...",
        ]
        self._page(session, lines)

    def show_explanation(self, session: QuizSession) -> None:
        """Show per-option explanations and key learning points."""
        question = session.question
        state = session.state
        lines = [self._paint(BOLD, "Detailed explanation"), "=" * 47, "", self._paint(GREEN, "Correct options:")]
        for option in question.options:
            if option.is_correct:
                explanation = question.explanation_for(option.id) or "No detailed explanation."
                lines.append(f"{state.letter_for(option.id)}. {option.content} - {explanation}")
        lines.extend(["", self._paint(RED, "Wrong options:")])
        for option in question.options:
            if not option.is_correct:
                explanation = question.explanation_for(option.id) or "This option is not an issue."
                lines.append(f"{state.letter_for(option.id)}. {option.content} - {explanation}")
        if question.key_points:
            lines.extend(["", self._paint(CYAN, "Key learning points:")])
            lines.extend(f"  • {point}" for point in question.key_points)
        lines.extend(["", "Press any key to continue..."])
        self._page(session, lines)

    def show_message(self, text: str) -> None:
        self._page(None, [text])
