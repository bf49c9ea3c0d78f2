"""Event loop tying key input, the session state machine and the renderer."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import Protocol

from .bank import load_topic_questions
from .config import QuizConfig
from .keys import (
    Key,
    MoveFocus,
    Quit,
    Resize,
    SelectLetter,
    Submit,
    ToggleCurrent,
    Unknown,
    dispatch,
)
from .render import Renderer, Screen
from .session import QuizSession, SubmitOutcome, start_session
from .store import QuestionStore
from .terminal import AnsiTerminal, RawTerminal, raw_mode

log = logging.getLogger("reviewquiz.driver")

NO_CONTENT_MESSAGE = "No practice questions available for this topic."

PrintFn = Callable[[str], None]


class QuizTerminal(Screen, RawTerminal, Protocol):
    """Screen that can also read keys and switch to raw mode."""

    def read_key(self) -> Key: ...


def run_session(session: QuizSession, terminal: QuizTerminal, *, color: bool = True) -> bool:
    """Run one quiz session in raw mode; True when it ends with a correct answer."""
    renderer = Renderer(terminal, color=color)
    with raw_mode(terminal):
        _event_loop(session, terminal, renderer)
    log.debug("session for %s ended after %d attempts", session.question.id, session.attempt_count)
    return session.completed


def _event_loop(session: QuizSession, terminal: QuizTerminal, renderer: Renderer) -> None:
    state = session.state
    renderer.full_repaint(session)
    while not session.finished:
        action = dispatch(terminal.read_key(), state.option_count)
        match action:
            case Unknown():
                continue
            case Quit():
                session.quit()
            case Resize():
                renderer.resize(session)
            case MoveFocus(direction=direction):
                previous = state.focus
                current = state.move_focus(direction)
                renderer.refresh(session, {previous, current})
            case ToggleCurrent():
                renderer.refresh(session, {state.toggle_current()})
            case SelectLetter(index=index):
                previous = state.focus
                state.set_focus(index)
                state.toggle(index)
                renderer.refresh(session, {previous, index})
            case Submit():
                _submit(session, terminal, renderer)


def _submit(session: QuizSession, terminal: QuizTerminal, renderer: Renderer) -> None:
    outcome = session.submit()
    match outcome:
        case SubmitOutcome.COMPLETED:
            renderer.show_success(session)
            _wait_for_key(terminal)
        case SubmitOutcome.HINTS_REVEALED:
            renderer.show_keep_trying(session)
            _wait_for_key(terminal)
            renderer.full_repaint(session)
        case SubmitOutcome.SOLVED:
            renderer.show_explanation(session)
            _wait_for_key(terminal)
            session.submit()
        case SubmitOutcome.STILL_WRONG:
            renderer.full_repaint(session)


def _wait_for_key(terminal: QuizTerminal) -> Key:
    """Block until a real key press; resizes do not count."""
    while True:
        key = terminal.read_key()
        if key.name != "resize":
            return key


def run_topic_quiz(
    topic_label: str,
    config: QuizConfig | None = None,
    *,
    terminal: QuizTerminal | None = None,
    print_fn: PrintFn = print,
) -> bool:
    """Load a topic, draw one question and run it; False when quit or no content."""
    config = config if config is not None else QuizConfig()
    store = QuestionStore(chooser=random.Random(config.seed))
    load_topic_questions(store, topic_label, config.questions_dir)
    session = start_session(store, topic_label)
    if session is None:
        print_fn(NO_CONTENT_MESSAGE)
        return False
    if terminal is None:
        terminal = AnsiTerminal()
    return run_session(session, terminal, color=config.color)
