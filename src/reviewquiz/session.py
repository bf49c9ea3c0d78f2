"""Quiz session state machine for one multiple-choice question."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .models import OPTION_LETTERS, AnswerPhase, Question, QuizOption, option_letter
from .render import RenderCache
from .store import Chooser, QuestionStore
from .topics import extract_topic_key


class FocusDirection(Enum):
    """Keyboard focus movement."""

    UP = "up"
    DOWN = "down"


class SubmitOutcome(Enum):
    """Result of one submission."""

    COMPLETED = "completed"
    HINTS_REVEALED = "hints_revealed"
    SOLVED = "solved"
    STILL_WRONG = "still_wrong"

    @property
    def correct(self) -> bool:
        """Whether the submitted selection matched the correct set."""
        return self in (SubmitOutcome.COMPLETED, SubmitOutcome.SOLVED)


@dataclass
class QuestionState:
    """Mutable per-question state; display order is independent of identity."""

    displayed_options: list[QuizOption]
    selections: set[str] = field(default_factory=set)
    focus: int = 0
    phase: AnswerPhase = AnswerPhase.FIRST_ATTEMPT
    revealed: dict[str, bool] = field(default_factory=dict)
    render_cache: RenderCache = field(default_factory=RenderCache)

    def __post_init__(self) -> None:
        if not self.displayed_options:
            raise ValueError("Question state requires at least one option.")
        if len(self.displayed_options) > len(OPTION_LETTERS):
            raise ValueError(f"Question state supports at most {len(OPTION_LETTERS)} options.")
        self._check_index(self.focus)

    @classmethod
    def for_question(cls, question: Question, chooser: Chooser) -> QuestionState:
        """Build fresh state with options permuted into a session order."""
        displayed = list(question.options)
        chooser.shuffle(displayed)
        return cls(displayed_options=displayed)

    @property
    def option_count(self) -> int:
        return len(self.displayed_options)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.displayed_options):
            raise IndexError(f"Option index {index} out of range for {len(self.displayed_options)} options.")

    def option_at(self, index: int) -> QuizOption:
        """Return displayed option at a position."""
        self._check_index(index)
        return self.displayed_options[index]

    def toggle(self, index: int) -> None:
        """Flip selection membership of the option at a display position."""
        option_id = self.option_at(index).id
        if option_id in self.selections:
            self.selections.remove(option_id)
        else:
            self.selections.add(option_id)

    def toggle_current(self) -> int:
        """Toggle the focused option and return its index."""
        self.toggle(self.focus)
        return self.focus

    def move_focus(self, direction: FocusDirection) -> int:
        """Move focus circularly and return the new index."""
        count = len(self.displayed_options)
        if direction is FocusDirection.UP:
            self.focus = (self.focus - 1) % count
        else:
            self.focus = (self.focus + 1) % count
        return self.focus

    def set_focus(self, index: int) -> None:
        self._check_index(index)
        self.focus = index

    def is_selected(self, option_id: str) -> bool:
        return option_id in self.selections

    def index_of(self, option_id: str) -> int | None:
        """Return display position of an option identity."""
        for index, option in enumerate(self.displayed_options):
            if option.id == option_id:
                return index
        return None

    def letter_for(self, option_id: str) -> str:
        """Return display letter for an option identity, or '?' when absent."""
        index = self.index_of(option_id)
        if index is None:
            return "?"
        return option_letter(index)

    def is_correct(self, question: Question) -> bool:
        """Exact set equality between selections and correct identities."""
        return frozenset(self.selections) == question.correct_ids()

    def reveal(self, question: Question) -> None:
        """Record every option's correctness and enter the hint phase."""
        self.revealed = {option.id: option.is_correct for option in question.options}
        self.phase = AnswerPhase.SHOWING_HINTS


@dataclass
class QuizSession:
    """One question attempt from draw to completion or quit."""

    topic: str
    question: Question
    state: QuestionState
    attempt_count: int = 0
    completed: bool = False
    quit_requested: bool = False

    @property
    def finished(self) -> bool:
        return self.completed or self.quit_requested

    def submit(self) -> SubmitOutcome:
        """Evaluate selections and advance the answer phase."""
        correct = self.state.is_correct(self.question)
        self.attempt_count += 1
        match (self.state.phase, correct):
            case (AnswerPhase.FIRST_ATTEMPT, True):
                self.completed = True
                return SubmitOutcome.COMPLETED
            case (AnswerPhase.FIRST_ATTEMPT, False):
                self.state.reveal(self.question)
                return SubmitOutcome.HINTS_REVEALED
            case (AnswerPhase.SHOWING_HINTS, True):
                self.state.phase = AnswerPhase.FINAL_ANSWER
                return SubmitOutcome.SOLVED
            case (AnswerPhase.SHOWING_HINTS, False):
                return SubmitOutcome.STILL_WRONG
            case (AnswerPhase.FINAL_ANSWER, _):
                self.completed = True
                return SubmitOutcome.COMPLETED
        raise RuntimeError(f"Unhandled answer phase: {self.state.phase!r}")

    def quit(self) -> None:
        """Abandon the session from any phase."""
        self.quit_requested = True


def start_session(store: QuestionStore, topic_label: str) -> QuizSession | None:
    """Draw one random question for a topic and build a fresh session."""
    topic_key = extract_topic_key(topic_label)
    question = store.random(topic_key)
    if question is None:
        return None
    return QuizSession(topic=topic_key, question=question, state=QuestionState.for_question(question, store.chooser))
