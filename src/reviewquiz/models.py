"""Core domain models for code review quiz questions."""

from __future__ import annotations

import string
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

OPTION_LETTERS = string.ascii_uppercase


class AnswerPhase(Enum):
    """Stage of the answer escalation protocol."""

    FIRST_ATTEMPT = "first_attempt"
    SHOWING_HINTS = "showing_hints"
    FINAL_ANSWER = "final_answer"


def option_letter(index: int) -> str:
    """Return display letter for a zero-based option position."""
    if not 0 <= index < len(OPTION_LETTERS):
        raise IndexError(f"No option letter for position {index}.")
    return OPTION_LETTERS[index]


@dataclass(frozen=True)
class QuizOption:
    """One answer choice; `id` is stable across shuffles."""

    id: str
    content: str
    is_correct: bool


@dataclass(frozen=True)
class Question:
    """Multiple-choice review question."""

    id: str
    title: str
    description: str
    code: str
    options: tuple[QuizOption, ...]
    explanations: Mapping[str, str] = field(default_factory=dict)
    key_points: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "explanations", MappingProxyType(dict(self.explanations)))

    def correct_ids(self) -> frozenset[str]:
        """Return identities of every correct option."""
        return frozenset(option.id for option in self.options if option.is_correct)

    def option_ids(self) -> frozenset[str]:
        """Return identities of every option."""
        return frozenset(option.id for option in self.options)

    def explanation_for(self, option_id: str) -> str | None:
        """Return free-text explanation for one option, if any."""
        return self.explanations.get(option_id)


@dataclass(frozen=True)
class QuestionBank:
    """Question bank document for one topic."""

    module: str
    questions: tuple[Question, ...]
