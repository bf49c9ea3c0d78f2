"""In-memory question storage keyed by topic."""

from __future__ import annotations

import random
from collections.abc import MutableSequence, Sequence
from typing import Any, Protocol, TypeVar

from .models import Question

T = TypeVar("T")


class Chooser(Protocol):
    """Randomness capability used for picking and permuting."""

    def choice(self, seq: Sequence[T]) -> T: ...

    def shuffle(self, x: MutableSequence[Any]) -> None: ...


class QuestionStore:
    """Topic key to question list mapping."""

    def __init__(self, chooser: Chooser | None = None) -> None:
        self._questions: dict[str, list[Question]] = {}
        self.chooser: Chooser = chooser if chooser is not None else random.Random()

    def add(self, topic: str, question: Question) -> None:
        """Append one question under a topic key."""
        self._questions.setdefault(topic, []).append(question)

    def random(self, topic: str) -> Question | None:
        """Return a uniformly chosen question, or None when the topic has none."""
        questions = self._questions.get(topic)
        if not questions:
            return None
        return self.chooser.choice(questions)

    def count(self, topic: str) -> int:
        """Return number of questions stored for a topic."""
        return len(self._questions.get(topic, []))

    def topics(self) -> list[str]:
        """Return topic keys that hold at least one question."""
        return sorted(topic for topic, questions in self._questions.items() if questions)

    def questions(self, topic: str) -> list[Question]:
        """Return a copy of the questions stored for a topic."""
        return list(self._questions.get(topic, []))
