"""Load question banks from JSON documents and bundled resources."""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from .models import OPTION_LETTERS, Question, QuestionBank, QuizOption
from .store import QuestionStore
from .topics import extract_topic_key, question_file_for

CONTENT_PACKAGE = "reviewquiz.content.questions"

log = logging.getLogger("reviewquiz.bank")


def _option_from_dict(raw: dict[str, Any]) -> QuizOption:
    """Build an option from raw JSON content."""
    is_correct = raw["is_correct"]
    if not isinstance(is_correct, bool):
        raise ValueError(f"Option '{raw.get('id', '<unknown>')}' has non-boolean is_correct.")
    return QuizOption(id=str(raw["id"]), content=str(raw["content"]), is_correct=is_correct)


def _question_from_dict(raw: dict[str, Any]) -> Question:
    """Build a question from raw JSON content."""
    question_id = str(raw["id"])
    options = tuple(_option_from_dict(item) for item in raw.get("options", []))
    if not options:
        raise ValueError(f"Question '{question_id}' has no options.")
    if len(options) > len(OPTION_LETTERS):
        raise ValueError(f"Question '{question_id}' has more than {len(OPTION_LETTERS)} options.")

    seen: set[str] = set()
    for option in options:
        if option.id in seen:
            raise ValueError(f"Duplicate option id: {option.id} (in question {question_id})")
        seen.add(option.id)

    raw_explanations = raw.get("explanations", {})
    if not isinstance(raw_explanations, dict):
        raise ValueError(f"Question '{question_id}' explanations must be an object.")

    return Question(
        id=question_id,
        title=str(raw["title"]),
        description=str(raw.get("description", "")),
        code=str(raw.get("code", "")),
        options=options,
        explanations={str(key): str(value) for key, value in raw_explanations.items()},
        key_points=tuple(str(point) for point in raw.get("key_points", [])),
    )


def _bank_from_dict(raw: object) -> QuestionBank:
    """Build a question bank from a decoded JSON document."""
    if not isinstance(raw, dict):
        raise ValueError("Question bank root must be a JSON object.")
    questions = tuple(_question_from_dict(item) for item in raw.get("questions", []))
    _validate_unique_question_ids(questions)
    return QuestionBank(module=str(raw.get("module", "")), questions=questions)


def _validate_unique_question_ids(questions: tuple[Question, ...]) -> None:
    seen: set[str] = set()
    for question in questions:
        if question.id in seen:
            raise ValueError(f"Duplicate question id: {question.id}")
        seen.add(question.id)


def load_bank_text(text: str) -> QuestionBank:
    """Parse one question bank JSON document."""
    return _bank_from_dict(json.loads(text))


def load_bank_file(path: Path) -> QuestionBank:
    """Load one question bank JSON file."""
    return load_bank_text(path.read_text(encoding="utf-8-sig"))


def load_bundled_bank(filename: str) -> QuestionBank:
    """Load a question bank shipped inside the package."""
    entry = resources.files(CONTENT_PACKAGE).joinpath(filename)
    return load_bank_text(entry.read_text(encoding="utf-8-sig"))


def question_to_dict(question: Question) -> dict[str, Any]:
    """Serialize a question back to its JSON shape."""
    return {
        "id": question.id,
        "title": question.title,
        "description": question.description,
        "code": question.code,
        "options": [
            {"id": option.id, "content": option.content, "is_correct": option.is_correct}
            for option in question.options
        ],
        "explanations": dict(question.explanations),
        "key_points": list(question.key_points),
    }


def bank_to_dict(bank: QuestionBank) -> dict[str, Any]:
    """Serialize a question bank back to its JSON shape."""
    return {"module": bank.module, "questions": [question_to_dict(question) for question in bank.questions]}


def write_bank_file(bank: QuestionBank, path: Path) -> None:
    """Write a question bank as pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(bank_to_dict(bank), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def load_topic_questions(store: QuestionStore, topic_label: str, questions_dir: Path | None = None) -> int:
    """Load questions for one topic into the store and return how many were added.

    Missing or broken bank files are not fatal: they are logged and the
    built-in defaults for the topic (possibly none) are used instead.
    """
    topic_key = extract_topic_key(topic_label)
    filename = question_file_for(topic_label)
    if filename is None:
        log.debug("no question file for topic key %r", topic_key)
        return 0

    try:
        if questions_dir is not None:
            bank = load_bank_file(questions_dir / filename)
        else:
            bank = load_bundled_bank(filename)
    except FileNotFoundError:
        log.info("no question bank %s for topic %r; using built-in questions", filename, topic_key)
        questions = default_questions(topic_key)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        # json.JSONDecodeError is a ValueError
        log.warning("could not load %s for topic %r (%s); using built-in questions", filename, topic_key, exc)
        questions = default_questions(topic_key)
    else:
        log.debug("loaded %d questions from %s", len(bank.questions), filename)
        questions = list(bank.questions)

    for question in questions:
        store.add(topic_key, question)
    return len(questions)


def default_questions(topic_key: str) -> list[Question]:
    """Return built-in fallback questions for a topic key."""
    if topic_key == "Options":
        return [_OPTIONS_FALLBACK]
    return []


_OPTIONS_FALLBACK = Question(
    id="options_001",
    title="User input validation function",
    description=(
        "Implement a user input validation function that:\n"
        "- accepts a user-supplied string\n"
        "- checks the input is non-empty and between 3 and 20 characters long\n"
        "- returns the validation result, explaining why when invalid\n"
        "- performs basic e-mail format validation"
    ),
    code=(
        "fn validate_user_input(input: &str) -> Result<String, String> {\n"
        "    if input.is_empty() {\n"
        '        return Err("input must not be empty".to_string());\n'
        "    }\n"
        "\n"
        "    if input.len() < 3 {\n"
        '        return Err("input too short".to_string());\n'
        "    }\n"
        "\n"
        "    if input.contains('@') {\n"
        "        if !input.contains('.') {\n"
        '            return Err("invalid e-mail format".to_string());\n'
        "        }\n"
        "    }\n"
        "\n"
        "    Ok(input.to_string())\n"
        "}"
    ),
    options=(
        QuizOption(id="opt_a", content="The maximum length check is missing", is_correct=True),
        QuizOption(id="opt_b", content="The e-mail check is too naive to handle real addresses", is_correct=True),
        QuizOption(id="opt_c", content="The function name is unclear", is_correct=False),
        QuizOption(id="opt_d", content="It should return Option instead of Result", is_correct=False),
        QuizOption(id="opt_e", content="Special characters are not handled", is_correct=False),
        QuizOption(id="opt_f", content="This code is entirely correct", is_correct=False),
    ),
    explanations={
        "opt_a": "The requirement asks for 3-20 characters but only the minimum length is checked.",
        "opt_b": "Checking for '@' and '.' accepts strings such as '@.' that are not e-mail addresses.",
        "opt_c": "validate_user_input already states clearly what the function does.",
        "opt_d": "Result fits here because the caller needs the reason for a failure.",
        "opt_e": "Special characters are not part of the requirements, so this is not needed.",
        "opt_f": "The code has several problems and is not correct.",
    },
    key_points=(
        "Read the requirements closely and check every condition is implemented.",
        "Plain substring checks are rarely enough for format validation.",
        "Boundary conditions such as maximum values are easy to miss.",
    ),
)
