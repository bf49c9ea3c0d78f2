"""CLI entrypoint for the code review quiz."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from pathlib import Path

from .bank import load_topic_questions, write_bank_file
from .config import QuizConfig, configure_logging, load_config
from .driver import run_topic_quiz
from .models import QuestionBank
from .store import QuestionStore
from .topics import TOPICS, Topic, find_topic

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
QuizFn = Callable[[str, QuizConfig], bool]
MENU_QUIT_COMMANDS = {"q", ":q", ":quit"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reviewquiz", description="Code review practice quizzes")
    parser.add_argument("--questions-dir", help="directory holding question bank JSON files")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--seed", type=int, help="seed for question and option shuffling")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("play", help="choose a topic from a menu (default)")
    quiz = commands.add_parser("quiz", help="run one quiz for a topic")
    quiz.add_argument("topic", help="topic label or key, e.g. Options")
    commands.add_parser("topics", help="list topics and question counts")
    export = commands.add_parser("export", help="write a topic's question bank as JSON")
    export.add_argument("topic")
    export.add_argument("path")
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config().with_overrides(
            questions_dir=args.questions_dir, log_level=args.log_level, seed=args.seed
        )
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(config)

    try:
        if args.command == "quiz":
            return _quiz_command(args.topic, config)
        if args.command == "topics":
            _topics_flow(config, print)
            return 0
        if args.command == "export":
            return _export_flow(args.topic, Path(args.path), config, print)
        return play_shell(config)
    except OSError as exc:
        print(f"Terminal error: {exc}", file=sys.stderr)
        return 1


def _quiz_command(topic_text: str, config: QuizConfig, quiz_fn: QuizFn = run_topic_quiz) -> int:
    topic = find_topic(topic_text)
    label = topic.label if topic is not None else topic_text
    return 0 if quiz_fn(label, config) else 1


def play_shell(
    config: QuizConfig | None = None,
    input_fn: InputFn = input,
    print_fn: PrintFn = print,
    quiz_fn: QuizFn = run_topic_quiz,
) -> int:
    """Run the topic menu until the user quits."""
    config = config if config is not None else QuizConfig()
    while True:
        print_fn("\n=== Code Review Practice ===")
        for idx, topic in enumerate(TOPICS, start=1):
            print_fn(f"{idx}) {topic.label} - {topic.description}")
        print_fn("q) Quit")
        choice = input_fn("Choose topic: ").strip().lower()

        if choice in MENU_QUIT_COMMANDS:
            return 0
        if not choice.isdigit():
            print_fn("Invalid choice.")
            continue
        index = int(choice) - 1
        if not (0 <= index < len(TOPICS)):
            print_fn("Invalid choice.")
            continue

        topic = TOPICS[index]
        if quiz_fn(topic.label, config):
            print_fn(f"Quiz for {topic.key} completed.")
        else:
            print_fn(f"Quiz for {topic.key} ended without a correct answer.")


def _load_topic(topic: Topic, config: QuizConfig) -> QuestionStore:
    store = QuestionStore()
    load_topic_questions(store, topic.label, config.questions_dir)
    return store


def _topics_flow(config: QuizConfig, print_fn: PrintFn) -> None:
    """Print the topic catalog with loaded question counts."""
    rows = [(topic.key, str(_load_topic(topic, config).count(topic.key)), topic.label) for topic in TOPICS]
    key_width = max(len("Key"), max(len(row[0]) for row in rows))
    count_width = max(len("Questions"), max(len(row[1]) for row in rows))
    header = f"{'#':>2} {'Key':<{key_width}} {'Questions':>{count_width}} Topic"
    print_fn(header)
    print_fn("-" * len(header))
    for idx, row in enumerate(rows, start=1):
        print_fn(f"{idx:>2} {row[0]:<{key_width}} {row[1]:>{count_width}} {row[2]}")


def _export_flow(topic_text: str, path: Path, config: QuizConfig, print_fn: PrintFn) -> int:
    """Write the questions loaded for a topic to a JSON bank file."""
    topic = find_topic(topic_text)
    if topic is None:
        print_fn(f"Unknown topic: {topic_text}")
        return 1
    questions = _load_topic(topic, config).questions(topic.key)
    if not questions:
        print_fn(f"No questions loaded for {topic.key}; nothing exported.")
        return 1
    write_bank_file(QuestionBank(module=topic.label, questions=tuple(questions)), path)
    print_fn(f"Exported {len(questions)} questions for {topic.key} to {path}")
    return 0


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
