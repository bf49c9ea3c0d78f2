"""Runtime configuration from environment variables and CLI flags."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

ENV_QUESTIONS_DIR = "REVIEWQUIZ_QUESTIONS_DIR"
ENV_LOG_LEVEL = "REVIEWQUIZ_LOG_LEVEL"
ENV_SEED = "REVIEWQUIZ_SEED"
ENV_NO_COLOR = "NO_COLOR"

LOG_FORMAT = "%(name)s | %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class QuizConfig:
    """Settings for one run of the quiz."""

    questions_dir: Path | None = None
    log_level: str = "WARNING"
    seed: int | None = None
    color: bool = True

    def with_overrides(
        self,
        *,
        questions_dir: Path | str | None = None,
        log_level: str | None = None,
        seed: int | None = None,
    ) -> QuizConfig:
        """Return a copy with explicitly given values replaced."""
        config = self
        if questions_dir is not None:
            config = replace(config, questions_dir=Path(questions_dir))
        if log_level is not None:
            config = replace(config, log_level=_normalize_level(log_level))
        if seed is not None:
            config = replace(config, seed=seed)
        return config


def _normalize_level(value: str) -> str:
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{value}'. Expected one of: {', '.join(LOG_LEVELS)}.")
    return level


def load_config(env: Mapping[str, str] | None = None) -> QuizConfig:
    """Build configuration from environment variables."""
    source = os.environ if env is None else env

    questions_dir_text = source.get(ENV_QUESTIONS_DIR, "").strip()
    questions_dir = Path(questions_dir_text) if questions_dir_text else None

    level_text = source.get(ENV_LOG_LEVEL, "").strip()
    log_level = _normalize_level(level_text) if level_text else "WARNING"

    seed_text = source.get(ENV_SEED, "").strip()
    try:
        seed = int(seed_text) if seed_text else None
    except ValueError as exc:
        raise ValueError(f"{ENV_SEED} must be an integer, got '{seed_text}'.") from exc

    return QuizConfig(
        questions_dir=questions_dir,
        log_level=log_level,
        seed=seed,
        color=ENV_NO_COLOR not in source,
    )


def configure_logging(config: QuizConfig) -> None:
    """Configure root logging once for the CLI process."""
    logging.basicConfig(level=getattr(logging, config.log_level), format=LOG_FORMAT)
