"""Topic catalog and label-to-key resolution."""

from __future__ import annotations

from dataclasses import dataclass

DECORATIVE_GLYPHS = ("📖", "⚡", "❌", "🔄", "🚀", "📝", "🎯", "💾")


@dataclass(frozen=True)
class Topic:
    """One learning topic as shown in the menu."""

    label: str
    description: str

    @property
    def key(self) -> str:
        """Canonical store key for this topic."""
        return extract_topic_key(self.label)


TOPICS: tuple[Topic, ...] = (
    Topic("01.    📖 Options", "Option / Result / Result<Option, E>"),
    Topic("02-03. ⚡ Async", "async/await and block_on"),
    Topic("04.    ❌ Errors", "application-level error aggregation with context"),
    Topic("05.    🔄 Iterators", "fold/reduce and entry-based counting and grouping"),
    Topic("06.    🚀 Concurrency", "join!/try_join!/select!/spawn skeletons"),
    Topic("07.    📝 Logging", "logging and observability with tracing"),
    Topic("08.    🎯 Pattern Matching", "match / if let quick reference"),
    Topic("09.    💾 I/O Boundaries", "sync vs async I/O boundaries"),
)

QUESTION_FILES: dict[str, str] = {
    "Options": "options.json",
    "Async": "async.json",
    "Errors": "errors.json",
    "Iterators": "iterators.json",
    "Concurrency": "concurrency.json",
    "Logging": "logging.json",
    "Matching": "pattern_matching.json",
    "Boundaries": "io_boundaries.json",
}


def extract_topic_key(label: str) -> str:
    """Normalize a decorated topic label to its lookup key.

    Numeric prefixes and decorative glyph tokens are dropped and the last
    remaining word wins, so ``"01.    📖 Options"`` becomes ``"Options"`` and
    ``"08.    🎯 Pattern Matching"`` becomes ``"Matching"``. A label with no
    remaining token is returned unchanged.
    """
    kept = [
        part
        for part in label.split()
        if not part[0].isdigit() and not any(glyph in part for glyph in DECORATIVE_GLYPHS)
    ]
    if not kept:
        return label
    return kept[-1]


def question_file_for(label: str) -> str | None:
    """Return bundled question file name for a topic label or key."""
    return QUESTION_FILES.get(extract_topic_key(label))


def find_topic(text: str) -> Topic | None:
    """Find a catalog topic by label, key, or case-insensitive key."""
    wanted = text.strip()
    if not wanted:
        return None
    wanted_key = extract_topic_key(wanted).lower()
    for topic in TOPICS:
        if topic.label == wanted or topic.key.lower() == wanted_key:
            return topic
    for topic in TOPICS:
        if wanted.lower() in topic.label.lower():
            return topic
    return None
