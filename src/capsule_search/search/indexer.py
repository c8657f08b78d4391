"""In-memory inverted index over a capsule's note sections.

The index is a pure function of its input sections: ``build_index`` folds
the sections into fresh dictionaries and freezes them before returning, so
no builder state escapes and the result can be shared freely between
queries. There is no incremental update; rebuild when sections change.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
import re
from types import MappingProxyType

from capsule_search.domain.model import NoteSection, Timestamp
from capsule_search.observability.metrics import INDEX_BUILD_LATENCY, track_latency
from capsule_search.observability.tracing import create_span


logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 3
MIN_PHRASE_LENGTH = 6
PHRASE_WINDOW = 2

_NON_WORD = re.compile(r"[^\w]")
_NON_WORD_OR_SPACE = re.compile(r"[^\w\s]")

Postings = Mapping[str, frozenset[str]]


@dataclass(frozen=True)
class SectionMetadata:
    """Snapshot of the section fields the query engine filters on."""

    title: str
    type: str
    level: int
    order: int
    timestamp: Timestamp | None
    tags: tuple[str, ...]
    highlights: tuple[str, ...]


def _empty_postings() -> Postings:
    return MappingProxyType({})


@dataclass(frozen=True)
class NotesIndex:
    """Read-only postings lists plus per-section text and metadata.

    Every section id in any postings map is present in ``full_text`` and
    ``metadata``.
    """

    keywords: Postings = field(default_factory=_empty_postings)
    phrases: Postings = field(default_factory=_empty_postings)
    tags: Postings = field(default_factory=_empty_postings)
    categories: Postings = field(default_factory=_empty_postings)
    section_types: Postings = field(default_factory=_empty_postings)
    full_text: Mapping[str, str] = field(default_factory=_empty_postings)
    metadata: Mapping[str, SectionMetadata] = field(default_factory=_empty_postings)
    capsule_tags: tuple[str, ...] = ()

    @property
    def section_count(self) -> int:
        return len(self.full_text)

    def is_empty(self) -> bool:
        return not self.full_text


def section_full_text(section: NoteSection) -> str:
    """Concatenate title, content and highlights the way the index stores them (before lowercasing)."""
    return f"{section.title} {section.content} {' '.join(section.highlights)}"


def tokenize(text: str) -> list[str]:
    """Split lowercased text on whitespace."""
    return text.lower().split()


def clean_token(token: str) -> str:
    return _NON_WORD.sub("", token)


def extract_keywords(words: list[str]) -> list[str]:
    """Keywords are cleaned tokens of at least MIN_KEYWORD_LENGTH characters."""
    cleaned = (clean_token(word) for word in words)
    return [word for word in cleaned if len(word) >= MIN_KEYWORD_LENGTH]


def extract_phrases(words: list[str], window: int = PHRASE_WINDOW, min_length: int = MIN_PHRASE_LENGTH) -> list[str]:
    """Contiguous word windows with punctuation removed, keeping those of at least min_length characters."""
    phrases = []
    for i in range(len(words) - window + 1):
        phrase = _NON_WORD_OR_SPACE.sub("", " ".join(words[i : i + window]))
        if len(phrase) >= min_length:
            phrases.append(phrase)
    return phrases


def _freeze(postings: Mapping[str, set[str]]) -> Postings:
    return MappingProxyType({key: frozenset(ids) for key, ids in postings.items()})


def build_index(
    sections: Iterable[NoteSection] | None,
    categories: Iterable[str] = (),
    tags: Iterable[str] = (),
) -> NotesIndex:
    """Build a NotesIndex from note sections.

    Args:
        sections: Sections to index. ``None`` or empty yields an empty index.
        categories: Capsule-wide category names. Categorization is capsule
            level, so every section is associated with every category.
        tags: Capsule-wide tags, kept on the index as ``capsule_tags``. Tag
            postings come from each section's own tags.

    Returns:
        An immutable NotesIndex.
    """
    section_list = list(sections or [])

    with create_span("notes_index.build", attributes={"index.sections": len(section_list)}), track_latency(
        INDEX_BUILD_LATENCY
    ):
        keywords: dict[str, set[str]] = defaultdict(set)
        phrases: dict[str, set[str]] = defaultdict(set)
        tag_postings: dict[str, set[str]] = defaultdict(set)
        category_postings: dict[str, set[str]] = defaultdict(set)
        type_postings: dict[str, set[str]] = defaultdict(set)
        full_text: dict[str, str] = {}
        metadata: dict[str, SectionMetadata] = {}

        for section in section_list:
            text = section_full_text(section).lower()
            full_text[section.id] = text
            metadata[section.id] = SectionMetadata(
                title=section.title,
                type=section.type,
                level=section.level,
                order=section.order,
                timestamp=section.timestamp,
                tags=tuple(section.tags),
                highlights=tuple(section.highlights),
            )

            words = tokenize(text)
            for keyword in extract_keywords(words):
                keywords[keyword].add(section.id)
            for phrase in extract_phrases(words):
                phrases[phrase].add(section.id)
            for tag in section.tags:
                tag_postings[tag.lower()].add(section.id)
            type_postings[section.type].add(section.id)

        section_ids = {section.id for section in section_list}
        for category in categories:
            category_postings[category.lower()].update(section_ids)

        index = NotesIndex(
            keywords=_freeze(keywords),
            phrases=_freeze(phrases),
            tags=_freeze(tag_postings),
            categories=_freeze(category_postings),
            section_types=_freeze(type_postings),
            full_text=MappingProxyType(full_text),
            metadata=MappingProxyType(metadata),
            capsule_tags=tuple(tags),
        )

    logger.info(
        "Notes index created: %d sections, %d keywords, %d phrases, %d tags, %d categories",
        index.section_count,
        len(index.keywords),
        len(index.phrases),
        len(index.tags),
        len(index.categories),
    )
    return index
