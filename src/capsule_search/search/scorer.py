"""Field-weighted relevance scoring over one capsule's organized notes.

Runs directly against the organized section structure, without an
indexing pass: O(sections) per query.
"""

from __future__ import annotations

import logging

from capsule_search.domain.model import OrganizedNotes, OrganizedSection
from capsule_search.domain.search import ScoredSection, SearchType
from capsule_search.search.snippet import count_occurrences


logger = logging.getLogger(__name__)

TITLE_WEIGHT = 10.0
KEY_POINT_WEIGHT = 5.0
CONCEPT_WEIGHT = 3.0
TAG_WEIGHT = 3.0
CONTENT_WEIGHT = 1.0
TITLE_WORD_WEIGHT = 2.0
CONTENT_WORD_WEIGHT = 0.5
MIN_QUERY_WORD_LENGTH = 3


def score_section(
    section: OrganizedSection,
    query_lower: str,
    query_words: list[str],
    include_content: bool = True,
) -> tuple[float, list[str]]:
    """Score one section against a lowercased query.

    Returns:
        (relevance score, fired signal names in first-fired order, deduplicated).
    """
    score = 0.0
    matched: dict[str, None] = {}
    title = section.title.lower()
    content = section.content.lower()

    if query_lower in title:
        score += TITLE_WEIGHT
        matched.setdefault("title")

    for point in section.key_points:
        if query_lower in point.lower():
            score += KEY_POINT_WEIGHT
            matched.setdefault("keyPoint")

    for concept in section.concepts:
        if query_lower in concept.lower():
            score += CONCEPT_WEIGHT
            matched.setdefault("concept")

    for tag in section.tags:
        if query_lower in tag.lower():
            score += TAG_WEIGHT
            matched.setdefault("tag")

    if include_content and query_lower in content:
        score += CONTENT_WEIGHT
        matched.setdefault("content")

    for word in query_words:
        score += TITLE_WORD_WEIGHT * count_occurrences(word, title)
        if include_content:
            score += CONTENT_WORD_WEIGHT * count_occurrences(word, content)

    return score, list(matched)


def score_sections(
    notes: OrganizedNotes,
    query: str,
    search_type: SearchType = "keywords",
    max_results: int = 10,
    include_content: bool = True,
) -> list[ScoredSection]:
    """Rank a capsule's sections by weighted field matches.

    Weights: title +10, each key point +5, each concept +3, each tag +3,
    content +1 (substring of the whole query), then per query word longer
    than two characters +2 per title occurrence and +0.5 per content
    occurrence. Zero-score sections are dropped.

    ``search_type`` is accepted for callers that pass it through; every
    type scores the same way.
    """
    query_lower = query.strip().lower()
    if not query_lower:
        return []
    query_words = [word for word in query_lower.split() if len(word) >= MIN_QUERY_WORD_LENGTH]

    scored = []
    for section in notes.sections:
        score, matched_terms = score_section(section, query_lower, query_words, include_content)
        if score > 0:
            scored.append(ScoredSection(section=section, relevance_score=score, matched_terms=matched_terms))

    scored.sort(key=lambda result: result.relevance_score, reverse=True)
    logger.debug("Scored %d of %d sections (search_type=%s)", len(scored), len(notes.sections), search_type)
    return scored[:max_results]
