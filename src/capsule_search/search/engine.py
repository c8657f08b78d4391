"""Keyword, phrase and full-text query engine over a NotesIndex.

Scoring is additive per section:

- +1 for every query term whose keyword postings (exact or fuzzy) contain it
- +2 when the whole multi-term query matches a phrase posting
- +1 for every literal occurrence of the query in the section's full text

Filters then narrow the scored sections, results are ranked by score
(stable on ties) and truncated. Suggestions and facets are computed from
the index alongside.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import logging
import time

from capsule_search.config import get_settings
from capsule_search.domain.errors import IndexUnavailableError, InvalidQueryError
from capsule_search.domain.model import NoteSection
from capsule_search.domain.search import (
    SearchFacets,
    SearchFilters,
    SearchQuery,
    SearchResponse,
    SearchResult,
    TextMatch,
)
from capsule_search.observability.metrics import SEARCH_ERRORS, SEARCH_LATENCY, track_latency
from capsule_search.observability.tracing import create_span
from capsule_search.search.fuzzy import find_fuzzy_matches, rank_by_edit_distance
from capsule_search.search.indexer import NotesIndex
from capsule_search.search.snippet import extract_context, find_text_matches


logger = logging.getLogger(__name__)

KEYWORD_SCORE = 1
PHRASE_SCORE = 2
DEFAULT_SUGGESTION_LIMIT = 5


def find_matching_sections(term: str, postings: Mapping[str, frozenset[str]], fuzzy: bool) -> set[str]:
    """Section ids posted under term, plus (when fuzzy) under every key within the edit threshold."""
    matching: set[str] = set(postings.get(term, ()))
    if fuzzy:
        for indexed_term, _distance in find_fuzzy_matches(term, postings.keys()):
            matching.update(postings[indexed_term])
    return matching


def apply_filters(section_ids: Iterable[str], filters: SearchFilters | None, index: NotesIndex) -> list[str]:
    """Narrow section ids by the supplied filters.

    Each list filter is an OR over its values; different filters AND
    together. Input order is preserved.
    """
    ids = list(section_ids)
    if filters is None:
        return ids

    def keep_posted(values: Sequence[str] | None, postings: Mapping[str, frozenset[str]], normalize: bool) -> None:
        nonlocal ids
        if not values:
            return
        allowed: set[str] = set()
        for value in values:
            allowed.update(postings.get(value.lower() if normalize else value, ()))
        ids = [section_id for section_id in ids if section_id in allowed]

    keep_posted(filters.tags, index.tags, normalize=True)
    keep_posted(filters.categories, index.categories, normalize=True)
    keep_posted(filters.section_types, index.section_types, normalize=False)

    if filters.has_timestamp is not None:
        ids = [
            section_id
            for section_id in ids
            if (index.metadata[section_id].timestamp is not None) == filters.has_timestamp
        ]

    if filters.has_highlights is not None:
        ids = [
            section_id for section_id in ids if bool(index.metadata[section_id].highlights) == filters.has_highlights
        ]

    return ids


def generate_suggestions(query: str, index: NotesIndex, limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[str]:
    """Indexed keywords, phrases and tags containing the query, closest first."""
    query_lower = query.lower()
    candidates: dict[str, None] = {}
    for postings in (index.keywords, index.phrases, index.tags):
        for term in postings:
            if query_lower in term and term != query_lower:
                candidates.setdefault(term)
    return rank_by_edit_distance(query_lower, candidates, limit)


def calculate_facets(section_ids: Iterable[str], index: NotesIndex) -> SearchFacets:
    """Count, per tag/category/section type, how many of the given sections carry it."""
    id_set = set(section_ids)

    def count(postings: Mapping[str, frozenset[str]]) -> dict[str, int]:
        counts = {}
        for key, ids in postings.items():
            hits = len(ids & id_set)
            if hits:
                counts[key] = hits
        return counts

    return SearchFacets(
        tags=count(index.tags),
        categories=count(index.categories),
        section_types=count(index.section_types),
    )


def search(
    query: SearchQuery,
    index: NotesIndex | None,
    sections: Sequence[NoteSection],
    *,
    context_size: int | None = None,
    suggestion_limit: int | None = None,
) -> SearchResponse:
    """Run a query against a prebuilt index.

    ``options.max_results`` falls back to the ``default_max_results`` setting
    when the caller did not set it.

    Args:
        query: Query text with filters and options.
        index: Index built from ``sections`` by ``build_index``.
        sections: The indexed sections; results are materialized from them.
        context_size: Characters of context captured around each full-text match;
            defaults to the ``context_window`` setting.
        suggestion_limit: Maximum number of suggestions; defaults to the
            ``suggestion_limit`` setting.

    Returns:
        SearchResponse with ranked, truncated results.

    Raises:
        InvalidQueryError: If the query is empty or whitespace.
        IndexUnavailableError: If no index was supplied.
    """
    if index is None:
        SEARCH_ERRORS.labels(path="indexed", error_type="index_unavailable").inc()
        logger.error("Notes search attempted before the index was built")
        raise IndexUnavailableError("Notes index has not been built")
    raw_query = query.query.strip()
    if not raw_query:
        SEARCH_ERRORS.labels(path="indexed", error_type="invalid_query").inc()
        raise InvalidQueryError("Search query is required")

    start_time = time.perf_counter()
    options = query.options
    settings = get_settings()
    if context_size is None:
        context_size = settings.context_window
    if suggestion_limit is None:
        suggestion_limit = settings.suggestion_limit
    max_results = options.max_results if "max_results" in options.model_fields_set else settings.default_max_results

    with create_span("notes.search", attributes={"search.fuzzy": options.fuzzy}), track_latency(
        SEARCH_LATENCY, path="indexed"
    ):
        normalized = raw_query if options.case_sensitive else raw_query.lower()
        terms = normalized.split()
        scores: dict[str, float] = {}
        match_details: dict[str, list[TextMatch]] = {}

        for term in terms:
            for section_id in find_matching_sections(term, index.keywords, options.fuzzy):
                scores[section_id] = scores.get(section_id, 0) + KEYWORD_SCORE

        if len(terms) > 1:
            phrase = " ".join(terms)
            for section_id in find_matching_sections(phrase, index.phrases, options.fuzzy):
                scores[section_id] = scores.get(section_id, 0) + PHRASE_SCORE

        for section_id, text in index.full_text.items():
            hits = find_text_matches(normalized, text, options.whole_words)
            if not hits:
                continue
            scores[section_id] = scores.get(section_id, 0) + len(hits)
            if options.include_context:
                match_details[section_id] = [
                    TextMatch(
                        text=hit.text,
                        position=hit.position,
                        length=hit.length,
                        context=extract_context(text, hit.position, hit.length, context_size),
                    )
                    for hit in hits
                ]

        # Section order, not set iteration order, decides ties
        scored_ids = [section_id for section_id in index.full_text if section_id in scores]
        filtered_ids = apply_filters(scored_ids, query.filters, index)

        by_id: dict[str, NoteSection] = {}
        for section in sections:
            by_id.setdefault(section.id, section)

        results = []
        for section_id in filtered_ids:
            section = by_id.get(section_id)
            if section is None:
                continue
            results.append(
                SearchResult(
                    section_id=section_id,
                    title=section.title,
                    content=section.content,
                    type=section.type,
                    score=scores[section_id],
                    matches=match_details.get(section_id, []),
                    highlights=list(section.highlights),
                    tags=list(section.tags),
                    timestamp=section.timestamp,
                )
            )

        results.sort(key=lambda result: result.score, reverse=True)
        limited = results[:max_results]

        suggestions = generate_suggestions(normalized, index, suggestion_limit)
        facets = calculate_facets(filtered_ids, index)

    search_time = (time.perf_counter() - start_time) * 1000

    logger.debug(
        "Notes search completed: %d results (%d returned) in %.2fms",
        len(results),
        len(limited),
        search_time,
    )

    return SearchResponse(
        results=limited,
        total_results=len(results),
        search_time=search_time,
        suggestions=suggestions,
        facets=facets,
    )
