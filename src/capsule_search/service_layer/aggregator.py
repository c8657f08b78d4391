"""Cross-capsule search orchestration.

Fans one query out over every capsule a user owns: loads the capsules from
the store (the only I/O), pre-filters them on capsule-level metadata, scores
each survivor with the field-weighted scorer on a bounded worker pool, then
merges, sorts, groups and truncates the results and derives facets,
aggregations and suggestions from them.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Callable, Hashable, Sequence
import logging
import time

from capsule_search.adapters.capsule_repository import AbstractCapsuleRepository
from capsule_search.config import Settings, get_settings
from capsule_search.domain.errors import CollaboratorFailureError, SearchTimeoutError
from capsule_search.domain.model import Capsule
from capsule_search.domain.search import (
    CapsuleFacets,
    CapsuleMetadata,
    CapsuleSearchFilters,
    CapsuleSearchOptions,
    CategoryCount,
    EnhancedSearchResponse,
    EnhancedSearchResult,
    GroupBy,
    SearchAggregations,
    SectionHit,
    SortBy,
    TagCount,
)
from capsule_search.observability.context import bind_search_context
from capsule_search.observability.metrics import CAPSULES_SCORED, SEARCH_ERRORS, SEARCH_LATENCY, track_latency
from capsule_search.observability.tracing import create_span
from capsule_search.search.fuzzy import rank_by_edit_distance
from capsule_search.search.scorer import score_sections
from capsule_search.search.snippet import create_snippet
from capsule_search.service_layer.validation import validate_query


logger = logging.getLogger(__name__)

TOP_CATEGORIES = 5
TOP_TAGS = 10
CAPSULE_OVERFETCH = 2


def should_include_capsule(capsule: Capsule, filters: CapsuleSearchFilters) -> bool:
    """Capsule-level pre-filter, applied before any scoring."""
    notes = capsule.organized_notes
    if notes is None:
        return False

    if filters.capsule_ids and capsule.capsule_id not in filters.capsule_ids:
        return False

    if filters.categories and not any(category in notes.all_categories() for category in filters.categories):
        return False

    if filters.difficulty and notes.metadata.difficulty not in filters.difficulty:
        return False

    if filters.subjects and not any(subject in notes.categorization.subjects for subject in filters.subjects):
        return False

    if filters.tags and not any(tag in notes.categorization.tags for tag in filters.tags):
        return False

    if filters.has_timestamps is not None and notes.has_timestamps() != filters.has_timestamps:
        return False

    return True


def sort_results(results: Sequence[EnhancedSearchResult], sort_by: SortBy) -> list[EnhancedSearchResult]:
    """Order capsules; every ordering is stable on ties."""
    if sort_by == "relevance":
        return sorted(results, key=lambda result: result.total_relevance_score, reverse=True)
    if sort_by == "date":
        return sorted(results, key=lambda result: result.metadata.created_at, reverse=True)
    if sort_by == "title":
        return sorted(results, key=lambda result: result.video_title.casefold())
    if sort_by == "importance":
        return sorted(results, key=lambda result: result.total_importance(), reverse=True)
    return list(results)


_GROUP_KEYS: dict[str, Callable[[EnhancedSearchResult], Hashable]] = {
    "capsule": lambda result: result.capsule_id,
    "category": lambda result: result.metadata.category,
    "difficulty": lambda result: result.metadata.difficulty,
}


def group_results(results: Sequence[EnhancedSearchResult], group_by: GroupBy | None) -> list[EnhancedSearchResult]:
    """Cluster results by group key, groups in first-appearance order, sort order kept within each group."""
    if group_by is None:
        return list(results)
    key = _GROUP_KEYS[group_by]
    groups: dict[Hashable, list[EnhancedSearchResult]] = {}
    for result in results:
        groups.setdefault(key(result), []).append(result)
    return [result for group in groups.values() for result in group]


def calculate_facets(results: Sequence[EnhancedSearchResult]) -> CapsuleFacets:
    categories: Counter[str] = Counter()
    tags: Counter[str] = Counter()
    difficulties: Counter[str] = Counter()
    subjects: Counter[str] = Counter()
    for result in results:
        categories[result.metadata.category] += 1
        difficulties[result.metadata.difficulty] += 1
        tags.update(result.metadata.tags)
        subjects.update(result.metadata.subjects)
    return CapsuleFacets(
        categories=dict(categories),
        tags=dict(tags),
        difficulties=dict(difficulties),
        subjects=dict(subjects),
    )


def calculate_aggregations(results: Sequence[EnhancedSearchResult]) -> SearchAggregations:
    total_capsules = len(results)
    total_sections = sum(len(result.sections) for result in results)
    total_score = sum(result.total_relevance_score for result in results)

    category_counts: Counter[str] = Counter(result.metadata.category for result in results)
    tag_counts: Counter[str] = Counter(tag for result in results for tag in result.metadata.tags)

    return SearchAggregations(
        total_capsules=total_capsules,
        total_sections=total_sections,
        average_relevance_score=total_score / total_capsules if total_capsules else 0.0,
        top_categories=[
            CategoryCount(category=category, count=count)
            for category, count in category_counts.most_common(TOP_CATEGORIES)
        ],
        top_tags=[TagCount(tag=tag, count=count) for tag, count in tag_counts.most_common(TOP_TAGS)],
    )


class CapsuleSearchService:
    """Search across all of a user's capsules.

    Stateless between calls; safe to share.
    """

    def __init__(
        self,
        capsule_repository: AbstractCapsuleRepository,
        settings: Settings | None = None,
    ):
        """Initialize the service.

        Args:
            capsule_repository: Capsule store client (required)
            settings: Overrides the process-wide settings
        """
        self.capsule_repository = capsule_repository
        self.settings = settings or get_settings()

    async def search_across_capsules(
        self,
        user_id: str,
        query: str,
        filters: CapsuleSearchFilters | None = None,
        options: CapsuleSearchOptions | None = None,
        *,
        timeout: float | None = None,
    ) -> EnhancedSearchResponse:
        """Search every capsule the user owns and merge the results.

        Args:
            user_id: Owner of the capsules to search.
            query: Free-text query; trimmed and validated.
            filters: Capsule-level filters; the date range is pushed down to the store.
            options: Result cap, sort/group order and content inclusion. An
                unset ``max_results`` takes ``default_capsule_max_results``.
            timeout: Deadline in seconds; defaults to ``search_timeout_seconds``.

        Returns:
            EnhancedSearchResponse whose facets and aggregations describe the
            returned (truncated) results.

        Raises:
            InvalidQueryError: If the query is blank or too long.
            CollaboratorFailureError: If the capsule store fails.
            SearchTimeoutError: If the deadline passes first.
        """
        query = validate_query(query, self.settings.max_query_length)
        filters = filters or CapsuleSearchFilters()
        options = options or CapsuleSearchOptions()
        if "max_results" not in options.model_fields_set:
            options = options.model_copy(update={"max_results": self.settings.default_capsule_max_results})
        deadline = timeout if timeout is not None else self.settings.search_timeout_seconds

        start_time = time.perf_counter()
        with bind_search_context(user_id=user_id, search_path="cross_capsule"), create_span(
            "capsules.search", attributes={"search.sort_by": options.sort_by}
        ), track_latency(SEARCH_LATENCY, path="cross_capsule"):
            logger.info(
                "Starting cross-capsule search: sort_by=%s max_results=%d",
                options.sort_by,
                options.max_results,
            )
            try:
                if deadline is None:
                    results, candidates = await self._collect(user_id, query, filters, options)
                else:
                    results, candidates = await asyncio.wait_for(
                        self._collect(user_id, query, filters, options), timeout=deadline
                    )
            except TimeoutError as exc:
                SEARCH_ERRORS.labels(path="cross_capsule", error_type="timeout").inc()
                logger.error("Cross-capsule search timed out after %.2fs", deadline)
                raise SearchTimeoutError(f"Search exceeded its {deadline}s deadline") from exc

            ordered = group_results(sort_results(results, options.sort_by), options.group_by)
            limited = ordered[: options.max_results]
            suggestions = rank_by_edit_distance(query.lower(), candidates, self.settings.suggestion_limit)
            # Facets and aggregations describe the truncated page only
            facets = calculate_facets(limited)
            aggregations = calculate_aggregations(limited)

        search_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Cross-capsule search completed: %d capsules matched, %d returned in %.2fms",
            len(results),
            len(limited),
            search_time,
        )

        return EnhancedSearchResponse(
            results=limited,
            total_results=len(results),
            search_time=search_time,
            suggestions=suggestions,
            facets=facets,
            aggregations=aggregations,
        )

    async def _load_capsules(self, user_id: str, filters: CapsuleSearchFilters) -> list[Capsule]:
        try:
            return await self.capsule_repository.get_user_capsules_with_organized_notes(user_id, filters.date_range)
        except Exception as exc:
            SEARCH_ERRORS.labels(path="cross_capsule", error_type="collaborator").inc()
            logger.error("Failed to load capsules for user %s: %s", user_id, exc, exc_info=True)
            raise CollaboratorFailureError("Capsule store failed", user_id=user_id) from exc

    async def _collect(
        self,
        user_id: str,
        query: str,
        filters: CapsuleSearchFilters,
        options: CapsuleSearchOptions,
    ) -> tuple[list[EnhancedSearchResult], list[str]]:
        """Load, pre-filter and score capsules.

        Returns matching capsules and suggestion candidates, both in store order.
        """
        capsules = [
            capsule for capsule in await self._load_capsules(user_id, filters) if should_include_capsule(capsule, filters)
        ]
        if not capsules:
            return [], []

        semaphore = asyncio.Semaphore(self.settings.scoring_concurrency)

        async def run_for_capsule(capsule: Capsule) -> tuple[EnhancedSearchResult | None, list[str]]:
            async with semaphore:
                return await asyncio.to_thread(self._score_capsule, capsule, query, options)

        # gather keeps input order, so completion order never leaks into results
        scored = await asyncio.gather(*(run_for_capsule(capsule) for capsule in capsules))

        results: list[EnhancedSearchResult] = []
        candidates: dict[str, None] = {}
        for result, capsule_candidates in scored:
            if result is None:
                continue
            results.append(result)
            for candidate in capsule_candidates:
                candidates.setdefault(candidate)
        return results, list(candidates)

    def _score_capsule(
        self,
        capsule: Capsule,
        query: str,
        options: CapsuleSearchOptions,
    ) -> tuple[EnhancedSearchResult | None, list[str]]:
        notes = capsule.organized_notes
        if notes is None:
            return None, []

        CAPSULES_SCORED.inc()
        scored = score_sections(
            notes,
            query,
            search_type=options.search_type,
            max_results=options.max_results * CAPSULE_OVERFETCH,
            include_content=options.include_content,
        )
        if not scored:
            return None, []

        query_lower = query.lower()
        candidates = [
            keyword for keyword in notes.search_index.keywords if query_lower in keyword and keyword != query_lower
        ]

        result = EnhancedSearchResult(
            capsule_id=capsule.capsule_id,
            video_title=notes.video_title or capsule.video_title,
            video_id=notes.video_id or capsule.video_id,
            sections=[
                SectionHit(
                    section=hit.section,
                    relevance_score=hit.relevance_score,
                    matched_terms=hit.matched_terms,
                    snippet=create_snippet(hit.section.content, query, self.settings.snippet_length),
                )
                for hit in scored
            ],
            total_relevance_score=sum(hit.relevance_score for hit in scored),
            metadata=CapsuleMetadata(
                category=notes.categorization.primary_category,
                tags=list(notes.categorization.tags),
                difficulty=notes.metadata.difficulty,
                created_at=capsule.created_at,
                subjects=list(notes.categorization.subjects),
                estimated_reading_time=notes.metadata.estimated_reading_time,
            ),
        )
        return result, candidates
