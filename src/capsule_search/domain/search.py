"""Domain models for search requests and responses.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- No infrastructure dependencies

Two families live here: the indexed single-capsule search
(``SearchQuery`` -> ``SearchResponse``) and the cross-capsule search
(``CapsuleSearchFilters``/``CapsuleSearchOptions`` -> ``EnhancedSearchResponse``).
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from capsule_search.domain.model import Difficulty, OrganizedSection, Timestamp


SortBy = Literal["relevance", "date", "title", "importance"]
GroupBy = Literal["capsule", "category", "difficulty"]
SearchType = Literal["keywords", "phrases", "semantic"]


class DateRange(BaseModel):
    """Inclusive creation-date window pushed down to the capsule store."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("DateRange end must not precede start")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


# ---------------------------------------------------------------------------
# Indexed search
# ---------------------------------------------------------------------------


class SearchFilters(BaseModel):
    """Optional narrowing filters. ``None`` means the filter is not applied."""

    model_config = ConfigDict(frozen=True)

    tags: list[str] | None = None
    categories: list[str] | None = None
    section_types: list[str] | None = None
    date_range: DateRange | None = None
    has_timestamp: bool | None = None
    has_highlights: bool | None = None


class SearchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    fuzzy: bool = True
    case_sensitive: bool = False
    whole_words: bool = False
    include_context: bool = True
    max_results: int = Field(default=50, ge=1)


class SearchQuery(BaseModel):
    """Value object representing one indexed-search request."""

    model_config = ConfigDict(frozen=True)

    query: str
    filters: SearchFilters = Field(default_factory=SearchFilters)
    options: SearchOptions = Field(default_factory=SearchOptions)


class TextMatch(BaseModel):
    """One full-text hit inside a section, with its surrounding context."""

    model_config = ConfigDict(frozen=True)

    text: str
    position: int
    length: int
    context: str


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    section_id: str
    title: str
    content: str
    type: str
    score: float = Field(ge=0)
    matches: list[TextMatch] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    timestamp: Timestamp | None = None


class SearchFacets(BaseModel):
    model_config = ConfigDict(frozen=True)

    tags: dict[str, int] = Field(default_factory=dict)
    categories: dict[str, int] = Field(default_factory=dict)
    section_types: dict[str, int] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Results of an indexed search.

    ``total_results`` counts every surviving section before truncation to
    ``max_results``. ``search_time`` is wall-clock milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    results: list[SearchResult]
    total_results: int
    search_time: float
    suggestions: list[str] = Field(default_factory=list)
    facets: SearchFacets = Field(default_factory=SearchFacets)


# ---------------------------------------------------------------------------
# Cross-capsule search
# ---------------------------------------------------------------------------


class CapsuleSearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    capsule_ids: list[str] | None = None
    categories: list[str] | None = None
    tags: list[str] | None = None
    difficulty: list[Difficulty] | None = None
    date_range: DateRange | None = None
    subjects: list[str] | None = None
    has_timestamps: bool | None = None


class CapsuleSearchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_results: int = Field(default=50, ge=1)
    search_type: SearchType = "keywords"
    include_content: bool = True
    sort_by: SortBy = "relevance"
    group_by: GroupBy | None = None


class ScoredSection(BaseModel):
    """Output of the field-weighted scorer for one section."""

    model_config = ConfigDict(frozen=True)

    section: OrganizedSection
    relevance_score: float
    matched_terms: list[str] = Field(default_factory=list)


class SectionHit(ScoredSection):
    snippet: str


class CapsuleMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    tags: list[str] = Field(default_factory=list)
    difficulty: str
    created_at: datetime
    subjects: list[str] = Field(default_factory=list)
    estimated_reading_time: int = 0


class EnhancedSearchResult(BaseModel):
    """One capsule with its matching sections."""

    model_config = ConfigDict(frozen=True)

    capsule_id: str
    video_title: str
    video_id: str
    sections: list[SectionHit]
    total_relevance_score: float
    metadata: CapsuleMetadata

    def total_importance(self) -> int:
        return sum(hit.section.importance for hit in self.sections)


class CapsuleFacets(BaseModel):
    model_config = ConfigDict(frozen=True)

    categories: dict[str, int] = Field(default_factory=dict)
    tags: dict[str, int] = Field(default_factory=dict)
    difficulties: dict[str, int] = Field(default_factory=dict)
    subjects: dict[str, int] = Field(default_factory=dict)


class CategoryCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    count: int


class TagCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str
    count: int


class SearchAggregations(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_capsules: int = 0
    total_sections: int = 0
    average_relevance_score: float = 0.0
    top_categories: list[CategoryCount] = Field(default_factory=list)
    top_tags: list[TagCount] = Field(default_factory=list)


class EnhancedSearchResponse(BaseModel):
    """Results of a cross-capsule search.

    Facets and aggregations describe the returned (truncated) results only.
    """

    model_config = ConfigDict(frozen=True)

    results: list[EnhancedSearchResult]
    total_results: int
    search_time: float
    suggestions: list[str] = Field(default_factory=list)
    facets: CapsuleFacets = Field(default_factory=CapsuleFacets)
    aggregations: SearchAggregations = Field(default_factory=SearchAggregations)
