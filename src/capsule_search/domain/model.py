"""Domain model - note sections, organized notes and capsules.

These are the immutable inputs of the search core. They are produced by the
content-organization pipeline and the capsule store; the search core only
reads them. Validation happens at construction so that a malformed section
is rejected before any index is built or any query is scored.

Field names are snake_case; camelCase aliases are accepted so records coming
straight from the capsule store validate without a translation layer.
"""

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


SectionType = Literal[
    "introduction",
    "main-point",
    "main-content",
    "detail",
    "example",
    "conclusion",
    "key-quote",
    "definition",
    "concept",
    "summary",
]
AnnotationType = Literal["note", "question", "important", "clarification"]
Difficulty = Literal["beginner", "intermediate", "advanced"]


class _DomainModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Timestamp(_DomainModel):
    """Position of a section in the source video, in seconds."""

    start: float = Field(ge=0)
    end: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "Timestamp":
        if self.end < self.start:
            raise ValueError("Timestamp end must not precede start")
        return self


class Annotation(_DomainModel):
    """User annotation attached to a note section."""

    id: str = Field(min_length=1)
    text: str
    type: AnnotationType
    position: int = Field(ge=0)
    created_at: datetime | None = None


class NoteSection(_DomainModel):
    """Unit of retrievable content indexed by the notes index."""

    id: str = Field(min_length=1)
    title: str
    content: str
    type: SectionType
    level: int = Field(default=1, ge=1)
    order: int = 0
    timestamp: Timestamp | None = None
    tags: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)


class OrganizedSection(_DomainModel):
    """Section of a capsule's organized notes, as read by the field-weighted scorer."""

    id: str = Field(min_length=1)
    title: str
    content: str
    level: int = Field(default=1, ge=1)
    type: SectionType
    timestamp: Timestamp | None = None
    key_points: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    difficulty: Difficulty = "beginner"
    importance: int = Field(default=5, ge=1, le=10)


class Categorization(_DomainModel):
    primary_category: str
    secondary_categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    subjects: list[str] = Field(default_factory=list)


class NotesMetadata(_DomainModel):
    difficulty: Difficulty
    estimated_reading_time: int = Field(default=0, ge=0)
    main_topics: list[str] = Field(default_factory=list)
    key_terms: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    word_count: int = Field(default=0, ge=0)


class EntityGroup(_DomainModel):
    """Named entities of one type extracted from the notes (e.g. PERSON, ORGANIZATION)."""

    entity_type: str
    items: list[str] = Field(default_factory=list)


class NotesSearchIndex(_DomainModel):
    """Keyword summary computed when the notes were organized."""

    keywords: list[str] = Field(default_factory=list)
    phrases: list[str] = Field(default_factory=list)
    entities: list[EntityGroup] = Field(default_factory=list)

    def entities_of_type(self, entity_type: str) -> list[str]:
        for group in self.entities:
            if group.entity_type == entity_type:
                return list(group.items)
        return []


class OrganizedNotes(_DomainModel):
    """Structured, categorized section set of one capsule."""

    sections: list[OrganizedSection] = Field(default_factory=list)
    categorization: Categorization
    metadata: NotesMetadata
    search_index: NotesSearchIndex = Field(default_factory=NotesSearchIndex)
    video_title: str | None = None
    video_id: str | None = None

    def has_timestamps(self) -> bool:
        return any(section.timestamp is not None for section in self.sections)

    def all_categories(self) -> list[str]:
        return [self.categorization.primary_category, *self.categorization.secondary_categories]


class Capsule(_DomainModel):
    """A user's learning capsule as returned by the capsule store."""

    capsule_id: str = Field(min_length=1)
    video_title: str = "Unknown Video"
    video_id: str = ""
    created_at: datetime
    organized_notes: OrganizedNotes | None = None

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        # Naive timestamps from the store are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def create_annotation(text: str, annotation_type: AnnotationType, position: int) -> Annotation:
    """Create a new annotation with a generated id and creation time."""
    now = datetime.now(timezone.utc)
    return Annotation(
        id=f"annotation-{int(now.timestamp() * 1000)}-{uuid4().hex[:9]}",
        text=text,
        type=annotation_type,
        position=position,
        created_at=now,
    )
