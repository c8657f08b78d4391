"""Domain layer - pure data types and errors with no infrastructure dependencies.

- model: note sections, organized notes and capsules (inputs)
- search: query and response value objects
- errors: the search core's exception hierarchy
"""

from capsule_search.domain.errors import (
    CapsuleSearchError,
    CollaboratorFailureError,
    IndexUnavailableError,
    InvalidQueryError,
    SearchTimeoutError,
)
from capsule_search.domain.model import (
    Annotation,
    Capsule,
    Categorization,
    EntityGroup,
    NoteSection,
    NotesMetadata,
    NotesSearchIndex,
    OrganizedNotes,
    OrganizedSection,
    Timestamp,
    create_annotation,
)


__all__ = [
    "Annotation",
    "Capsule",
    "CapsuleSearchError",
    "Categorization",
    "CollaboratorFailureError",
    "EntityGroup",
    "IndexUnavailableError",
    "InvalidQueryError",
    "NoteSection",
    "NotesMetadata",
    "NotesSearchIndex",
    "OrganizedNotes",
    "OrganizedSection",
    "SearchTimeoutError",
    "Timestamp",
    "create_annotation",
]
