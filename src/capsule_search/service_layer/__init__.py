"""Service layer - use-case orchestration.

- aggregator: cross-capsule search over a user's capsule collection
- validation: query checks shared by every entry point
"""

from .aggregator import CapsuleSearchService
from .validation import validate_query


__all__ = [
    "CapsuleSearchService",
    "validate_query",
]
