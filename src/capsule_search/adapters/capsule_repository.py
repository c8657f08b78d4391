"""Capsule store abstractions and implementations.

Defines the boundary to capsule persistence following the Repository
Pattern. The search core only reads capsules; persistence, auth and retry
policy belong to the store client behind this interface.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable
import logging

from capsule_search.domain.model import Capsule
from capsule_search.domain.search import DateRange


logger = logging.getLogger(__name__)


class AbstractCapsuleRepository(ABC):
    """Abstract repository returning a user's capsules.

    Implementations can be backed by any document store.
    """

    @abstractmethod
    async def get_user_capsules_with_organized_notes(
        self,
        user_id: str,
        date_range: DateRange | None = None,
    ) -> list[Capsule]:
        """Return the user's capsules that carry organized notes.

        Args:
            user_id: Owner of the capsules.
            date_range: Optional inclusive creation-date window.

        Returns:
            Capsules in a stable order. Callers skip any capsule whose
            ``organized_notes`` is missing.
        """
        raise NotImplementedError


class InMemoryCapsuleRepository(AbstractCapsuleRepository):
    """Process-local capsule store keyed by user id.

    Capsules are returned in insertion order.
    """

    def __init__(self, capsules: dict[str, Iterable[Capsule]] | None = None) -> None:
        self._capsules: dict[str, list[Capsule]] = defaultdict(list)
        for user_id, user_capsules in (capsules or {}).items():
            self._capsules[user_id].extend(user_capsules)

    def add(self, user_id: str, capsule: Capsule) -> None:
        self._capsules[user_id].append(capsule)

    async def get_user_capsules_with_organized_notes(
        self,
        user_id: str,
        date_range: DateRange | None = None,
    ) -> list[Capsule]:
        capsules = [
            capsule
            for capsule in self._capsules.get(user_id, [])
            if capsule.organized_notes is not None
            and (date_range is None or date_range.contains(capsule.created_at))
        ]
        logger.debug("Loaded %d capsules with organized notes for user %s", len(capsules), user_id)
        return capsules
