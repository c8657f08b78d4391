"""Adapters layer - boundaries to external collaborators."""

from capsule_search.adapters.capsule_repository import AbstractCapsuleRepository, InMemoryCapsuleRepository


__all__ = ["AbstractCapsuleRepository", "InMemoryCapsuleRepository"]
