"""Query validation applied before any search runs."""

from capsule_search.domain.errors import InvalidQueryError


DEFAULT_MAX_QUERY_LENGTH = 500


def validate_query(query: str | None, max_length: int = DEFAULT_MAX_QUERY_LENGTH) -> str:
    """Return the trimmed query.

    Raises:
        InvalidQueryError: If the query is missing, blank, or longer than
            ``max_length`` characters.
    """
    if query is None or not query.strip():
        raise InvalidQueryError("Search query is required")
    if len(query) > max_length:
        raise InvalidQueryError(f"Search query is too long (maximum {max_length} characters)")
    return query.strip()
