"""Match, context and snippet extraction shared by both search paths.

- find_text_matches: literal (regex-escaped) case-insensitive hits in a text
- extract_context: fixed window around a hit, with "..." on truncated sides
- create_snippet: preview window around the first occurrence of a query
- highlight_search_terms: wrap query terms in a markup tag
"""

from __future__ import annotations

from dataclasses import dataclass
import re


ELLIPSIS = "..."
DEFAULT_CONTEXT_SIZE = 100
DEFAULT_SNIPPET_LENGTH = 150


@dataclass(frozen=True)
class TextHit:
    """A single literal match inside a text."""

    text: str
    position: int
    length: int


def compile_literal(query: str, whole_words: bool = False) -> re.Pattern[str]:
    """Compile a case-insensitive pattern matching query literally."""
    escaped = re.escape(query)
    if whole_words:
        escaped = rf"\b{escaped}\b"
    return re.compile(escaped, re.IGNORECASE)


def find_text_matches(query: str, content: str, whole_words: bool = False) -> list[TextHit]:
    """Find all non-overlapping occurrences of query in content.

    Matching is always case-insensitive; ``whole_words`` anchors the query
    on word boundaries.
    """
    if not query or not content:
        return []
    pattern = compile_literal(query, whole_words)
    return [
        TextHit(text=match.group(0), position=match.start(), length=len(match.group(0)))
        for match in pattern.finditer(content)
    ]


def count_occurrences(term: str, text: str) -> int:
    """Count non-overlapping literal occurrences of term in text, ignoring case."""
    if not term or not text:
        return 0
    return sum(1 for _ in compile_literal(term).finditer(text))


def extract_context(
    content: str,
    position: int,
    length: int,
    context_size: int = DEFAULT_CONTEXT_SIZE,
) -> str:
    """Return content[position - context_size : position + length + context_size].

    Args:
        content: Text the match was found in.
        position: Match start offset.
        length: Match length.
        context_size: Characters kept on each side of the match.

    Returns:
        The window, prefixed and/or suffixed with "..." where it was cut.
    """
    start = max(0, position - context_size)
    end = min(len(content), position + length + context_size)

    context = content[start:end]
    if start > 0:
        context = ELLIPSIS + context
    if end < len(content):
        context = context + ELLIPSIS
    return context


def create_snippet(content: str, query: str, max_length: int = DEFAULT_SNIPPET_LENGTH) -> str:
    """Build a preview of content around the first occurrence of query.

    The window is ``max_length`` characters long and starts ``max_length // 2``
    characters before the occurrence. When the query does not occur, the
    first ``max_length`` characters are returned.
    """
    position = content.lower().find(query.lower()) if query else -1

    if position == -1:
        if len(content) > max_length:
            return content[:max_length] + ELLIPSIS
        return content

    half_length = max_length // 2
    start = max(0, position - half_length)
    end = min(len(content), start + max_length)

    snippet = content[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS
    return snippet


def highlight_search_terms(text: str, query: str, highlight_tag: str = "mark") -> str:
    """Wrap every occurrence of each query term in ``<tag>...</tag>``.

    Terms are matched literally and case-insensitively in a single pass, so
    inserted tags are never themselves highlighted. Longer terms win when
    terms overlap.
    """
    terms = sorted({term for term in query.split() if term}, key=len, reverse=True)
    if not text or not terms:
        return text

    pattern = re.compile("|".join(re.escape(term) for term in terms), re.IGNORECASE)
    return pattern.sub(lambda match: f"<{highlight_tag}>{match.group(0)}</{highlight_tag}>", text)
