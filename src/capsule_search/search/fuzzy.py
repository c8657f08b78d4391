"""Fuzzy matching for typo-tolerant search.

This module provides edit distance calculation and fuzzy term matching
shared by the indexed query engine and the cross-capsule suggestions.

Threshold:
- A term of length n tolerates max(1, floor(n * 0.2)) edits
- The floor of 1 means even one- and two-character terms allow one edit
"""

from __future__ import annotations

from collections.abc import Iterable
import math


FUZZY_RATIO = 0.2


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the Levenshtein (edit) distance between two strings.

    Uses dynamic programming for O(m*n) time complexity, with optional
    early termination when distance exceeds max_distance.

    Args:
        s1: First string.
        s2: Second string.
        max_distance: If provided, return max_distance+1 early when
            distance is guaranteed to exceed this threshold.

    Returns:
        The minimum number of single-character edits (insertions,
        deletions, substitutions) needed to change s1 into s2.
        If max_distance is set and exceeded, returns max_distance+1.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("learning", "leraning")
        2
        >>> levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Shorter string as columns
    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)

    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)

    for j in range(1, n + 1):
        curr_row[0] = j
        row_min = curr_row[0]
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(
                prev_row[i] + 1,  # deletion
                curr_row[i - 1] + 1,  # insertion
                prev_row[i - 1] + cost,  # substitution
            )
            row_min = min(row_min, curr_row[i])

        if max_distance is not None and row_min > max_distance:
            return max_distance + 1

        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def get_max_edit_distance(term_length: int) -> int:
    """Get the maximum allowed edit distance for a term based on its length.

    Args:
        term_length: Length of the search term.

    Returns:
        max(1, floor(term_length * 0.2)).
    """
    return max(1, math.floor(term_length * FUZZY_RATIO))


def find_fuzzy_matches(
    query_term: str,
    vocabulary: Iterable[str],
    max_distance: int | None = None,
) -> list[tuple[str, int]]:
    """Find terms in vocabulary that fuzzy-match the query term.

    Comparison is exact-case; callers normalize case beforehand.

    Args:
        query_term: The term to match (may contain typo).
        vocabulary: Candidate terms (e.g. postings keys).
        max_distance: Maximum edit distance allowed. If None, uses
            the length-proportional threshold.

    Returns:
        List of (matching_term, edit_distance) tuples, sorted by
        edit distance (closest matches first), then alphabetically.
    """
    if not query_term:
        return []

    if max_distance is None:
        max_distance = get_max_edit_distance(len(query_term))

    matches: list[tuple[str, int]] = []
    for term in vocabulary:
        if abs(len(query_term) - len(term)) > max_distance:
            continue
        distance = levenshtein_distance(query_term, term, max_distance)
        if distance <= max_distance:
            matches.append((term, distance))

    matches.sort(key=lambda x: (x[1], x[0]))
    return matches


def rank_by_edit_distance(query: str, candidates: Iterable[str], limit: int | None = None) -> list[str]:
    """Order candidates by ascending edit distance to query.

    The sort is stable, so equally distant candidates keep their input order.
    """
    ranked = sorted(candidates, key=lambda candidate: levenshtein_distance(query, candidate))
    if limit is not None:
        return ranked[:limit]
    return ranked
