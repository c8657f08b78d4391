"""Unit tests for fuzzy matching / typo tolerance."""

import pytest

from capsule_search.search.fuzzy import (
    find_fuzzy_matches,
    get_max_edit_distance,
    levenshtein_distance,
    rank_by_edit_distance,
)


@pytest.mark.unit
class TestLevenshteinDistance:
    """Tests for levenshtein_distance function."""

    def test_identical_strings(self):
        assert levenshtein_distance("learn", "learn") == 0

    def test_empty_strings(self):
        assert levenshtein_distance("", "") == 0
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "abc") == 3

    def test_single_edits(self):
        assert levenshtein_distance("learn", "lean") == 1
        assert levenshtein_distance("lean", "learn") == 1
        assert levenshtein_distance("learn", "leorn") == 1

    def test_multiple_edits(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_case_sensitive(self):
        assert levenshtein_distance("Neural", "neural") == 1

    def test_early_exit_when_bound_exceeded(self):
        assert levenshtein_distance("abcdef", "uvwxyz", max_distance=1) == 2
        assert levenshtein_distance("ab", "abcdef", max_distance=2) == 3

    def test_bound_not_exceeded_returns_exact_distance(self):
        assert levenshtein_distance("python", "pyhton", max_distance=3) == 2


@pytest.mark.unit
class TestGetMaxEditDistance:
    """The threshold is max(1, floor(n * 0.2))."""

    def test_short_terms_still_allow_one_edit(self):
        assert get_max_edit_distance(1) == 1
        assert get_max_edit_distance(2) == 1
        assert get_max_edit_distance(4) == 1

    def test_length_five_allows_one_edit(self):
        assert get_max_edit_distance(5) == 1
        assert get_max_edit_distance(9) == 1

    def test_longer_terms_scale(self):
        assert get_max_edit_distance(10) == 2
        assert get_max_edit_distance(15) == 3
        assert get_max_edit_distance(16) == 3


@pytest.mark.unit
class TestFindFuzzyMatches:
    """Tests for find_fuzzy_matches function."""

    def test_threshold_boundary_at_length_five(self):
        assert find_fuzzy_matches("leorn", ["learn"]) == [("learn", 1)]
        assert find_fuzzy_matches("loorn", ["learn"]) == []

    def test_explicit_bound(self):
        assert find_fuzzy_matches("loorn", ["learn"], max_distance=2) == [("learn", 2)]

    def test_returns_matches_sorted_by_distance(self):
        matches = find_fuzzy_matches("learn", ["lxxrn", "earn", "leans", "learn"])

        assert matches == [("learn", 0), ("earn", 1)]

    def test_ties_are_alphabetical(self):
        matches = find_fuzzy_matches("cat", ["hat", "bat", "car"])

        assert matches == [("bat", 1), ("car", 1), ("hat", 1)]

    def test_empty_query_matches_nothing(self):
        assert find_fuzzy_matches("", ["a", "b"]) == []

    def test_length_gap_skips_candidate(self):
        assert find_fuzzy_matches("ml", ["machine"]) == []


@pytest.mark.unit
class TestRankByEditDistance:
    """Tests for rank_by_edit_distance function."""

    def test_orders_by_distance(self):
        ranked = rank_by_edit_distance("neur", ["neuroscience", "neural", "neural networks"])

        assert ranked == ["neural", "neuroscience", "neural networks"]

    def test_equal_distances_keep_input_order(self):
        assert rank_by_edit_distance("cat", ["hat", "bat", "rat"]) == ["hat", "bat", "rat"]

    def test_limit(self):
        assert rank_by_edit_distance("cat", ["hat", "bat", "rat"], limit=2) == ["hat", "bat"]

    def test_limit_zero(self):
        assert rank_by_edit_distance("cat", ["hat"], limit=0) == []
