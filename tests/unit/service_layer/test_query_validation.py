"""Unit tests for query validation."""

import pytest

from capsule_search.domain.errors import CapsuleSearchError, InvalidQueryError
from capsule_search.service_layer.validation import validate_query


@pytest.mark.unit
class TestValidateQuery:
    """Tests for validate_query function."""

    def test_returns_trimmed_query(self):
        assert validate_query("  neural nets  ") == "neural nets"

    @pytest.mark.parametrize("query", [None, "", "   ", "\t\n"])
    def test_blank_query_rejected(self, query):
        with pytest.raises(InvalidQueryError, match="required"):
            validate_query(query)

    def test_too_long_rejected(self):
        with pytest.raises(InvalidQueryError, match="maximum 10 characters"):
            validate_query("x" * 11, max_length=10)

    def test_exact_length_accepted(self):
        assert validate_query("x" * 10, max_length=10) == "x" * 10

    def test_error_hierarchy(self):
        with pytest.raises(ValueError):
            validate_query("")
        with pytest.raises(CapsuleSearchError):
            validate_query("")
