"""Unit tests for the notes inverted index."""

import pytest

from capsule_search.domain.model import NoteSection
from capsule_search.search.indexer import (
    NotesIndex,
    build_index,
    extract_keywords,
    extract_phrases,
    section_full_text,
)


def _section(section_id, title, content="", **fields):
    return NoteSection(id=section_id, title=title, content=content, type=fields.pop("type", "main-point"), **fields)


@pytest.mark.unit
class TestTokenHelpers:
    """Tests for tokenizing, keyword and phrase helpers."""

    def test_keywords_are_cleaned_and_at_least_three_chars(self):
        assert extract_keywords(["hello,", "world!", "it", "is", "ok", "ai?"]) == ["hello", "world"]

    def test_keywords_keep_length_three_after_cleaning(self):
        assert extract_keywords(["(ml)", "sql;"]) == ["sql"]

    def test_phrases_drop_punctuation_and_short_windows(self):
        words = ["hello,", "world!", "it", "is", "ok"]

        assert extract_phrases(words) == ["hello world", "world it"]

    def test_three_word_window(self):
        assert extract_phrases(["deep", "neural", "nets"], window=3, min_length=11) == ["deep neural nets"]

    def test_full_text_joins_title_content_and_highlights(self):
        section = _section("s1", "Title", "Body", highlights=["one", "two"])

        assert section_full_text(section) == "Title Body one two"


@pytest.mark.unit
class TestBuildIndex:
    """Tests for build_index function."""

    def test_keywords_and_phrases_posted(self):
        index = build_index([_section("s1", "Hello, world!", "It is ok")])

        assert set(index.keywords) == {"hello", "world"}
        assert set(index.phrases) == {"hello world", "world it"}
        assert index.keywords["hello"] == frozenset({"s1"})

    def test_full_text_is_lowercased(self, sample_index):
        assert sample_index.full_text["s1"] == "intro to ml machine learning is powerful "

    def test_highlights_are_indexed(self, sample_index):
        assert "forward and backward" in sample_index.full_text["s2"]
        assert "s2" in sample_index.keywords["backward"]

    def test_tags_are_lowercased(self):
        index = build_index([_section("s1", "Title", tags=["DeepLearning"])])

        assert set(index.tags) == {"deeplearning"}

    def test_section_types_posted(self, sample_index):
        assert sample_index.section_types["example"] == frozenset({"s3"})
        assert sample_index.section_types["introduction"] == frozenset({"s1"})

    def test_categories_cover_every_section(self, sample_index):
        assert sample_index.categories["science"] == frozenset({"s1", "s2", "s3"})

    def test_capsule_tags_kept(self, sample_index):
        assert sample_index.capsule_tags == ("ml",)

    def test_metadata_snapshot(self, sample_index):
        metadata = sample_index.metadata["s2"]

        assert metadata.timestamp is not None
        assert metadata.highlights == ("forward and backward",)
        assert metadata.tags == ("ml", "training")
        assert metadata.order == 1

    def test_every_posted_id_has_text_and_metadata(self, sample_index):
        postings_maps = (
            sample_index.keywords,
            sample_index.phrases,
            sample_index.tags,
            sample_index.categories,
            sample_index.section_types,
        )
        for postings in postings_maps:
            for ids in postings.values():
                for section_id in ids:
                    assert section_id in sample_index.full_text
                    assert section_id in sample_index.metadata

    @pytest.mark.parametrize("sections", [None, []])
    def test_empty_input_builds_empty_index(self, sections):
        index = build_index(sections)

        assert isinstance(index, NotesIndex)
        assert index.is_empty()
        assert index.section_count == 0
        assert dict(index.keywords) == {}

    def test_index_is_read_only(self, sample_index):
        with pytest.raises(TypeError):
            sample_index.keywords["new"] = frozenset({"s1"})  # type: ignore[index]

        with pytest.raises(AttributeError):
            sample_index.keywords = {}  # type: ignore[misc]

    def test_rebuild_is_deterministic(self, sample_sections):
        first = build_index(sample_sections, categories=["Science"])
        second = build_index(sample_sections, categories=["Science"])

        assert dict(first.keywords) == dict(second.keywords)
        assert list(first.full_text) == list(second.full_text) == ["s1", "s2", "s3"]
