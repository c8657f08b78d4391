"""Key phrase and keyword extraction for organized notes.

``build_keyword_index`` produces the ``search_index`` summary stored with a
capsule's organized notes; the cross-capsule search reads its keywords as
suggestion candidates.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from capsule_search.domain.model import EntityGroup, NoteSection, NotesSearchIndex, OrganizedSection
from capsule_search.search.indexer import clean_token, extract_phrases, tokenize


MAX_KEYWORDS = 100
MAX_PHRASES = 50
CONTENT_WORD_LIMIT = 100


def extract_key_phrases(sections: Iterable[NoteSection]) -> list[str]:
    """Collect 2- and 3-word phrases plus highlights from note sections.

    Two-word phrases must be longer than 6 characters and three-word
    phrases longer than 10 once punctuation is removed. Highlights are
    added verbatim (lowercased). Order is first-seen, without duplicates.
    """
    phrases: dict[str, None] = {}
    for section in sections:
        words = tokenize(f"{section.title} {section.content}")
        for phrase in extract_phrases(words, window=2, min_length=7):
            phrases.setdefault(phrase)
        for phrase in extract_phrases(words, window=3, min_length=11):
            phrases.setdefault(phrase)
        for highlight in section.highlights:
            phrases.setdefault(highlight.lower())
    return list(phrases)


def build_keyword_index(
    sections: Sequence[OrganizedSection],
    key_phrases: Iterable[str] = (),
    entities: Sequence[EntityGroup] = (),
) -> NotesSearchIndex:
    """Summarize organized sections into keywords and phrases.

    Keywords come from title and key-point words (more than 3 characters),
    whole concepts, and the first 100 content words (punctuation removed,
    more than 4 characters). Capped at 100 keywords and 50 phrases.
    """
    keywords: dict[str, None] = {}
    for section in sections:
        for word in section.title.split():
            if len(word) > 3:
                keywords.setdefault(word.lower())
        for point in section.key_points:
            for word in point.split():
                if len(word) > 3:
                    keywords.setdefault(word.lower())
        for concept in section.concepts:
            keywords.setdefault(concept.lower())
        for word in section.content.split()[:CONTENT_WORD_LIMIT]:
            cleaned = clean_token(word).lower()
            if len(cleaned) > 4:
                keywords.setdefault(cleaned)

    phrases = dict.fromkeys(phrase.lower() for phrase in key_phrases)

    return NotesSearchIndex(
        keywords=list(keywords)[:MAX_KEYWORDS],
        phrases=list(phrases)[:MAX_PHRASES],
        entities=list(entities),
    )
