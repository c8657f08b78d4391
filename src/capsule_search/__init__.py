"""Note and capsule search for learning capsules.

Two entry points share one fuzzy matcher and one snippet module:

- ``build_index`` + ``search``: keyword/phrase/fuzzy search over one capsule's note sections
- ``CapsuleSearchService.search_across_capsules``: field-weighted search over all of a user's capsules
"""

from capsule_search.search.engine import search
from capsule_search.search.indexer import NotesIndex, build_index
from capsule_search.search.keywords import build_keyword_index, extract_key_phrases
from capsule_search.search.scorer import score_sections
from capsule_search.search.snippet import highlight_search_terms
from capsule_search.service_layer import CapsuleSearchService, validate_query


__all__ = [
    "CapsuleSearchService",
    "NotesIndex",
    "build_index",
    "build_keyword_index",
    "extract_key_phrases",
    "highlight_search_terms",
    "score_sections",
    "search",
    "validate_query",
]
