"""
Search indexing and scoring package.

- indexer: in-memory inverted index over note sections
- fuzzy: edit distance and fuzzy term matching
- snippet: match context, snippets and highlighting
- engine: keyword/phrase/full-text query engine over an index
- scorer: index-free field-weighted scoring of organized notes
- keywords: key phrase and keyword extraction
"""
