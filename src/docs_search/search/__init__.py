"""
Search indexing and query engine package.

This package provides a pure-Python, elasticlunr-compatible search stack:
- analyzers: Tokenizer and the named pipeline transforms (trimmer, stopWordFilter, stemmer)
- stemmer: Porter stemmer as used by lunr
- trie: Per-field character trie holding postings
- schema: Indexed fields, boosts, ref field and pipeline
- stats: TF-IDF scoring statistics
- index: Document indexing into an immutable SearchIndex
- query / engine: Query parsing, scoring and ranking
- teaser: Result teaser extraction and highlighting
- storage: searchindex.json / searchindex.js artifacts
- holder: Swappable reference to the live index
"""
