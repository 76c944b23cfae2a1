"""Content retrieval: URL extraction and page fetchers."""
