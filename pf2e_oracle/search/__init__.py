"""
Retrieval

Filtered similarity search over indexed rules content.
"""

from pf2e_oracle.search.rag import RagResult, RagService, SearchResults, build_where

__all__ = ["RagResult", "RagService", "SearchResults", "build_where"]
