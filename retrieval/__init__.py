"""
Retrieval package for catalog search.

Components:
- filters: Validate search filter options
- query_engine: Resolve candidates from indexes, filter, sort and paginate
"""

from .filters import SearchFilter, parse_filter
from .query_engine import DocumentSummary, QueryEngine, SearchResult

__all__ = ['SearchFilter', 'parse_filter', 'DocumentSummary', 'QueryEngine', 'SearchResult']
