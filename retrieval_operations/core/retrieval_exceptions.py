"""
Retrieval Exceptions

This module defines custom exceptions for keyword, vector and hybrid
retrieval, providing clear error handling and reporting for search-related
issues.
"""

from typing import Optional

from retrieval_ops_exceptions import (
    ConfigurationError,
    InsertionError,
    QueryError,
)


class SearchError(QueryError):
    """Base exception for all search-related errors"""
    pass


class InvalidSearchParametersError(SearchError):
    """Raised when search parameters are invalid"""
    pass


class SearchTimeoutError(SearchError):
    """Raised when a search operation times out"""
    pass


class FusionError(SearchError):
    """Raised when result fusion fails"""
    pass


class HybridSearchError(SearchError):
    """
    Raised when hybrid search fails.

    Attributes:
        source: Which side of the search failed ("vector", "keyword" or None)
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class VectorSearchError(HybridSearchError):
    """Raised when the vector store search fails"""

    def __init__(self, message: str):
        super().__init__(message, source="vector")


class KeywordSearchError(HybridSearchError):
    """Raised when the BM25 keyword search fails"""

    def __init__(self, message: str):
        super().__init__(message, source="keyword")


class NativeHybridSearchError(HybridSearchError):
    """Raised when a store-side (native) hybrid search fails"""

    def __init__(self, message: str):
        super().__init__(message, source="native")


class RetrieverConfigurationError(ConfigurationError):
    """Raised when a retriever is constructed with invalid dependencies or config"""
    pass


class DocumentInsertionError(InsertionError):
    """Raised when documents cannot be added to the vector store"""
    pass
