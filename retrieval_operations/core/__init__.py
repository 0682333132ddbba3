"""
Retrieval Core Module

This module provides the core types of the retrieval package: documents,
search results, the retriever base class and the exception hierarchy.
"""

from .base import (
    Document,
    SearchResult,
    BaseRetriever,
    document_key,
    DOCUMENT_KEY_PREFIX_LENGTH,
)
from .retrieval_exceptions import (
    SearchError,
    InvalidSearchParametersError,
    SearchTimeoutError,
    FusionError,
    HybridSearchError,
    VectorSearchError,
    KeywordSearchError,
    NativeHybridSearchError,
    RetrieverConfigurationError,
    DocumentInsertionError,
)

__all__ = [
    # Types
    "Document",
    "SearchResult",
    "BaseRetriever",
    "document_key",
    "DOCUMENT_KEY_PREFIX_LENGTH",

    # Exceptions
    "SearchError",
    "InvalidSearchParametersError",
    "SearchTimeoutError",
    "FusionError",
    "HybridSearchError",
    "VectorSearchError",
    "KeywordSearchError",
    "NativeHybridSearchError",
    "RetrieverConfigurationError",
    "DocumentInsertionError",
]
