"""
Vector Stores Module

This module provides the vector store interfaces consumed by the retrievers
and two implementations: an in-memory numpy store and a Milvus store.
"""

from .base import (
    DocumentWithScore,
    EmbeddingFunction,
    HybridSearchOptions,
    HybridSearchResult,
    VectorStore,
    HybridVectorStore,
    embed_texts,
)
from .memory import InMemoryVectorStore
from .milvus import MilvusVectorStore

__all__ = [
    # Interfaces
    "DocumentWithScore",
    "EmbeddingFunction",
    "HybridSearchOptions",
    "HybridSearchResult",
    "VectorStore",
    "HybridVectorStore",
    "embed_texts",

    # Implementations
    "InMemoryVectorStore",
    "MilvusVectorStore",
]
