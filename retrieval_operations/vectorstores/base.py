"""
Vector Store Interfaces

This module defines the vector store capabilities consumed by the retrievers:
scored similarity search and document insertion for the hybrid retriever,
and store-side hybrid search for the native fusion adapter.
"""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..core.base import Document

# Maps a batch of texts to one vector per text; may be a coroutine function
EmbeddingFunction = Callable[[List[str]], Sequence[Sequence[float]]]


async def embed_texts(embedding_function: EmbeddingFunction, texts: List[str]):
    """
    Call an embedding function that may be synchronous or asynchronous.

    Returns:
        One vector per input text
    """
    vectors = embedding_function(texts)
    if inspect.isawaitable(vectors):
        vectors = await vectors
    if len(vectors) != len(texts):
        raise ValueError(
            f"Embedding function returned {len(vectors)} vectors for {len(texts)} texts"
        )
    return vectors


@dataclass
class DocumentWithScore:
    """A document returned by similarity search with its similarity score."""
    document: Document
    score: float


@dataclass
class HybridSearchOptions:
    """
    Options for store-side hybrid search.

    Attributes:
        rrf_rank_constant: RRF constant k used by the store's ranker
        vector_top_k: Candidates requested from the dense side (None = limit)
        keyword_top_k: Candidates requested from the full-text side (None = limit)
    """
    rrf_rank_constant: int = 60
    vector_top_k: Optional[int] = None
    keyword_top_k: Optional[int] = None


@dataclass
class HybridSearchResult:
    """
    One result of a store-side hybrid search.

    Stores that do not report per-side scores leave them at 0.0.
    """
    document: Document
    vector_score: float = 0.0
    keyword_score: float = 0.0
    fusion_score: float = 0.0


class VectorStore(ABC):
    """
    Abstract base class for vector stores.

    Implementations own embedding and indexing; callers only exchange text
    and documents.
    """

    @abstractmethod
    async def similarity_search_with_score(
        self,
        query: str,
        k: int
    ) -> List[DocumentWithScore]:
        """
        Find the k documents most similar to the query.

        Args:
            query: Query text
            k: Maximum number of results

        Returns:
            Documents with scores, best first
        """
        pass

    @abstractmethod
    async def add_documents(self, documents: Sequence[Document]) -> List[str]:
        """
        Add documents to the store.

        Args:
            documents: Documents to add

        Returns:
            Ids assigned to the documents, in order
        """
        pass


class HybridVectorStore(VectorStore):
    """Vector store that can fuse dense and full-text rankings server-side."""

    @abstractmethod
    async def hybrid_search(
        self,
        query: str,
        k: int,
        options: Optional[HybridSearchOptions] = None
    ) -> List[HybridSearchResult]:
        """
        Run a fused dense + full-text search.

        Args:
            query: Query text
            k: Maximum number of results
            options: Hybrid search options

        Returns:
            Results sorted by fusion score, best first
        """
        pass
