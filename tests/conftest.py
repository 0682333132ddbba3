"""Shared fixtures and fake vector stores for retrieval tests."""

import asyncio
from typing import List, Optional, Sequence

import pytest

from retrieval_operations import (
    Document,
    DocumentWithScore,
    HybridSearchOptions,
    HybridSearchResult,
    HybridVectorStore,
    VectorStore,
)


class FakeVectorStore(VectorStore):
    """Vector store returning a preset ranking, optionally after a delay or failure."""

    def __init__(
        self,
        results: Optional[Sequence[DocumentWithScore]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        add_error: Optional[Exception] = None
    ):
        self.results = list(results or [])
        self.error = error
        self.delay = delay
        self.add_error = add_error
        self.added: List[Document] = []
        self.search_calls = []
        self.cancelled = False

    async def similarity_search_with_score(self, query, k):
        self.search_calls.append((query, k))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.results[:k]

    async def add_documents(self, documents):
        if self.add_error is not None:
            raise self.add_error
        self.added.extend(documents)
        return [f"id-{len(self.added) - len(documents) + i}" for i in range(len(documents))]


class FakeHybridVectorStore(FakeVectorStore, HybridVectorStore):
    """Store with a preset store-side hybrid ranking."""

    def __init__(self, hybrid_results=None, hybrid_error=None, hybrid_delay=0.0, **kwargs):
        super().__init__(**kwargs)
        self.hybrid_results = list(hybrid_results or [])
        self.hybrid_error = hybrid_error
        self.hybrid_delay = hybrid_delay
        self.hybrid_calls = []

    async def hybrid_search(self, query, k, options: Optional[HybridSearchOptions] = None):
        self.hybrid_calls.append((query, k, options))
        if self.hybrid_delay:
            await asyncio.sleep(self.hybrid_delay)
        if self.hybrid_error is not None:
            raise self.hybrid_error
        return self.hybrid_results[:k]


KEYWORDS = ["python", "java", "vector", "search", "fusion", "database"]


def keyword_embedding(texts):
    """Deterministic bag-of-keywords embedding with a constant bias dimension."""
    vectors = []
    for text in texts:
        lowered = text.lower()
        vectors.append([float(lowered.count(word)) for word in KEYWORDS] + [0.1])
    return vectors


@pytest.fixture
def corpus():
    return [
        Document("python programming language", {"id": "d0"}),
        Document("java programming language", {"id": "d1"}),
        Document("vector search with python", {"id": "d2"}),
    ]


@pytest.fixture
def fake_store(corpus):
    return FakeVectorStore([
        DocumentWithScore(corpus[2], 0.9),
        DocumentWithScore(corpus[0], 0.8),
        DocumentWithScore(corpus[1], 0.1),
    ])


@pytest.fixture
def hybrid_results(corpus):
    return [
        HybridSearchResult(corpus[0], vector_score=0.8, keyword_score=1.2, fusion_score=0.9),
        HybridSearchResult(corpus[2], vector_score=0.7, keyword_score=0.0, fusion_score=0.5),
        HybridSearchResult(corpus[1], vector_score=0.1, keyword_score=0.0, fusion_score=0.2),
    ]
