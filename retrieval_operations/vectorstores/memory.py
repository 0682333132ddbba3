"""
In-Memory Vector Store

This module provides a vector store that keeps embeddings in a numpy matrix
and ranks documents by cosine similarity. It also implements store-side
hybrid search by fusing its dense ranking with an internal BM25 index.

Embeddings come from a caller-supplied function; this store never generates
them itself.
"""

import uuid
import asyncio
import logging
from typing import List, Optional, Sequence

import numpy as np

from ..core.base import Document
from ..core.retrieval_exceptions import (
    DocumentInsertionError,
    RetrieverConfigurationError,
    SearchError,
)
from ..search.keyword.bm25 import BM25Retriever
from ..search.hybrid.core.fusion import RRFStrategy, convert_to_ranked_list
from .base import (
    DocumentWithScore,
    EmbeddingFunction,
    HybridSearchOptions,
    HybridSearchResult,
    HybridVectorStore,
    embed_texts,
)

logger = logging.getLogger(__name__)


class InMemoryVectorStore(HybridVectorStore):
    """
    Cosine-similarity vector store held in process memory.

    Each added document gets an id (metadata["id"] when set, otherwise a
    generated uuid). Stored documents keep the caller's metadata unchanged,
    so a document without an id keys on its content prefix here just as it
    does in a BM25 index built from the same documents.
    """

    def __init__(self, embedding_function: EmbeddingFunction, bm25_config=None):
        """
        Initialize the store.

        Args:
            embedding_function: Maps a list of texts to a list of vectors;
                may be a plain function or a coroutine function
            bm25_config: Configuration of the internal BM25 index used by
                hybrid_search
        """
        if embedding_function is None:
            raise RetrieverConfigurationError("InMemoryVectorStore requires an embedding function")

        self.embedding_function = embedding_function
        self._documents: List[Document] = []
        self._matrix: Optional[np.ndarray] = None
        self._keyword_index = BM25Retriever([], bm25_config)
        self._lock = asyncio.Lock()

        logger.info("InMemoryVectorStore initialized")

    async def _embed(self, texts: List[str]) -> np.ndarray:
        vectors = await embed_texts(self.embedding_function, texts)
        matrix = np.asarray(vectors, dtype=np.float32)
        if matrix.ndim != 2:
            raise ValueError(f"Embeddings must be a 2-D matrix, got shape {matrix.shape}")
        return matrix

    @staticmethod
    def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return matrix / norms

    def __len__(self) -> int:
        return len(self._documents)

    async def add_documents(self, documents: Sequence[Document]) -> List[str]:
        """
        Embed and store documents.

        Raises:
            DocumentInsertionError: If embedding fails or dimensions mismatch
        """
        documents = list(documents)
        if not documents:
            return []

        try:
            vectors = self._normalize_rows(
                await self._embed([doc.content for doc in documents])
            )
        except Exception as e:
            logger.error(f"Failed to embed documents: {str(e)}")
            raise DocumentInsertionError(f"Failed to embed documents: {str(e)}") from e

        async with self._lock:
            if self._matrix is not None and vectors.shape[1] != self._matrix.shape[1]:
                raise DocumentInsertionError(
                    f"Embedding dimension mismatch: store has {self._matrix.shape[1]}, "
                    f"got {vectors.shape[1]}"
                )

            ids = []
            stored = []
            for doc in documents:
                doc_id = doc.metadata.get("id") if doc.metadata else None
                doc_id = str(doc_id) if doc_id not in (None, "") else uuid.uuid4().hex
                ids.append(doc_id)
                stored.append(Document(content=doc.content, metadata=dict(doc.metadata or {})))

            self._matrix = vectors if self._matrix is None else np.vstack([self._matrix, vectors])
            self._documents.extend(stored)
            self._keyword_index.add_documents(stored)

        logger.debug(f"Added {len(ids)} documents to InMemoryVectorStore - total: {len(self)}")
        return ids

    async def similarity_search_with_score(self, query: str, k: int) -> List[DocumentWithScore]:
        """
        Rank stored documents by cosine similarity to the query.

        Raises:
            SearchError: If the query cannot be embedded
        """
        matrix, documents = self._matrix, self._documents
        if matrix is None or k <= 0:
            return []

        try:
            query_vector = self._normalize_rows(await self._embed([query]))[0]
        except Exception as e:
            raise SearchError(f"Failed to embed query: {str(e)}") from e

        if query_vector.shape[0] != matrix.shape[1]:
            raise SearchError(
                f"Query dimension {query_vector.shape[0]} does not match store dimension {matrix.shape[1]}"
            )

        similarities = matrix @ query_vector
        k = min(k, similarities.shape[0])
        # Stable sort keeps insertion order among equal similarities
        order = np.argsort(-similarities, kind="stable")[:k]

        return [
            DocumentWithScore(document=documents[i], score=float(similarities[i]))
            for i in order
        ]

    async def hybrid_search(
        self,
        query: str,
        k: int,
        options: Optional[HybridSearchOptions] = None
    ) -> List[HybridSearchResult]:
        """
        Fuse dense and BM25 rankings with RRF.

        Args:
            query: Query text
            k: Maximum number of results
            options: Hybrid search options (rank constant, per-side candidates)

        Returns:
            Fused results, best first
        """
        options = options or HybridSearchOptions()
        vector_k = options.vector_top_k or k
        keyword_k = options.keyword_top_k or k

        vector_hits = await self.similarity_search_with_score(query, vector_k)
        keyword_hits = self._keyword_index.search(query, keyword_k)

        fused = RRFStrategy(k=options.rrf_rank_constant).fuse([
            convert_to_ranked_list(
                "vector",
                [hit.document for hit in vector_hits],
                [hit.score for hit in vector_hits],
            ),
            convert_to_ranked_list(
                "keyword",
                [hit.document for hit in keyword_hits],
                [hit.score for hit in keyword_hits],
            ),
        ])

        return [
            HybridSearchResult(
                document=doc.document,
                vector_score=doc.source_scores.get("vector", 0.0),
                keyword_score=doc.source_scores.get("keyword", 0.0),
                fusion_score=doc.score,
            )
            for doc in fused[:k]
        ]
