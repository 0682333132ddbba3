"""
Native Hybrid Retrieval

This module provides a retriever for vector stores that fuse dense and
full-text rankings server-side (e.g. Milvus with RRFRanker). It calls the
store's hybrid search directly instead of running two searches and fusing
locally, and returns the same SearchResult shape as HybridRetriever.

A local fallback path runs only the vector half and fuses it with a
caller-supplied strategy, for stores or deployments where server-side fusion
is unavailable.
"""

import time
import dataclasses
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from ....config.native import NativeHybridConfig
from ....core.base import BaseRetriever, Document, SearchResult
from ....core.retrieval_exceptions import (
    DocumentInsertionError,
    NativeHybridSearchError,
    RetrieverConfigurationError,
    SearchTimeoutError,
    VectorSearchError,
)
from ....vectorstores.base import HybridSearchOptions, HybridVectorStore
from ..utils.validation import validate_search_params
from .fusion import DEFAULT_RRF_K, FusionStrategy, RRFStrategy, convert_to_ranked_list

logger = logging.getLogger(__name__)


class NativeHybridRetriever(BaseRetriever):
    """
    Hybrid retriever delegating fusion to the vector store.

    Results keep the store's order: vector_rank is the 1-based position in
    the fused list and keyword_rank is 0, since the store does not report
    per-side ranks.
    """

    def __init__(
        self,
        store: HybridVectorStore,
        strategy: Optional[FusionStrategy] = None,
        config: Optional[NativeHybridConfig] = None
    ):
        """
        Initialize the native hybrid retriever.

        Args:
            store: Vector store providing hybrid_search
            strategy: Strategy for the local fallback path
                (defaults to RRF with config.rrf_rank_constant)
            config: Native hybrid configuration (uses defaults if not provided)

        Raises:
            RetrieverConfigurationError: If the store is missing or cannot
                run hybrid search
        """
        if store is None:
            raise RetrieverConfigurationError("Vector store is required")
        if not hasattr(store, "hybrid_search"):
            raise RetrieverConfigurationError(
                f"Vector store {type(store).__name__} does not support hybrid_search"
            )

        self.store = store
        self.config = config or NativeHybridConfig()
        self.strategy = strategy or RRFStrategy(k=self.config.rrf_rank_constant or DEFAULT_RRF_K)

        logger.info(
            f"NativeHybridRetriever initialized - "
            f"store: {type(store).__name__}, "
            f"rrf_k: {self.config.rrf_rank_constant}, "
            f"native: {self.config.use_native_rrf}"
        )

    def _passes(self, score: float) -> bool:
        return not (self.config.min_score > 0 and score < self.config.min_score)

    async def search(
        self,
        query: str,
        top_k: int,
        timeout: Optional[float] = None
    ) -> List[SearchResult]:
        """
        Perform store-side hybrid search.

        When config.use_native_rrf is False, this runs
        search_with_custom_strategy with the retriever's strategy instead.

        Args:
            query: Query text
            top_k: Maximum number of results
            timeout: Optional timeout in seconds

        Returns:
            Results sorted by fused score descending

        Raises:
            NativeHybridSearchError: If the store's hybrid search fails
            SearchTimeoutError: If the search exceeds the timeout
        """
        if not self.config.use_native_rrf:
            return await self.search_with_custom_strategy(query, top_k, self.strategy, timeout)

        validate_search_params(query, top_k, timeout)
        candidates = self.config.vector_top_k or top_k * 2
        options = HybridSearchOptions(rrf_rank_constant=self.config.rrf_rank_constant)

        start_time = time.time()
        try:
            store_results = await self._with_timeout(
                self.store.hybrid_search(query, candidates, options), timeout
            )
        except SearchTimeoutError:
            raise
        except Exception as e:
            logger.error(f"Native hybrid search failed: {str(e)}")
            raise NativeHybridSearchError(f"native hybrid search failed: {str(e)}") from e

        results = []
        for rank, store_result in enumerate(store_results, start=1):
            if not self._passes(store_result.fusion_score):
                continue
            results.append(SearchResult(
                document=store_result.document,
                score=store_result.fusion_score,
                vector_score=store_result.vector_score,
                keyword_score=store_result.keyword_score,
                vector_rank=rank,
                keyword_rank=0,
            ))
            if len(results) >= top_k:
                break

        logger.info(
            f"Native hybrid search completed - results: {len(results)}, "
            f"candidates: {len(store_results)}, "
            f"time: {(time.time() - start_time) * 1000:.2f}ms"
        )
        return results

    async def _with_timeout(self, coro, timeout: Optional[float]):
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SearchTimeoutError(f"Search exceeded timeout of {timeout}s") from e

    async def search_vector_only(self, query: str, top_k: int) -> List[SearchResult]:
        """
        Perform a vector search without fusion.

        Raises:
            VectorSearchError: If the store's similarity search fails
        """
        validate_search_params(query, top_k)
        try:
            hits = await self.store.similarity_search_with_score(query, top_k)
        except Exception as e:
            raise VectorSearchError(f"vector search failed: {str(e)}") from e

        return [
            SearchResult(
                document=hit.document,
                score=hit.score,
                vector_score=hit.score,
                vector_rank=rank,
            )
            for rank, hit in enumerate(hits, start=1)
        ]

    async def search_with_custom_strategy(
        self,
        query: str,
        top_k: int,
        strategy: FusionStrategy,
        timeout: Optional[float] = None
    ) -> List[SearchResult]:
        """
        Run the vector half locally and fuse it with a custom strategy.

        Args:
            query: Query text
            top_k: Maximum number of results
            strategy: Fusion strategy applied to the vector ranked list
            timeout: Optional timeout in seconds

        Returns:
            Results sorted by fused score descending

        Raises:
            VectorSearchError: If the store's similarity search fails
            SearchTimeoutError: If the search exceeds the timeout
        """
        validate_search_params(query, top_k, timeout)
        if strategy is None:
            raise RetrieverConfigurationError("A fusion strategy is required")

        try:
            hits = await self._with_timeout(
                self.store.similarity_search_with_score(query, top_k * 2), timeout
            )
        except SearchTimeoutError:
            raise
        except Exception as e:
            raise VectorSearchError(f"vector search failed: {str(e)}") from e

        vector_list = convert_to_ranked_list(
            "vector",
            [hit.document for hit in hits],
            [hit.score for hit in hits],
        )
        fused = strategy.fuse([vector_list])

        results = []
        for doc in fused:
            if not self._passes(doc.score):
                continue
            results.append(SearchResult(
                document=doc.document,
                score=doc.score,
                vector_score=doc.source_scores.get("vector", 0.0),
                vector_rank=doc.source_ranks.get("vector", 0),
            ))
            if len(results) >= top_k:
                break

        logger.debug(
            f"Custom strategy search completed - strategy: {strategy!r}, results: {len(results)}"
        )
        return results

    async def add_documents(self, documents: Sequence[Document]) -> List[str]:
        """
        Add documents to the store.

        Raises:
            DocumentInsertionError: If the store rejects the documents
        """
        documents = list(documents)
        if not documents:
            return []
        try:
            ids = await self.store.add_documents(documents)
        except DocumentInsertionError:
            raise
        except Exception as e:
            logger.error(f"Failed to add documents: {str(e)}")
            raise DocumentInsertionError(f"failed to add documents: {str(e)}") from e
        return list(ids or [])

    def get_stats(self) -> Dict[str, Any]:
        """Return retriever statistics."""
        return {
            "type": type(self).__name__,
            "strategy": repr(self.strategy),
            "rrf_k": self.config.rrf_rank_constant,
            "use_native_rrf": self.config.use_native_rrf,
            "min_score": self.config.min_score,
            "enable_full_text": self.config.enable_full_text,
        }

    def with_config(self, config: NativeHybridConfig) -> "NativeHybridRetriever":
        """Replace the configuration and return self."""
        self.config = config
        return self

    def with_min_score(self, min_score: float) -> "NativeHybridRetriever":
        """Set the minimum score on a copy of the configuration and return self."""
        self.config = dataclasses.replace(self.config, min_score=min_score)
        return self

    def with_rrf_constant(self, k: int) -> "NativeHybridRetriever":
        """Set the RRF constant, reset the fallback strategy to RRF(k) and return self."""
        if k <= 0:
            k = int(DEFAULT_RRF_K)
        self.config = dataclasses.replace(self.config, rrf_rank_constant=k)
        self.strategy = RRFStrategy(k=k)
        return self


async def native_hybrid_search(
    store: HybridVectorStore,
    query: str,
    top_k: int
) -> List[SearchResult]:
    """
    One-shot store-side hybrid search with default settings (RRF k=60).

    Args:
        store: Vector store providing hybrid_search
        query: Query text
        top_k: Maximum number of results

    Returns:
        Results sorted by fused score descending
    """
    retriever = NativeHybridRetriever(store, RRFStrategy(k=DEFAULT_RRF_K))
    return await retriever.search(query, top_k)
