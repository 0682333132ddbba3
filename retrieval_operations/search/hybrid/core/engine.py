"""
Hybrid Retrieval Engine

This module provides the hybrid retriever, which ranks documents by running a
vector store similarity search and a BM25 keyword search concurrently and
merging both ranked lists with a fusion strategy.

A search either returns fused results from both sides or fails as a whole;
there is no partial-success mode and no silent fallback to one side.
"""

import time
import asyncio
import hashlib
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ....config.hybrid import HybridRetrieverConfig
from ....core.base import BaseRetriever, Document, SearchResult
from ....core.retrieval_exceptions import (
    DocumentInsertionError,
    FusionError,
    HybridSearchError,
    InvalidSearchParametersError,
    KeywordSearchError,
    RetrieverConfigurationError,
    SearchTimeoutError,
    VectorSearchError,
)
from ....vectorstores.base import DocumentWithScore, VectorStore
from ...keyword.bm25 import BM25Retriever, ScoredDocument
from ..utils.metrics import HybridSearchMetrics, SearchStatus
from ..utils.validation import validate_queries, validate_search_params
from .fusion import (
    FusedDocument,
    FusionStrategy,
    convert_to_ranked_list,
    create_fusion_strategy,
)

logger = logging.getLogger(__name__)

VECTOR_SOURCE = "vector"
KEYWORD_SOURCE = "keyword"


class HybridRetriever(BaseRetriever):
    """
    Hybrid lexical + vector retriever with local fusion.

    Features:
    - Concurrent vector and BM25 searches joined with asyncio.gather
    - RRF, weighted and linear fusion strategies
    - Optional whole-search timeout that cancels both sides
    - Minimum score filtering and top-k truncation
    - Per-search metrics with bounded history
    - Batch search and search explanation
    """

    def __init__(
        self,
        vector_store: VectorStore,
        documents: Sequence[Document],
        config: Optional[HybridRetrieverConfig] = None,
        fusion_strategy: Optional[FusionStrategy] = None,
        metrics_callback: Optional[Callable[[HybridSearchMetrics], None]] = None,
        max_metrics_history: int = 1000,
        max_batch_size: int = 50
    ):
        """
        Initialize the hybrid retriever.

        Documents are matched across both sides by document_key, so the
        BM25 corpus must be the same documents (same metadata["id"], or
        no id on either side) that the vector store holds.

        Args:
            vector_store: Vector store providing similarity_search_with_score
            documents: Documents used to build the BM25 index (must not be empty)
            config: Retriever configuration (uses defaults if not provided)
            fusion_strategy: Fusion strategy overriding the configured method
            metrics_callback: Optional callback invoked with each search's metrics
            max_metrics_history: Number of search metrics kept in memory
            max_batch_size: Maximum number of concurrent searches in batch_search

        Raises:
            RetrieverConfigurationError: If the vector store or documents are missing
        """
        if vector_store is None:
            raise RetrieverConfigurationError("Vector store is required")
        if not hasattr(vector_store, "similarity_search_with_score"):
            raise RetrieverConfigurationError(
                f"Vector store {type(vector_store).__name__} does not support similarity_search_with_score"
            )
        if not documents:
            raise RetrieverConfigurationError("Documents are required for BM25 indexing")
        if max_batch_size < 1:
            raise RetrieverConfigurationError(f"max_batch_size must be at least 1, got {max_batch_size}")

        self.config = config or HybridRetrieverConfig()
        self.vector_store = vector_store
        self.keyword_retriever = BM25Retriever(documents, self.config.bm25)
        self.fusion_strategy = fusion_strategy or create_fusion_strategy(
            self.config.fusion_method,
            rrf_k=self.config.rrf_k,
            weights=self.config.weights(),
            normalize=self.config.normalize_scores,
        )
        self.metrics_callback = metrics_callback
        self.max_metrics_history = max_metrics_history
        self.max_batch_size = max_batch_size

        self._metrics_history: List[HybridSearchMetrics] = []
        self._metrics_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

        logger.info(
            f"HybridRetriever initialized - "
            f"documents: {self.keyword_retriever.get_document_count()}, "
            f"strategy: {self.fusion_strategy!r}, "
            f"min_score: {self.config.min_score}, "
            f"timeout: {self.config.search_timeout}"
        )

    async def _vector_search(self, query: str, k: int) -> Tuple[List[DocumentWithScore], float]:
        start_time = time.time()
        try:
            results = await self.vector_store.similarity_search_with_score(query, k)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise VectorSearchError(f"vector search failed: {str(e)}") from e
        return list(results), (time.time() - start_time) * 1000

    async def _keyword_search(self, query: str, k: int) -> Tuple[List[ScoredDocument], float]:
        start_time = time.time()
        loop = asyncio.get_event_loop()
        try:
            results = await loop.run_in_executor(None, self.keyword_retriever.search, query, k)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise KeywordSearchError(f"keyword search failed: {str(e)}") from e
        return results, (time.time() - start_time) * 1000

    async def _run_searches(
        self,
        query: str,
        vector_k: int,
        keyword_k: int,
        timeout: Optional[float]
    ):
        """
        Run both searches concurrently and wait for both.

        If either side fails, the other is cancelled and the failure is
        raised; when both sides have already failed, the vector failure is
        the one reported. On timeout or caller cancellation both sides are
        cancelled.
        """
        vector_task = asyncio.ensure_future(self._vector_search(query, vector_k))
        keyword_task = asyncio.ensure_future(self._keyword_search(query, keyword_k))
        tasks = (vector_task, keyword_task)

        try:
            return await asyncio.wait_for(asyncio.gather(*tasks), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SearchTimeoutError(
                f"Hybrid search exceeded timeout of {timeout}s"
            ) from e
        except HybridSearchError as e:
            failures = [
                task.exception() for task in tasks
                if task.done() and not task.cancelled() and task.exception() is not None
            ]
            if failures and failures[0] is not e:
                raise failures[0]
            raise
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
                elif not task.cancelled():
                    # Mark the exception of the side not reported as retrieved
                    task.exception()

    def _filter_and_truncate(
        self,
        fused: List[FusedDocument],
        top_k: int,
        min_score: float
    ) -> List[SearchResult]:
        results = []
        for doc in fused:
            if min_score > 0 and doc.score < min_score:
                continue
            results.append(SearchResult(
                document=doc.document,
                score=doc.score,
                vector_score=doc.source_scores.get(VECTOR_SOURCE, 0.0),
                keyword_score=doc.source_scores.get(KEYWORD_SOURCE, 0.0),
                vector_rank=doc.source_ranks.get(VECTOR_SOURCE, 0),
                keyword_rank=doc.source_ranks.get(KEYWORD_SOURCE, 0),
            ))
            if len(results) >= top_k:
                break
        return results

    async def search(
        self,
        query: str,
        top_k: int,
        timeout: Optional[float] = None,
        fusion_strategy: Optional[FusionStrategy] = None,
        min_score: Optional[float] = None
    ) -> List[SearchResult]:
        """
        Perform hybrid search.

        Args:
            query: Query text
            top_k: Maximum number of results to return
            timeout: Timeout in seconds for the whole search
                (defaults to config.search_timeout)
            fusion_strategy: Strategy overriding the retriever's for this call
            min_score: Minimum fused score overriding config.min_score

        Returns:
            Results sorted by fused score descending

        Raises:
            InvalidSearchParametersError: If parameters are invalid
            VectorSearchError: If the vector store search fails
            KeywordSearchError: If the BM25 search fails
            SearchTimeoutError: If the search exceeds the timeout
            FusionError: If fusion fails
        """
        timeout = timeout if timeout is not None else self.config.search_timeout
        validate_search_params(query, top_k, timeout)

        strategy = fusion_strategy or self.fusion_strategy
        min_score = self.config.min_score if min_score is None else min_score
        vector_k, keyword_k = self.config.candidate_counts(top_k)

        start_time = time.time()
        metrics = HybridSearchMetrics(
            query_hash=hashlib.md5(query.encode()).hexdigest()[:8],
            fusion_method=strategy.name,
        )

        try:
            search_start = time.time()
            (vector_hits, vector_ms), (keyword_hits, keyword_ms) = await self._run_searches(
                query, vector_k, keyword_k, timeout
            )
            metrics.search_time_ms = (time.time() - search_start) * 1000
            metrics.vector_search_time_ms = vector_ms
            metrics.keyword_search_time_ms = keyword_ms
            metrics.vector_results = len(vector_hits)
            metrics.keyword_results = len(keyword_hits)

            ranked_lists = [
                convert_to_ranked_list(
                    VECTOR_SOURCE,
                    [hit.document for hit in vector_hits],
                    [hit.score for hit in vector_hits],
                ),
                convert_to_ranked_list(
                    KEYWORD_SOURCE,
                    [hit.document for hit in keyword_hits],
                    [hit.score for hit in keyword_hits],
                ),
            ]

            fusion_start = time.time()
            fused = strategy.fuse(ranked_lists)
            metrics.fusion_time_ms = (time.time() - fusion_start) * 1000
            metrics.fused_results = len(fused)

            results = self._filter_and_truncate(fused, top_k, min_score)
            metrics.filtered_results = sum(
                1 for doc in fused if min_score > 0 and doc.score < min_score
            )
            metrics.results_count = len(results)

            logger.info(
                f"Hybrid search completed - results: {len(results)}, "
                f"vector: {len(vector_hits)}, keyword: {len(keyword_hits)}, "
                f"fused: {len(fused)}, "
                f"search: {metrics.search_time_ms:.2f}ms, "
                f"fusion: {metrics.fusion_time_ms:.2f}ms"
            )
            return results

        except HybridSearchError as e:
            metrics.status = SearchStatus.FAILURE
            metrics.failed_source = e.source
            metrics.error_message = str(e)
            logger.error(f"Hybrid search failed on {e.source} side: {str(e)}")
            raise

        except SearchTimeoutError as e:
            metrics.status = SearchStatus.TIMEOUT
            metrics.error_message = str(e)
            logger.error(str(e))
            raise

        except asyncio.CancelledError:
            metrics.status = SearchStatus.CANCELLED
            logger.warning("Hybrid search cancelled")
            raise

        except FusionError as e:
            metrics.status = SearchStatus.FAILURE
            metrics.error_message = str(e)
            logger.error(f"Fusion failed: {str(e)}")
            raise

        except Exception as e:
            metrics.status = SearchStatus.FAILURE
            metrics.error_message = str(e)
            error_msg = f"Hybrid search failed: {str(e)}"
            logger.error(error_msg, exc_info=True)
            raise HybridSearchError(error_msg) from e

        finally:
            metrics.total_time_ms = (time.time() - start_time) * 1000
            await self._record_metrics(metrics)

    async def _record_metrics(self, metrics: HybridSearchMetrics) -> None:
        async with self._metrics_lock:
            self._metrics_history.append(metrics)
            if len(self._metrics_history) > self.max_metrics_history:
                self._metrics_history = self._metrics_history[-self.max_metrics_history:]

        if self.metrics_callback:
            try:
                self.metrics_callback(metrics)
            except Exception as e:
                logger.error(f"Metrics callback failed: {str(e)}")

    async def search_vector_only(self, query: str, top_k: int) -> List[SearchResult]:
        """
        Perform a vector search without fusion.

        Raises:
            VectorSearchError: If the vector store search fails
        """
        validate_search_params(query, top_k)
        hits, elapsed_ms = await self._vector_search(query, top_k)
        logger.debug(f"Vector-only search returned {len(hits)} results in {elapsed_ms:.2f}ms")

        return [
            SearchResult(
                document=hit.document,
                score=hit.score,
                vector_score=hit.score,
                vector_rank=rank,
            )
            for rank, hit in enumerate(hits, start=1)
        ]

    async def search_keyword_only(self, query: str, top_k: int) -> List[SearchResult]:
        """
        Perform a BM25 search without fusion.

        Raises:
            KeywordSearchError: If the BM25 search fails
        """
        validate_search_params(query, top_k)
        hits, elapsed_ms = await self._keyword_search(query, top_k)
        logger.debug(f"Keyword-only search returned {len(hits)} results in {elapsed_ms:.2f}ms")

        return [
            SearchResult(
                document=hit.document,
                score=hit.score,
                keyword_score=hit.score,
                keyword_rank=rank,
            )
            for rank, hit in enumerate(hits, start=1)
        ]

    async def add_documents(self, documents: Sequence[Document]) -> List[str]:
        """
        Add documents to the vector store and the BM25 index.

        The vector store is written first; if it fails, the BM25 index is left
        unchanged and the error is raised. Writers are serialized. Both sides
        index the caller's documents as given, so ids generated by the store
        never change a document's merge key.

        Args:
            documents: Documents to add

        Returns:
            Ids assigned by the vector store

        Raises:
            DocumentInsertionError: If the vector store rejects the documents
        """
        documents = list(documents)
        if not documents:
            return []

        async with self._write_lock:
            try:
                ids = await self.vector_store.add_documents(documents)
            except DocumentInsertionError:
                raise
            except Exception as e:
                logger.error(f"Failed to add documents to vector store: {str(e)}")
                raise DocumentInsertionError(
                    f"failed to add documents to vector store: {str(e)}"
                ) from e

            self.keyword_retriever.add_documents(documents)

        logger.info(
            f"Added {len(documents)} documents - "
            f"total indexed: {self.keyword_retriever.get_document_count()}"
        )
        return list(ids or [])

    def get_stats(self) -> Dict[str, Any]:
        """
        Get retriever statistics.

        Returns:
            Dictionary with strategy, weights, BM25 index stats and min_score
        """
        return {
            "strategy": repr(self.fusion_strategy),
            "vector_weight": self.config.vector_weight,
            "keyword_weight": self.config.keyword_weight,
            "bm25_stats": self.keyword_retriever.get_index_stats(),
            "min_score": self.config.min_score,
        }

    async def batch_search(self, queries: Sequence[str], top_k: int) -> List[List[SearchResult]]:
        """
        Run several hybrid searches, at most max_batch_size at a time.

        Args:
            queries: Query texts
            top_k: Maximum number of results per query

        Returns:
            One result list per query, in input order

        Raises:
            InvalidSearchParametersError: If the batch is empty or invalid
            HybridSearchError: If any query fails
        """
        validate_queries(queries)

        results = []
        for i in range(0, len(queries), self.max_batch_size):
            batch = queries[i:i + self.max_batch_size]
            batch_results = await asyncio.gather(
                *[self.search(query, top_k) for query in batch],
                return_exceptions=True
            )

            for j, result in enumerate(batch_results):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, InvalidSearchParametersError):
                    raise result
                if isinstance(result, Exception):
                    logger.error(f"Query {i + j} failed in batch: {str(result)}")
                    raise HybridSearchError(
                        f"Batch search failed at index {i + j}: {str(result)}",
                        source=getattr(result, "source", None),
                    ) from result
                results.append(result)

        return results

    async def explain_search(self, query: str, top_k: int) -> Dict[str, Any]:
        """
        Explain a hybrid search with a per-stage breakdown.

        Args:
            query: Query text
            top_k: Maximum number of results

        Returns:
            Dictionary with tokens, per-term BM25 contributions, source ranks
            and fused scores of the returned documents
        """
        start_time = time.time()
        tokens = self.keyword_retriever.tokenize(query)
        keyword_hits = self.keyword_retriever.search(query, self.config.candidate_counts(top_k)[1])

        explanation: Dict[str, Any] = {
            "query": query,
            "strategy": repr(self.fusion_strategy),
            "stages": {
                "tokenization": {
                    "tokens": tokens,
                    "token_count": len(tokens),
                },
                "keyword": {
                    "count": len(keyword_hits),
                    "term_contributions": [
                        {"score": hit.score, "terms": dict(hit.term_info)}
                        for hit in keyword_hits[:top_k]
                    ],
                },
            },
            "timing": {},
        }

        try:
            results = await self.search(query, top_k)
            explanation["results"] = [
                {
                    "score": result.score,
                    "vector_score": result.vector_score,
                    "keyword_score": result.keyword_score,
                    "vector_rank": result.vector_rank,
                    "keyword_rank": result.keyword_rank,
                    "content": result.document.content[:100],
                }
                for result in results
            ]
        except Exception as e:
            explanation["error"] = str(e)
            logger.error(f"Search explanation failed: {str(e)}")

        explanation["timing"]["total_ms"] = (time.time() - start_time) * 1000
        return explanation

    async def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of search metrics.

        Returns:
            Dictionary with success rates, average timings and result counts
        """
        async with self._metrics_lock:
            if not self._metrics_history:
                return {"message": "No metrics available"}

            history = list(self._metrics_history)

        total_searches = len(history)
        status_counts = defaultdict(int)
        failed_sources = defaultdict(int)
        for m in history:
            status_counts[m.status.value] += 1
            if m.failed_source:
                failed_sources[m.failed_source] += 1

        def average(attr: str) -> float:
            return round(sum(getattr(m, attr) for m in history) / total_searches, 2)

        successful = status_counts[SearchStatus.SUCCESS.value]
        return {
            "total_searches": total_searches,
            "successful": successful,
            "failed": status_counts[SearchStatus.FAILURE.value],
            "timeouts": status_counts[SearchStatus.TIMEOUT.value],
            "cancelled": status_counts[SearchStatus.CANCELLED.value],
            "success_rate": successful / total_searches,
            "failed_sources": dict(failed_sources),
            "avg_vector_search_time_ms": average("vector_search_time_ms"),
            "avg_keyword_search_time_ms": average("keyword_search_time_ms"),
            "avg_search_time_ms": average("search_time_ms"),
            "avg_fusion_time_ms": average("fusion_time_ms"),
            "avg_total_time_ms": average("total_time_ms"),
            "avg_results": average("results_count"),
            "bm25_stats": self.keyword_retriever.get_index_stats(),
        }
