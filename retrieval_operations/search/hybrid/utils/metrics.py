"""
Metrics Module

This module provides metrics tracking for hybrid retrieval operations,
including status enumerations and per-search metrics dataclasses.
"""

import time
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


class SearchStatus(Enum):
    """
    Enumeration of search operation states.

    Used to track the final status of search operations for monitoring
    purposes.
    """
    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass
class HybridSearchMetrics:
    """
    Metrics for a single hybrid search.

    Attributes:
        query_hash: Hash of the query for identification
        vector_search_time_ms: Time taken by the vector store search
        keyword_search_time_ms: Time taken by the BM25 search
        search_time_ms: Wall time of the concurrent search stage
        fusion_time_ms: Time taken for result fusion
        total_time_ms: Total end-to-end time
        vector_results: Number of candidates from vector search
        keyword_results: Number of candidates from keyword search
        fused_results: Number of distinct documents after fusion
        filtered_results: Number of fused documents dropped by min_score
        results_count: Number of results returned
        status: Final status of the search operation
        failed_source: Which side failed ("vector" or "keyword"), if any
        error_message: Error message if search failed
        fusion_method: Name of the fusion strategy used
        search_mode: Retrieval path used
        timestamp: Unix timestamp when search was initiated
    """
    query_hash: str
    vector_search_time_ms: float = 0.0
    keyword_search_time_ms: float = 0.0
    search_time_ms: float = 0.0
    fusion_time_ms: float = 0.0
    total_time_ms: float = 0.0
    vector_results: int = 0
    keyword_results: int = 0
    fused_results: int = 0
    filtered_results: int = 0
    results_count: int = 0
    status: SearchStatus = SearchStatus.SUCCESS
    failed_source: Optional[str] = None
    error_message: Optional[str] = None
    fusion_method: str = ""
    search_mode: str = "hybrid"
    timestamp: float = field(default_factory=time.time)

    def to_dict(self):
        """
        Convert metrics to dictionary format.

        Returns:
            Dictionary representation of metrics
        """
        return {
            "query_hash": self.query_hash,
            "vector_search_time_ms": round(self.vector_search_time_ms, 2),
            "keyword_search_time_ms": round(self.keyword_search_time_ms, 2),
            "search_time_ms": round(self.search_time_ms, 2),
            "fusion_time_ms": round(self.fusion_time_ms, 2),
            "total_time_ms": round(self.total_time_ms, 2),
            "vector_results": self.vector_results,
            "keyword_results": self.keyword_results,
            "fused_results": self.fused_results,
            "filtered_results": self.filtered_results,
            "results_count": self.results_count,
            "status": self.status.value,
            "failed_source": self.failed_source,
            "error_message": self.error_message,
            "fusion_method": self.fusion_method,
            "search_mode": self.search_mode,
            "timestamp": self.timestamp,
        }
