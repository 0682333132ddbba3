"""
Hybrid Search Module

This module provides hybrid retrieval combining dense vector search with BM25
keyword search, with local or store-side rank fusion and per-search metrics.
"""

from .core.fusion import (
    RankedDocument,
    RankedList,
    FusedDocument,
    FusionStrategy,
    RRFStrategy,
    WeightedStrategy,
    LinearCombinationStrategy,
    convert_to_ranked_list,
    normalize_scores,
    create_fusion_strategy,
)
from .core.engine import HybridRetriever
from .core.native import NativeHybridRetriever, native_hybrid_search
from .utils.metrics import HybridSearchMetrics, SearchStatus

__all__ = [
    "RankedDocument",
    "RankedList",
    "FusedDocument",
    "FusionStrategy",
    "RRFStrategy",
    "WeightedStrategy",
    "LinearCombinationStrategy",
    "convert_to_ranked_list",
    "normalize_scores",
    "create_fusion_strategy",
    "HybridRetriever",
    "NativeHybridRetriever",
    "native_hybrid_search",
    "HybridSearchMetrics",
    "SearchStatus",
]
