"""
Hybrid Search Core Module

This module provides the core functionality for hybrid retrieval: rank fusion
strategies, the local-fusion hybrid retriever and the store-side (native)
hybrid retriever.
"""

from .fusion import (
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
    DEFAULT_RRF_K,
)
from .engine import HybridRetriever
from .native import NativeHybridRetriever, native_hybrid_search

__all__ = [
    # Fusion
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
    "DEFAULT_RRF_K",

    # Retrievers
    "HybridRetriever",
    "NativeHybridRetriever",
    "native_hybrid_search",
]
