"""
Search Implementations Module

This module contains the retrieval implementations: BM25 keyword search and
hybrid search with rank fusion.
"""

# Import keyword search components
from .keyword import (
    BM25Retriever,
    ScoredDocument,
    Tokenizer,
    create_tokenizer,
)

# Import hybrid search components
from .hybrid import (
    HybridRetriever,
    NativeHybridRetriever,
    native_hybrid_search,
    FusionStrategy,
    RRFStrategy,
    WeightedStrategy,
    LinearCombinationStrategy,
    HybridSearchMetrics,
    SearchStatus,
)

__all__ = [
    # Keyword search
    "BM25Retriever",
    "ScoredDocument",
    "Tokenizer",
    "create_tokenizer",

    # Hybrid search
    "HybridRetriever",
    "NativeHybridRetriever",
    "native_hybrid_search",
    "FusionStrategy",
    "RRFStrategy",
    "WeightedStrategy",
    "LinearCombinationStrategy",
    "HybridSearchMetrics",
    "SearchStatus",
]
