"""
Base Retrieval Configuration

This module defines the enums shared by retrieval configurations.
"""

from enum import Enum


class FusionMethod(str, Enum):
    """Enumeration of supported rank fusion methods"""
    RRF = "rrf"           # Reciprocal Rank Fusion
    WEIGHTED = "weighted" # Min-max normalized weighted sum
    LINEAR = "linear"     # Raw weighted sum, no normalization


class SearchMode(str, Enum):
    """Enumeration of retrieval paths a request can take"""
    HYBRID = "hybrid"     # Vector + BM25 with local fusion
    VECTOR = "vector"     # Vector store only
    KEYWORD = "keyword"   # BM25 only
    NATIVE = "native"     # Store-side hybrid fusion
