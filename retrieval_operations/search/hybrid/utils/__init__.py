"""
Hybrid Search Utilities Module

This module provides metrics and parameter validation utilities for hybrid
retrieval.
"""

from .metrics import HybridSearchMetrics, SearchStatus
from .validation import (
    validate_search_params,
    validate_top_k,
    validate_queries,
    MAX_TOP_K,
)

__all__ = [
    # Metrics
    "HybridSearchMetrics",
    "SearchStatus",

    # Validation
    "validate_search_params",
    "validate_top_k",
    "validate_queries",
    "MAX_TOP_K",
]
