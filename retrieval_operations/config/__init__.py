"""
Retrieval Configuration Module

This module provides configuration classes for keyword, hybrid and native
hybrid retrieval, including enums and the request validation model.
"""

from .base import FusionMethod, SearchMode
from .keyword import BM25Config
from .hybrid import HybridRetrieverConfig
from .native import NativeHybridConfig
from .validation import SearchParams

__all__ = [
    # Enums
    "FusionMethod",
    "SearchMode",

    # Retriever configs
    "BM25Config",
    "HybridRetrieverConfig",
    "NativeHybridConfig",

    # Validation
    "SearchParams",
]
