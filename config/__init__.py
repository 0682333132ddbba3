"""
Configuration Module

This module provides centralized configuration management for hybrid
retrieval:
- BM25 and tokenizer settings
- Fusion method and weights
- Hybrid and native retriever behavior
- Milvus vector store location
- Logging

Settings load from environment variables (RETRIEVAL_ prefix) and YAML files
using Pydantic.
"""

from .settings import (
    RetrievalSettings,
    BM25Settings,
    FusionSettings,
    HybridSettings,
    NativeSettings,
    MilvusSettings,
    LoggingSettings,
    load_settings,
    configure_logging,
)

__all__ = [
    'RetrievalSettings',
    'BM25Settings',
    'FusionSettings',
    'HybridSettings',
    'NativeSettings',
    'MilvusSettings',
    'LoggingSettings',
    'load_settings',
    'configure_logging',
]
