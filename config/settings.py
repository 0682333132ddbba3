"""
Pydantic Settings for Hybrid Retrieval

This module provides strongly-typed configuration settings using Pydantic,
with support for environment variables and YAML configuration files.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_yaml import to_yaml_file, to_yaml_str

from retrieval_operations.config.base import FusionMethod


TOKENIZER_NAMES = ("whitespace", "simple_chinese", "unicode", "ngram")
STOP_WORD_LISTS = ("english", "chinese")


class BM25Settings(BaseSettings):
    """
    BM25 keyword index settings.

    These settings control how documents and queries are tokenized and how
    BM25 scores term frequency and document length:
    - k1 controls term frequency saturation
    - b controls document length normalization
    - the tokenizer must be the same for documents and queries
    """
    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_BM25_", case_sensitive=False)

    k1: float = Field(1.5, gt=0,
                      description="Term frequency saturation (typical range 1.2-2.0)")
    b: float = Field(0.75, ge=0, le=1,
                     description="Length normalization (0 = none, 1 = full)")
    tokenizer: str = Field("whitespace",
                           description="Tokenizer name: whitespace, simple_chinese, unicode or ngram")
    lowercase: bool = Field(True, description="Lowercase tokens")
    min_token_length: int = Field(1, ge=1,
                                  description="Minimum token length (whitespace and unicode tokenizers)")
    ngram_size: int = Field(2, ge=1, description="Window size for the ngram tokenizer")
    stop_words: Optional[Union[str, List[str]]] = Field(
        None, description="Stop words: 'english', 'chinese' or an explicit list"
    )

    @field_validator("tokenizer")
    @classmethod
    def validate_tokenizer(cls, v: str) -> str:
        """Ensure the tokenizer name is known"""
        v = v.lower().strip()
        if v not in TOKENIZER_NAMES:
            raise ValueError(f"tokenizer must be one of {TOKENIZER_NAMES}, got '{v}'")
        return v

    @field_validator("stop_words")
    @classmethod
    def validate_stop_words(cls, v):
        """Ensure a named stop word list is known"""
        if isinstance(v, str):
            v = v.lower().strip()
            if v not in STOP_WORD_LISTS:
                raise ValueError(f"stop_words must be one of {STOP_WORD_LISTS} or a list, got '{v}'")
        return v


class FusionSettings(BaseSettings):
    """
    Rank fusion settings.

    RRF ignores source scores and only uses ranks; the weights apply to the
    weighted and linear methods. A weight left unset falls back to the
    method's default (uniform for weighted, 1.0 for linear).
    """
    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_FUSION_", case_sensitive=False)

    method: FusionMethod = Field(FusionMethod.RRF, description="Fusion method: rrf, weighted or linear")
    rrf_k: int = Field(60, description="RRF constant (values <= 0 fall back to 60)")
    vector_weight: Optional[float] = Field(0.7, ge=0, description="Weight of vector search results")
    keyword_weight: Optional[float] = Field(0.3, ge=0, description="Weight of keyword search results")
    normalize_scores: bool = Field(True, description="Min-max normalize scores before weighting")


class HybridSettings(BaseSettings):
    """
    Hybrid retriever settings.

    These settings control candidate fan-out, filtering and timeouts of the
    local-fusion hybrid retriever.
    """
    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_HYBRID_", case_sensitive=False)

    vector_top_k: int = Field(0, ge=0, description="Vector candidates per search (0 = fan_out_factor * top_k)")
    keyword_top_k: int = Field(0, ge=0, description="Keyword candidates per search (0 = fan_out_factor * top_k)")
    fan_out_factor: int = Field(2, ge=1, description="Candidate multiplier applied to top_k")
    min_score: float = Field(0.0, description="Minimum fused score (0 = no filtering)")
    search_timeout: Optional[float] = Field(None, gt=0, description="Timeout in seconds for a whole search")
    max_batch_size: int = Field(50, ge=1, description="Maximum concurrent searches in batch_search")
    max_metrics_history: int = Field(1000, ge=1, description="Number of search metrics kept in memory")


class NativeSettings(BaseSettings):
    """Settings for store-side (native) hybrid search."""
    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_NATIVE_", case_sensitive=False)

    rrf_rank_constant: int = Field(60, gt=0, description="RRF constant passed to the store")
    use_native_rrf: bool = Field(True, description="Use store-side fusion instead of the local fallback")
    min_score: float = Field(0.0, description="Minimum fused score (0 = no filtering)")
    vector_top_k: int = Field(0, ge=0, description="Candidates requested from the store (0 = 2 * top_k)")


class MilvusSettings(BaseSettings):
    """
    Milvus vector store settings.

    These settings locate the Milvus server and collection used by
    MilvusVectorStore, and enable BM25 full-text search for native hybrid
    search.
    """
    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_MILVUS_", case_sensitive=False)

    host: str = Field("localhost", description="Hostname or IP address of the Milvus server")
    port: str = Field("19530", description="Port number on which Milvus server is listening")
    alias: str = Field("default", description="PyMilvus connection alias")
    collection_name: str = Field("documents", description="Collection holding the documents")
    metric_type: str = Field("COSINE", description="Dense vector metric type")
    search_params: Dict[str, Any] = Field(default_factory=dict,
                                          description="Index search params, e.g. {'ef': 64}")
    enable_full_text: bool = Field(False, description="Whether the collection has a BM25 sparse field")


class LoggingSettings(BaseSettings):
    """Logging settings applied by configure_logging()."""
    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_", case_sensitive=False)

    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    log_format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log record format"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the log level is a standard level name"""
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return v


class RetrievalSettings(BaseSettings):
    """
    Main settings class for hybrid retrieval that consolidates all configuration categories.

    Usage:
        # Load from environment variables and defaults
        settings = RetrievalSettings()

        # Load from YAML file
        settings = RetrievalSettings.from_yaml('config.yaml')

        # Access nested settings
        k1 = settings.bm25.k1
        method = settings.fusion.method
    """
    model_config = SettingsConfigDict(
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    bm25: BM25Settings = Field(default_factory=BM25Settings,
                               description="BM25 keyword index settings")
    fusion: FusionSettings = Field(default_factory=FusionSettings,
                                   description="Rank fusion settings")
    hybrid: HybridSettings = Field(default_factory=HybridSettings,
                                   description="Hybrid retriever settings")
    native: NativeSettings = Field(default_factory=NativeSettings,
                                   description="Store-side hybrid search settings")
    milvus: MilvusSettings = Field(default_factory=MilvusSettings,
                                   description="Milvus vector store settings")
    logging: LoggingSettings = Field(default_factory=LoggingSettings,
                                     description="Logging settings")

    @classmethod
    def from_yaml(cls, yaml_file: Union[str, Path]) -> "RetrievalSettings":
        """Load settings from YAML file"""
        import yaml
        with open(yaml_file, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self) -> str:
        """Dump settings as a YAML string"""
        return to_yaml_str(self)

    def save_yaml(self, yaml_file: Union[str, Path]) -> None:
        """Write settings to a YAML file"""
        to_yaml_file(yaml_file, self)


def load_settings(config_path: Optional[str] = None) -> RetrievalSettings:
    """
    Load settings from file and/or environment variables.

    If config_path is provided and exists, settings are loaded from the YAML
    file; otherwise from environment variables and defaults.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        RetrievalSettings object with loaded configuration

    Example:
        settings = load_settings("/path/to/config.yaml")
    """
    if config_path and os.path.exists(config_path):
        return RetrievalSettings.from_yaml(config_path)
    return RetrievalSettings()


def configure_logging(settings: Optional[RetrievalSettings] = None) -> None:
    """
    Configure root logging from settings.

    Args:
        settings: Settings to apply (loads defaults if None)
    """
    settings = settings or load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.logging.log_level),
        format=settings.logging.log_format,
    )
