"""
Hybrid Retrieval Configuration

This module defines configuration for the local-fusion hybrid retriever.
"""

from typing import Optional
from dataclasses import dataclass, field

from .base import FusionMethod
from .keyword import BM25Config


@dataclass
class HybridRetrieverConfig:
    """
    Configuration for hybrid retrieval.

    Vector and keyword searches each request fan_out_factor * top_k
    candidates unless vector_top_k / keyword_top_k are set explicitly.
    The weights only apply to the weighted and linear fusion methods.
    """
    fusion_method: FusionMethod = FusionMethod.RRF
    rrf_k: int = 60
    vector_weight: Optional[float] = 0.7
    keyword_weight: Optional[float] = 0.3
    normalize_scores: bool = True

    vector_top_k: int = 0               # 0 = fan_out_factor * top_k
    keyword_top_k: int = 0              # 0 = fan_out_factor * top_k
    fan_out_factor: int = 2

    min_score: float = 0.0              # 0 = no filtering
    search_timeout: Optional[float] = None

    bm25: BM25Config = field(default_factory=BM25Config)

    def __post_init__(self):
        """Validate hybrid retriever configuration"""
        if isinstance(self.fusion_method, str):
            self.fusion_method = FusionMethod(self.fusion_method)

        for name in ("vector_weight", "keyword_weight"):
            weight = getattr(self, name)
            if weight is not None and weight < 0:
                raise ValueError(f"{name} must be non-negative, got {weight}")

        if self.vector_top_k < 0:
            raise ValueError(f"vector_top_k must be non-negative, got {self.vector_top_k}")
        if self.keyword_top_k < 0:
            raise ValueError(f"keyword_top_k must be non-negative, got {self.keyword_top_k}")
        if self.fan_out_factor < 1:
            raise ValueError(f"fan_out_factor must be at least 1, got {self.fan_out_factor}")
        if self.search_timeout is not None and self.search_timeout <= 0:
            raise ValueError(f"search_timeout must be positive, got {self.search_timeout}")

    def weights(self):
        """Return the per-source weight mapping, omitting unset weights."""
        weights = {}
        if self.vector_weight is not None:
            weights["vector"] = self.vector_weight
        if self.keyword_weight is not None:
            weights["keyword"] = self.keyword_weight
        return weights

    def candidate_counts(self, top_k: int):
        """
        Compute how many candidates to request from each side.

        Args:
            top_k: Number of final results requested

        Returns:
            Tuple of (vector_top_k, keyword_top_k)
        """
        vector_k = self.vector_top_k or self.fan_out_factor * top_k
        keyword_k = self.keyword_top_k or self.fan_out_factor * top_k
        return vector_k, keyword_k

    @classmethod
    def from_settings(cls, settings) -> "HybridRetrieverConfig":
        """
        Build a hybrid retriever configuration from application settings.

        Args:
            settings: config.RetrievalSettings instance

        Returns:
            HybridRetrieverConfig instance
        """
        return cls(
            fusion_method=FusionMethod(settings.fusion.method),
            rrf_k=settings.fusion.rrf_k,
            vector_weight=settings.fusion.vector_weight,
            keyword_weight=settings.fusion.keyword_weight,
            normalize_scores=settings.fusion.normalize_scores,
            vector_top_k=settings.hybrid.vector_top_k,
            keyword_top_k=settings.hybrid.keyword_top_k,
            fan_out_factor=settings.hybrid.fan_out_factor,
            min_score=settings.hybrid.min_score,
            search_timeout=settings.hybrid.search_timeout,
            bm25=BM25Config.from_settings(settings.bm25),
        )
