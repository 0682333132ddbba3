"""
Native Hybrid Configuration

This module defines configuration for retrievers that delegate fusion to a
vector store capable of server-side hybrid search.
"""

from dataclasses import dataclass


@dataclass
class NativeHybridConfig:
    """
    Configuration for store-side hybrid retrieval.

    Attributes:
        rrf_rank_constant: RRF constant passed through to the store
        use_native_rrf: Use the store's hybrid search; when False, searches
            run the vector half locally and fuse with the retriever's strategy
        min_score: Drop results scoring below this value (0 = no filtering)
        vector_top_k: Candidates requested from the store (0 = 2 * top_k)
        enable_full_text: Whether the store indexes a full-text field
    """
    rrf_rank_constant: int = 60
    use_native_rrf: bool = True
    min_score: float = 0.0
    vector_top_k: int = 0
    enable_full_text: bool = False

    def __post_init__(self):
        """Validate native hybrid configuration"""
        if self.rrf_rank_constant <= 0:
            raise ValueError(f"rrf_rank_constant must be positive, got {self.rrf_rank_constant}")
        if self.vector_top_k < 0:
            raise ValueError(f"vector_top_k must be non-negative, got {self.vector_top_k}")

    @classmethod
    def from_settings(cls, settings) -> "NativeHybridConfig":
        """
        Build a native hybrid configuration from application settings.

        Args:
            settings: config.RetrievalSettings instance

        Returns:
            NativeHybridConfig instance
        """
        return cls(
            rrf_rank_constant=settings.native.rrf_rank_constant,
            use_native_rrf=settings.native.use_native_rrf,
            min_score=settings.native.min_score,
            vector_top_k=settings.native.vector_top_k,
            enable_full_text=settings.milvus.enable_full_text,
        )
