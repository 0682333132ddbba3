"""
Search Parameters Validation

This module defines Pydantic models for API-level parameter validation.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .base import FusionMethod, SearchMode


class SearchParams(BaseModel):
    """
    Pydantic model for retrieval request validation.

    This provides a clean interface for API-level parameter validation
    before dispatching to a retriever. Fusion overrides are optional; unset
    fields fall back to the retriever's configuration.
    """
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    query: str = Field(..., description="Query text")
    top_k: int = Field(10, gt=0, le=16384, description="Number of results to return")
    mode: SearchMode = Field(SearchMode.HYBRID, description="Retrieval path to use")
    timeout: Optional[float] = Field(None, gt=0, description="Search timeout in seconds")
    min_score: Optional[float] = Field(None, ge=0, description="Minimum fused score")

    # Fusion overrides for hybrid mode
    fusion_method: Optional[FusionMethod] = Field(None, description="Fusion method override")
    rrf_k: Optional[int] = Field(None, description="RRF constant override")
    vector_weight: Optional[float] = Field(None, ge=0, description="Weight for vector results")
    keyword_weight: Optional[float] = Field(None, ge=0, description="Weight for keyword results")

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        """Strip surrounding whitespace from the query"""
        return v.strip()

    @model_validator(mode="after")
    def validate_fusion_overrides(self) -> "SearchParams":
        """Fusion overrides only apply to hybrid mode"""
        if self.has_fusion_overrides() and self.mode != SearchMode.HYBRID:
            raise ValueError(
                f"Fusion overrides are only valid in hybrid mode, got mode '{self.mode.value}'"
            )
        return self

    def has_fusion_overrides(self) -> bool:
        """Return True if any fusion setting is overridden."""
        return any(
            value is not None
            for value in (self.fusion_method, self.rrf_k, self.vector_weight, self.keyword_weight)
        )
