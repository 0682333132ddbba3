"""
Keyword Search Configuration

This module defines configuration for the BM25 keyword index.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class BM25Config:
    """
    Configuration for BM25 ranking.

    Attributes:
        k1: Term frequency saturation parameter (typical range: 1.2-2.0)
        b: Length normalization parameter (0 = no normalization, 1 = full normalization)
        tokenizer: Tokenizer used for both documents and queries
            (defaults to a lowercasing whitespace tokenizer)
    """
    k1: float = 1.5
    b: float = 0.75
    tokenizer: Optional[Any] = None

    def __post_init__(self):
        """Validate BM25 configuration parameters."""
        if self.k1 <= 0:
            raise ValueError(f"k1 must be positive, got {self.k1}")
        if not 0 <= self.b <= 1:
            raise ValueError(f"b must be between 0 and 1, got {self.b}")

        if self.tokenizer is None:
            # Import here to avoid circular dependencies
            from ..search.keyword.tokenizer import WhitespaceTokenizer
            self.tokenizer = WhitespaceTokenizer()
        elif not hasattr(self.tokenizer, "tokenize"):
            raise ValueError(
                f"tokenizer must provide a tokenize() method, got {type(self.tokenizer).__name__}"
            )

    @classmethod
    def from_settings(cls, settings) -> "BM25Config":
        """
        Build a BM25 configuration from application settings.

        Args:
            settings: A BM25Settings group from config.RetrievalSettings

        Returns:
            BM25Config instance
        """
        from ..search.keyword.tokenizer import create_tokenizer

        options = {}
        if settings.tokenizer == "ngram":
            options["n"] = settings.ngram_size
        elif settings.tokenizer in ("whitespace", "unicode"):
            options["lowercase"] = settings.lowercase
            options["min_length"] = settings.min_token_length
        else:
            options["lowercase"] = settings.lowercase

        tokenizer = create_tokenizer(
            settings.tokenizer,
            stop_words=settings.stop_words,
            **options
        )
        return cls(k1=settings.k1, b=settings.b, tokenizer=tokenizer)
