"""
Keyword Search Module

This module provides tokenizers and the BM25 keyword retriever.
"""

from .tokenizer import (
    Tokenizer,
    WhitespaceTokenizer,
    SimpleChineseTokenizer,
    UnicodeTokenizer,
    NGramTokenizer,
    CustomTokenizer,
    StopWordsFilter,
    DEFAULT_ENGLISH_STOP_WORDS,
    DEFAULT_CHINESE_STOP_WORDS,
    create_tokenizer,
)
from .bm25 import BM25Index, BM25Retriever, ScoredDocument

__all__ = [
    # Tokenizers
    "Tokenizer",
    "WhitespaceTokenizer",
    "SimpleChineseTokenizer",
    "UnicodeTokenizer",
    "NGramTokenizer",
    "CustomTokenizer",
    "StopWordsFilter",
    "DEFAULT_ENGLISH_STOP_WORDS",
    "DEFAULT_CHINESE_STOP_WORDS",
    "create_tokenizer",

    # BM25
    "BM25Index",
    "BM25Retriever",
    "ScoredDocument",
]
