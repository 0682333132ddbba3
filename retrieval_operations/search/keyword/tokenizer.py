"""
Tokenizer Module

This module provides interchangeable tokenization strategies used by the BM25
keyword index: whitespace, single-character Chinese, Unicode run-based and
character n-gram tokenizers, a wrapper for caller-supplied functions, and a
stop-word filter that decorates any other tokenizer.

All tokenizers are pure: the same text always yields the same tokens.
"""

import re
import logging
import unicodedata
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


DEFAULT_ENGLISH_STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "has", "he", "in", "is", "it", "its", "of", "on", "or", "that",
    "the", "to", "was", "will", "with",
})

DEFAULT_CHINESE_STOP_WORDS = frozenset({
    "的", "了", "在", "是", "我", "有", "和", "就", "不", "人",
    "都", "一", "一个", "上", "也", "很", "到", "说", "要", "去",
})

# Anything that is neither a word character nor whitespace
_NON_WORD_PATTERN = re.compile(r"[^\w\s]+")


def _is_han(char: str) -> bool:
    """Return True for CJK unified ideographs (including extensions)."""
    return unicodedata.name(char, "").startswith("CJK UNIFIED IDEOGRAPH")


def _is_letter(char: str) -> bool:
    return unicodedata.category(char).startswith("L")


def _is_number(char: str) -> bool:
    return unicodedata.category(char).startswith("N")


def _is_punctuation(char: str) -> bool:
    return unicodedata.category(char).startswith("P")


class Tokenizer(ABC):
    """
    Abstract base class for tokenizers.

    A tokenizer turns raw text into an ordered list of normalized terms.
    """

    @abstractmethod
    def tokenize(self, text: str) -> List[str]:
        """
        Split text into tokens.

        Args:
            text: Raw input text

        Returns:
            Ordered list of tokens
        """
        pass

    def __call__(self, text: str) -> List[str]:
        return self.tokenize(text)


class WhitespaceTokenizer(Tokenizer):
    """
    Tokenizer that strips punctuation and splits on whitespace.

    Non-word, non-space characters are replaced by a space before splitting,
    so "hello,world" yields two tokens.
    """

    def __init__(self, lowercase: bool = True, min_length: int = 1):
        """
        Initialize the whitespace tokenizer.

        Args:
            lowercase: Lowercase every token
            min_length: Drop tokens shorter than this many characters
        """
        if min_length < 1:
            min_length = 1
        self.lowercase = lowercase
        self.min_length = min_length

    def tokenize(self, text: str) -> List[str]:
        cleaned = _NON_WORD_PATTERN.sub(" ", text)
        tokens = []
        for token in cleaned.split():
            if self.lowercase:
                token = token.lower()
            if len(token) >= self.min_length:
                tokens.append(token)
        return tokens

    def __repr__(self) -> str:
        return f"WhitespaceTokenizer(lowercase={self.lowercase}, min_length={self.min_length})"


class SimpleChineseTokenizer(Tokenizer):
    """
    Single-character tokenizer for Chinese text.

    Every CJK ideograph, letter and digit becomes its own token. This is not a
    dictionary segmenter; multi-character words are split into characters.
    """

    def __init__(self, lowercase: bool = True, include_punctuation: bool = False):
        """
        Initialize the Chinese tokenizer.

        Args:
            lowercase: Lowercase letters
            include_punctuation: Emit punctuation characters as tokens
        """
        self.lowercase = lowercase
        self.include_punctuation = include_punctuation

    def tokenize(self, text: str) -> List[str]:
        tokens = []
        for char in text:
            if char.isspace():
                continue
            if _is_punctuation(char):
                if self.include_punctuation:
                    tokens.append(char)
                continue
            if _is_han(char) or _is_number(char):
                tokens.append(char)
            elif _is_letter(char):
                tokens.append(char.lower() if self.lowercase else char)
        return tokens

    def __repr__(self) -> str:
        return (
            f"SimpleChineseTokenizer(lowercase={self.lowercase}, "
            f"include_punctuation={self.include_punctuation})"
        )


class UnicodeTokenizer(Tokenizer):
    """
    Tokenizer that groups runs of letters, digits and CJK ideographs.

    Unlike SimpleChineseTokenizer, a run of CJK characters collapses into a
    single multi-character token. Any other character ends the current run.
    """

    def __init__(self, lowercase: bool = True, min_length: int = 1):
        if min_length < 1:
            min_length = 1
        self.lowercase = lowercase
        self.min_length = min_length

    def _flush(self, current: List[str], tokens: List[str]) -> None:
        if not current:
            return
        token = "".join(current)
        if self.lowercase:
            token = token.lower()
        if len(token) >= self.min_length:
            tokens.append(token)
        current.clear()

    def tokenize(self, text: str) -> List[str]:
        tokens: List[str] = []
        current: List[str] = []
        for char in text:
            if _is_letter(char) or _is_number(char) or _is_han(char):
                current.append(char)
            else:
                self._flush(current, tokens)
        self._flush(current, tokens)
        return tokens

    def __repr__(self) -> str:
        return f"UnicodeTokenizer(lowercase={self.lowercase}, min_length={self.min_length})"


class NGramTokenizer(Tokenizer):
    """
    Character n-gram tokenizer.

    Spaces are removed and the text lowercased, then every window of n
    consecutive characters is emitted. Text shorter than n yields no tokens.
    """

    def __init__(self, n: int = 2):
        """
        Initialize the n-gram tokenizer.

        Args:
            n: Window size; values below 1 fall back to 2
        """
        if n < 1:
            n = 2
        self.n = n

    def tokenize(self, text: str) -> List[str]:
        chars = text.replace(" ", "").lower()
        if len(chars) < self.n:
            return []
        return [chars[i:i + self.n] for i in range(len(chars) - self.n + 1)]

    def __repr__(self) -> str:
        return f"NGramTokenizer(n={self.n})"


class CustomTokenizer(Tokenizer):
    """Tokenizer wrapping a caller-supplied function without further processing."""

    def __init__(self, func: Callable[[str], List[str]]):
        if not callable(func):
            raise ValueError("Custom tokenizer requires a callable")
        self.func = func

    def tokenize(self, text: str) -> List[str]:
        return list(self.func(text))

    def __repr__(self) -> str:
        return f"CustomTokenizer(func={getattr(self.func, '__name__', repr(self.func))})"


class StopWordsFilter(Tokenizer):
    """
    Tokenizer decorator that removes stop words.

    The base tokenizer runs first; tokens whose lowercase form is in the stop
    word set are dropped. Stop words are compared case-insensitively.
    """

    def __init__(self, base: Tokenizer, stop_words: Optional[Iterable[str]] = None):
        """
        Initialize the stop word filter.

        Args:
            base: Tokenizer producing the candidate tokens
            stop_words: Stop words to drop (defaults to the English list)
        """
        if base is None:
            raise ValueError("StopWordsFilter requires a base tokenizer")
        if stop_words is None:
            stop_words = DEFAULT_ENGLISH_STOP_WORDS
        self.base = base
        self.stop_words = frozenset(word.lower() for word in stop_words)

    def tokenize(self, text: str) -> List[str]:
        return [
            token for token in self.base.tokenize(text)
            if token.lower() not in self.stop_words
        ]

    def __repr__(self) -> str:
        return f"StopWordsFilter(base={self.base!r}, stop_words={len(self.stop_words)})"


_TOKENIZER_TYPES = {
    "whitespace": WhitespaceTokenizer,
    "simple_chinese": SimpleChineseTokenizer,
    "unicode": UnicodeTokenizer,
    "ngram": NGramTokenizer,
}

_STOP_WORD_LISTS = {
    "english": DEFAULT_ENGLISH_STOP_WORDS,
    "chinese": DEFAULT_CHINESE_STOP_WORDS,
}


def create_tokenizer(
    name: str = "whitespace",
    stop_words: Optional[Union[str, Iterable[str]]] = None,
    **options
) -> Tokenizer:
    """
    Create a tokenizer by name.

    Args:
        name: One of "whitespace", "simple_chinese", "unicode" or "ngram"
        stop_words: Optional "english", "chinese" or an explicit word list;
            when given, the tokenizer is wrapped in a StopWordsFilter
        **options: Keyword arguments passed to the tokenizer constructor

    Returns:
        Configured tokenizer

    Raises:
        ValueError: If the tokenizer or stop word list name is unknown
    """
    key = name.lower().strip()
    if key not in _TOKENIZER_TYPES:
        raise ValueError(
            f"Unknown tokenizer '{name}', expected one of {sorted(_TOKENIZER_TYPES)}"
        )
    tokenizer: Tokenizer = _TOKENIZER_TYPES[key](**options)

    if stop_words is not None:
        if isinstance(stop_words, str):
            list_name = stop_words.lower().strip()
            if list_name not in _STOP_WORD_LISTS:
                raise ValueError(
                    f"Unknown stop word list '{stop_words}', "
                    f"expected one of {sorted(_STOP_WORD_LISTS)}"
                )
            stop_words = _STOP_WORD_LISTS[list_name]
        tokenizer = StopWordsFilter(tokenizer, stop_words)

    logger.debug(f"Created tokenizer: {tokenizer!r}")
    return tokenizer
