"""
BM25 Keyword Retriever

This module provides an in-memory BM25 (Best Matching 25) inverted index and
a retriever answering ranked keyword queries over a document collection.

Index snapshots are immutable: adding documents produces a new snapshot that
replaces the previous one in a single assignment, so searches running
concurrently with an update always see a consistent index.
"""

import math
import time
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...config.keyword import BM25Config
from ...core.base import Document

logger = logging.getLogger(__name__)


@dataclass
class ScoredDocument:
    """
    A document matched by a keyword query.

    Attributes:
        document: The matched document
        score: Total BM25 score (always positive)
        term_info: Score contribution of each matching query term
    """
    document: Document
    score: float
    term_info: Dict[str, float] = field(default_factory=dict)


class BM25Index:
    """
    Immutable BM25 index snapshot.

    Invariants:
        avg_doc_length == sum(doc_lengths) / total_docs when total_docs > 0
        doc_frequency[t] == number of documents whose term_frequency has t
    """

    __slots__ = (
        "doc_frequency",
        "doc_lengths",
        "avg_doc_length",
        "total_docs",
        "total_length",
        "inverted_index",
        "term_frequency",
    )

    def __init__(
        self,
        doc_frequency: Dict[str, int],
        doc_lengths: List[int],
        total_length: int,
        inverted_index: Dict[str, List[int]],
        term_frequency: List[Dict[str, int]]
    ):
        self.doc_frequency = doc_frequency
        self.doc_lengths = doc_lengths
        self.total_length = total_length
        self.inverted_index = inverted_index
        self.term_frequency = term_frequency
        self.total_docs = len(doc_lengths)
        self.avg_doc_length = (
            total_length / self.total_docs if self.total_docs > 0 else 0.0
        )

    @classmethod
    def empty(cls) -> "BM25Index":
        return cls({}, [], 0, {}, [])

    @classmethod
    def build(cls, documents: Sequence[Document], tokenizer) -> "BM25Index":
        """
        Build an index from scratch.

        Args:
            documents: Documents to index, in order
            tokenizer: Tokenizer applied to each document's content

        Returns:
            New index snapshot
        """
        return cls.empty().extend(documents, tokenizer)

    def extend(self, documents: Sequence[Document], tokenizer) -> "BM25Index":
        """
        Return a new snapshot with documents appended.

        The receiver is not modified. Only the postings of terms that occur in
        the new documents are copied; the result is identical to rebuilding
        the index over the combined collection.

        Args:
            documents: Documents to append
            tokenizer: Tokenizer applied to each document's content

        Returns:
            New index snapshot
        """
        doc_frequency = dict(self.doc_frequency)
        doc_lengths = list(self.doc_lengths)
        inverted_index = dict(self.inverted_index)
        term_frequency = list(self.term_frequency)
        total_length = self.total_length
        copied_postings = set()

        for doc in documents:
            doc_id = len(doc_lengths)
            tokens = tokenizer.tokenize(doc.content)
            counts = Counter(token.lower() for token in tokens)

            doc_lengths.append(len(tokens))
            total_length += len(tokens)
            term_frequency.append(dict(counts))

            for term in counts:
                if term not in copied_postings:
                    inverted_index[term] = list(inverted_index.get(term, ()))
                    copied_postings.add(term)
                inverted_index[term].append(doc_id)
                doc_frequency[term] = doc_frequency.get(term, 0) + 1

        return BM25Index(
            doc_frequency,
            doc_lengths,
            total_length,
            inverted_index,
            term_frequency,
        )

    def idf(self, term: str) -> float:
        """
        Inverse document frequency of a term.

        IDF = ln((N - df + 0.5) / (df + 0.5) + 1), always positive.
        """
        df = self.doc_frequency.get(term, 0)
        return math.log((self.total_docs - df + 0.5) / (df + 0.5) + 1)

    def score(
        self,
        query_terms: Sequence[str],
        doc_id: int,
        k1: float,
        b: float
    ) -> Tuple[float, Dict[str, float]]:
        """
        Compute the BM25 score of one document.

        Repeated query terms contribute once per occurrence.

        Args:
            query_terms: Lowercased query terms
            doc_id: Index of the document
            k1: Term frequency saturation parameter
            b: Length normalization parameter

        Returns:
            Tuple of (total score, per-term contributions)
        """
        score = 0.0
        term_info: Dict[str, float] = {}
        term_counts = self.term_frequency[doc_id]
        length_ratio = self.doc_lengths[doc_id] / self.avg_doc_length

        for term in query_terms:
            tf = term_counts.get(term, 0)
            if tf == 0:
                continue
            numerator = tf * (k1 + 1)
            denominator = tf + k1 * (1 - b + b * length_ratio)
            term_score = self.idf(term) * (numerator / denominator)
            score += term_score
            term_info[term] = term_score

        return score, term_info


class BM25Retriever:
    """
    In-memory BM25 keyword retriever.

    The retriever owns a copy of its document collection and an index built
    with the configured tokenizer. Searches read the current index snapshot
    and are safe to run concurrently; add_documents() swaps in a new snapshot
    but concurrent writers must be serialized by the caller.
    """

    def __init__(
        self,
        documents: Optional[Sequence[Document]] = None,
        config: Optional[BM25Config] = None
    ):
        """
        Build a BM25 retriever.

        Args:
            documents: Initial documents to index
            config: BM25 configuration (uses defaults if not provided)
        """
        self.config = config or BM25Config()
        self.tokenizer = self.config.tokenizer
        documents = tuple(documents or ())

        start_time = time.time()
        # (documents, index) pair, replaced as a unit
        self._state: Tuple[Tuple[Document, ...], BM25Index] = (
            documents,
            BM25Index.build(documents, self.tokenizer),
        )
        index = self._state[1]

        logger.info(
            f"BM25Retriever initialized - "
            f"documents: {index.total_docs}, "
            f"unique_terms: {len(index.doc_frequency)}, "
            f"k1: {self.config.k1}, b: {self.config.b}, "
            f"build: {(time.time() - start_time) * 1000:.2f}ms"
        )

    def tokenize(self, text: str) -> List[str]:
        """Tokenize text the way queries are tokenized (lowercased)."""
        return [token.lower() for token in self.tokenizer.tokenize(text)]

    def search(self, query: str, k: int) -> List[ScoredDocument]:
        """
        Rank documents against a keyword query.

        Only documents with a positive score are returned, sorted by score
        descending. Equal scores keep corpus order.

        Args:
            query: Query text
            k: Maximum number of results

        Returns:
            Scored documents, at most k
        """
        documents, index = self._state

        query_terms = self.tokenize(query)
        if not query_terms or k <= 0 or index.total_docs == 0:
            return []

        candidates = set()
        for term in set(query_terms):
            candidates.update(index.inverted_index.get(term, ()))

        results = []
        for doc_id in sorted(candidates):
            score, term_info = index.score(
                query_terms, doc_id, self.config.k1, self.config.b
            )
            if score > 0:
                results.append(ScoredDocument(documents[doc_id], score, term_info))

        results.sort(key=lambda scored: scored.score, reverse=True)

        logger.debug(
            f"BM25 search - terms: {len(query_terms)}, "
            f"candidates: {len(candidates)}, returned: {min(len(results), k)}"
        )
        return results[:k]

    def add_documents(self, documents: Sequence[Document]) -> None:
        """
        Append documents to the collection and update the index.

        Args:
            documents: Documents to add
        """
        documents = tuple(documents)
        if not documents:
            return

        current_documents, current_index = self._state
        new_index = current_index.extend(documents, self.tokenizer)
        self._state = (current_documents + documents, new_index)

        logger.info(
            f"Added {len(documents)} documents to BM25 index - "
            f"total: {new_index.total_docs}"
        )

    def rebuild(self) -> None:
        """Rebuild the index from the current collection."""
        documents = self._state[0]
        self._state = (documents, BM25Index.build(documents, self.tokenizer))
        logger.info(f"BM25 index rebuilt - documents: {len(documents)}")

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._state[0]

    def get_document_count(self) -> int:
        """Return the number of indexed documents."""
        return len(self._state[0])

    def get_index_stats(self) -> Dict[str, Any]:
        """
        Get index statistics.

        Returns:
            Dictionary with total_docs, avg_doc_length, unique_terms,
            total_term_freq, max_doc_length and min_doc_length
        """
        index = self._state[1]
        return {
            "total_docs": index.total_docs,
            "avg_doc_length": index.avg_doc_length,
            "unique_terms": len(index.doc_frequency),
            "total_term_freq": sum(
                sum(counts.values()) for counts in index.term_frequency
            ),
            "max_doc_length": max(index.doc_lengths, default=0),
            "min_doc_length": min(index.doc_lengths, default=0),
        }
