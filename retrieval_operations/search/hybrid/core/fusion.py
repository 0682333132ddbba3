"""
Result Fusion Module

This module provides rank fusion strategies for combining ranked lists from
multiple retrieval sources (vector search, BM25 keyword search) into a single
ranked list.

Documents are merged across lists by a key, document_key() by default. Each
fused document keeps the original score and rank it had in every source list
it appeared in.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ....config.base import FusionMethod
from ....core.base import Document, document_key
from ....core.retrieval_exceptions import FusionError

logger = logging.getLogger(__name__)

DEFAULT_RRF_K = 60.0

KeyFunc = Callable[[Document], str]


@dataclass
class RankedDocument:
    """A document at a 1-based rank within one source list."""
    document: Document
    score: float
    rank: int


@dataclass
class RankedList:
    """
    One source's sorted results.

    Ranks are expected to be contiguous and start at 1.
    """
    source: str
    documents: List[RankedDocument] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)


@dataclass
class FusedDocument:
    """
    A document after fusion.

    Attributes:
        document: The document (first occurrence across the input lists)
        score: Fused score
        source_scores: Original score in each source list the document was in
        source_ranks: Rank in each source list the document was in
    """
    document: Document
    score: float = 0.0
    source_scores: Dict[str, float] = field(default_factory=dict)
    source_ranks: Dict[str, int] = field(default_factory=dict)


def convert_to_ranked_list(
    source: str,
    documents: Sequence[Document],
    scores: Optional[Sequence[float]] = None
) -> RankedList:
    """
    Build a ranked list from documents already in rank order.

    Args:
        source: Source label, e.g. "vector" or "keyword"
        documents: Documents sorted best first
        scores: Scores aligned with documents; missing entries default to 0.0

    Returns:
        RankedList with 1-based ranks
    """
    scores = scores or ()
    ranked = [
        RankedDocument(
            document=doc,
            score=float(scores[i]) if i < len(scores) else 0.0,
            rank=i + 1,
        )
        for i, doc in enumerate(documents)
    ]
    return RankedList(source=source, documents=ranked)


def normalize_scores(ranked_list: RankedList) -> RankedList:
    """
    Min-max normalize the scores of a ranked list into [0, 1].

    When every score is equal, every document normalizes to 1.0. Ranks are
    preserved.

    Args:
        ranked_list: List to normalize (not modified)

    Returns:
        New RankedList with normalized scores
    """
    if not ranked_list.documents:
        return RankedList(source=ranked_list.source)

    raw_scores = [doc.score for doc in ranked_list.documents]
    min_score = min(raw_scores)
    score_range = max(raw_scores) - min_score

    return RankedList(
        source=ranked_list.source,
        documents=[
            RankedDocument(
                document=doc.document,
                score=1.0 if score_range == 0 else (doc.score - min_score) / score_range,
                rank=doc.rank,
            )
            for doc in ranked_list.documents
        ],
    )


class FusionStrategy(ABC):
    """
    Abstract base class for fusion strategies.

    Subclasses only define how much each occurrence contributes; merging,
    bookkeeping and sorting are shared. Sorting is stable, so documents with
    equal fused scores keep the order in which they were first seen.
    """

    name = "base"

    def __init__(self, key_func: Optional[KeyFunc] = None):
        """
        Args:
            key_func: Function deriving the merge key of a document
                (defaults to document_key)
        """
        self.key_func = key_func or document_key

    def _prepare(self, ranked_lists: Sequence[RankedList]) -> List[RankedList]:
        """Return the lists used to compute contributions."""
        return list(ranked_lists)

    @abstractmethod
    def _contribution(
        self,
        ranked_doc: RankedDocument,
        source: str,
        list_count: int
    ) -> float:
        """Return the score a single occurrence adds to its document."""
        pass

    def fuse(self, ranked_lists: Sequence[RankedList]) -> List[FusedDocument]:
        """
        Fuse ranked lists into a single list sorted by fused score.

        Args:
            ranked_lists: Ranked lists from each source

        Returns:
            One FusedDocument per distinct key, sorted by score descending

        Raises:
            FusionError: If a document key cannot be derived
        """
        if not ranked_lists:
            logger.warning(f"Empty ranked lists provided to {self.name} fusion")
            return []

        prepared = self._prepare(ranked_lists)
        fused: Dict[str, FusedDocument] = {}

        for original, scored in zip(ranked_lists, prepared):
            for raw_doc, ranked_doc in zip(original.documents, scored.documents):
                try:
                    key = self.key_func(ranked_doc.document)
                except Exception as e:
                    raise FusionError(
                        f"Failed to derive document key in {self.name} fusion: {str(e)}"
                    ) from e

                entry = fused.get(key)
                if entry is None:
                    entry = FusedDocument(document=ranked_doc.document)
                    fused[key] = entry

                entry.score += self._contribution(ranked_doc, original.source, len(prepared))
                entry.source_scores[original.source] = raw_doc.score
                entry.source_ranks[original.source] = raw_doc.rank

        results = sorted(fused.values(), key=lambda doc: doc.score, reverse=True)

        logger.debug(
            f"{self.name} fusion completed - "
            f"input_lists: {len(ranked_lists)}, "
            f"unique_docs: {len(results)}"
        )
        return results

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RRFStrategy(FusionStrategy):
    """
    Reciprocal Rank Fusion.

    Each occurrence at rank r adds 1 / (k + r). Source scores are ignored, so
    lists with incomparable score scales can be fused directly.

    Formula: RRF_score(d) = sum(1 / (k + rank(d)))
    """

    name = "rrf"

    def __init__(self, k: float = DEFAULT_RRF_K, key_func: Optional[KeyFunc] = None):
        """
        Args:
            k: RRF constant; values <= 0 fall back to 60
            key_func: Optional merge key function
        """
        super().__init__(key_func)
        if k is None or k <= 0:
            k = DEFAULT_RRF_K
        self.k = float(k)

    def _contribution(self, ranked_doc, source, list_count):
        return 1.0 / (self.k + ranked_doc.rank)

    def __repr__(self) -> str:
        return f"RRFStrategy(k={self.k:g})"


class WeightedStrategy(FusionStrategy):
    """
    Weighted sum of min-max normalized scores.

    Each list is normalized independently before weighting. A source with no
    weight (missing or None) gets 1 / len(lists). An explicit weight of 0.0
    is honored.
    """

    name = "weighted"

    def __init__(
        self,
        weights: Optional[Mapping[str, Optional[float]]] = None,
        normalize: bool = True,
        key_func: Optional[KeyFunc] = None
    ):
        super().__init__(key_func)
        self.weights = dict(weights or {})
        self.normalize = normalize

    def _prepare(self, ranked_lists):
        if not self.normalize:
            return list(ranked_lists)
        return [normalize_scores(ranked_list) for ranked_list in ranked_lists]

    def _contribution(self, ranked_doc, source, list_count):
        weight = self.weights.get(source)
        if weight is None:
            weight = 1.0 / list_count
        return weight * ranked_doc.score

    def __repr__(self) -> str:
        return f"WeightedStrategy(weights={self.weights}, normalize={self.normalize})"


class LinearCombinationStrategy(FusionStrategy):
    """
    Weighted sum of raw scores, without normalization.

    Intended for sources whose scores are already on comparable scales.
    A source with no weight (missing or None) gets 1.0.
    """

    name = "linear"

    def __init__(
        self,
        weights: Optional[Mapping[str, Optional[float]]] = None,
        key_func: Optional[KeyFunc] = None
    ):
        super().__init__(key_func)
        self.weights = dict(weights or {})

    def _contribution(self, ranked_doc, source, list_count):
        weight = self.weights.get(source)
        if weight is None:
            weight = 1.0
        return weight * ranked_doc.score

    def __repr__(self) -> str:
        return f"LinearCombinationStrategy(weights={self.weights})"


def create_fusion_strategy(
    method,
    rrf_k: float = DEFAULT_RRF_K,
    weights: Optional[Mapping[str, Optional[float]]] = None,
    normalize: bool = True,
    key_func: Optional[KeyFunc] = None
) -> FusionStrategy:
    """
    Create a fusion strategy.

    Args:
        method: FusionMethod or its string value ("rrf", "weighted", "linear")
        rrf_k: RRF constant (RRF only)
        weights: Per-source weights (weighted and linear only)
        normalize: Min-max normalize before weighting (weighted only)
        key_func: Optional merge key function

    Returns:
        Configured fusion strategy

    Raises:
        ValueError: If the method is unknown
    """
    method = FusionMethod(method)
    if method == FusionMethod.RRF:
        return RRFStrategy(k=rrf_k, key_func=key_func)
    if method == FusionMethod.WEIGHTED:
        return WeightedStrategy(weights=weights, normalize=normalize, key_func=key_func)
    return LinearCombinationStrategy(weights=weights, key_func=key_func)
