"""
Base Retrieval Types

This module provides the document and result types shared by all retrievers,
the document key used to merge ranked lists, and the abstract base class
defining the common retriever interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


# Length of the content prefix used as a merge key when no id is present
DOCUMENT_KEY_PREFIX_LENGTH = 100


@dataclass(frozen=True)
class Document:
    """
    A unit of retrievable text.

    Documents are treated as immutable once indexed. No identity field is
    guaranteed; see document_key() for how documents are matched across
    ranked lists.
    """
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def document_key(document: Document) -> str:
    """
    Derive the merge key of a document.

    The metadata field "id" is used when present and non-empty, otherwise the
    first 100 characters of the content. Near-duplicate documents sharing a
    100-character prefix will collide; callers that need a strong identity
    should set metadata["id"] or pass a key_func to the fusion strategy.

    Args:
        document: Document to derive the key for

    Returns:
        Merge key string
    """
    doc_id = document.metadata.get("id") if document.metadata else None
    if doc_id is not None and str(doc_id) != "":
        return str(doc_id)
    return document.content[:DOCUMENT_KEY_PREFIX_LENGTH]


@dataclass
class SearchResult:
    """
    One ranked result returned to callers.

    Per-source scores and ranks are zero when the document did not appear in
    that source's list.
    """
    document: Document
    score: float
    vector_score: float = 0.0
    keyword_score: float = 0.0
    vector_rank: int = 0
    keyword_rank: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a plain dictionary."""
        return {
            "content": self.document.content,
            "metadata": dict(self.document.metadata),
            "score": self.score,
            "vector_score": self.vector_score,
            "keyword_score": self.keyword_score,
            "vector_rank": self.vector_rank,
            "keyword_rank": self.keyword_rank,
        }


class BaseRetriever(ABC):
    """
    Abstract base class for retrievers.

    This class defines the common interface for hybrid retrievers so that
    local-fusion and store-side-fusion implementations can be swapped.
    """

    @abstractmethod
    async def search(
        self,
        query: str,
        top_k: int,
        timeout: Optional[float] = None
    ) -> List[SearchResult]:
        """
        Perform a ranked search.

        Args:
            query: Query text
            top_k: Maximum number of results to return
            timeout: Optional timeout in seconds for the whole call

        Returns:
            Results sorted by score descending

        Raises:
            SearchError: If the search fails
        """
        pass

    @abstractmethod
    async def search_vector_only(self, query: str, top_k: int) -> List[SearchResult]:
        """Perform a vector-only search, bypassing fusion."""
        pass

    @abstractmethod
    async def add_documents(self, documents: Sequence[Document]) -> None:
        """Add documents to the underlying stores."""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Return retriever statistics."""
        pass
