"""
Retrieval Operations Manager

This module provides a unified interface for all retrieval paths, allowing
requests to switch between hybrid, vector-only, keyword-only and native
hybrid search through parameters.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .base import SearchResult
from .retrieval_exceptions import InvalidSearchParametersError, SearchError
from ..config.base import SearchMode
from ..config.validation import SearchParams
from ..search.hybrid.core.engine import HybridRetriever
from ..search.hybrid.core.fusion import FusionStrategy, create_fusion_strategy
from ..search.hybrid.core.native import NativeHybridRetriever

logger = logging.getLogger(__name__)


class RetrievalManager:
    """
    Manager for retrieval operations.

    This class validates request parameters and dispatches them to the
    hybrid retriever or, for native mode, to the store-side retriever.
    """

    def __init__(
        self,
        hybrid_retriever: HybridRetriever,
        native_retriever: Optional[NativeHybridRetriever] = None
    ):
        """
        Initialize retrieval manager.

        Args:
            hybrid_retriever: Retriever for hybrid, vector and keyword modes
            native_retriever: Optional retriever for native mode
        """
        self._hybrid_retriever = hybrid_retriever
        self._native_retriever = native_retriever

    @property
    def hybrid_retriever(self) -> HybridRetriever:
        return self._hybrid_retriever

    @property
    def native_retriever(self) -> Optional[NativeHybridRetriever]:
        return self._native_retriever

    async def search(
        self,
        search_params: Union[Dict[str, Any], SearchParams]
    ) -> List[SearchResult]:
        """
        Perform a search based on parameters.

        Args:
            search_params: Search parameters as dict or SearchParams

        Returns:
            Ranked search results

        Raises:
            InvalidSearchParametersError: If parameters are invalid
            SearchError: If the search fails
        """
        try:
            if isinstance(search_params, dict):
                search_params = SearchParams(**search_params)
        except ValidationError as e:
            raise InvalidSearchParametersError(f"Invalid search parameters: {str(e)}") from e

        mode = search_params.mode
        query = search_params.query
        top_k = search_params.top_k

        logger.debug(f"Dispatching {mode.value} search - top_k: {top_k}")

        try:
            if mode == SearchMode.HYBRID:
                return await self._hybrid_retriever.search(
                    query,
                    top_k,
                    timeout=search_params.timeout,
                    fusion_strategy=self._create_fusion_strategy(search_params),
                    min_score=search_params.min_score,
                )
            elif mode == SearchMode.VECTOR:
                return await self._hybrid_retriever.search_vector_only(query, top_k)
            elif mode == SearchMode.KEYWORD:
                return await self._hybrid_retriever.search_keyword_only(query, top_k)
            elif mode == SearchMode.NATIVE:
                if self._native_retriever is None:
                    raise InvalidSearchParametersError(
                        "Native search requested but no native retriever is configured"
                    )
                return await self._native_retriever.search(
                    query, top_k, timeout=search_params.timeout
                )
            else:
                raise InvalidSearchParametersError(f"Unsupported search mode: {mode}")

        except Exception as e:
            if isinstance(e, SearchError):
                raise

            error_msg = f"Search operation failed: {str(e)}"
            logger.error(error_msg)
            raise SearchError(error_msg) from e

    def _create_fusion_strategy(self, params: SearchParams) -> Optional[FusionStrategy]:
        """
        Create a fusion strategy from request overrides.

        Unset overrides fall back to the hybrid retriever's configuration.

        Args:
            params: Search parameters

        Returns:
            FusionStrategy, or None when the request overrides nothing
        """
        if not params.has_fusion_overrides():
            return None

        config = self._hybrid_retriever.config
        vector_weight = params.vector_weight if params.vector_weight is not None else config.vector_weight
        keyword_weight = params.keyword_weight if params.keyword_weight is not None else config.keyword_weight

        return create_fusion_strategy(
            params.fusion_method or config.fusion_method,
            rrf_k=params.rrf_k if params.rrf_k is not None else config.rrf_k,
            weights={"vector": vector_weight, "keyword": keyword_weight},
            normalize=config.normalize_scores,
        )
