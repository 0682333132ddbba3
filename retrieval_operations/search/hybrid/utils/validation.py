"""
Validation Module

This module provides parameter validation for retrieval operations.
"""

import logging
from typing import Optional, Sequence

from ....core.retrieval_exceptions import InvalidSearchParametersError

logger = logging.getLogger(__name__)

MAX_TOP_K = 16384


def validate_top_k(top_k: int, name: str = "top_k") -> None:
    """
    Validate a result count.

    Raises:
        InvalidSearchParametersError: If the value is not a positive integer
            within the supported limit
    """
    if isinstance(top_k, bool) or not isinstance(top_k, int):
        raise InvalidSearchParametersError(
            f"{name} must be an integer, got {type(top_k).__name__}"
        )
    if top_k <= 0:
        raise InvalidSearchParametersError(f"{name} must be positive, got {top_k}")
    if top_k > MAX_TOP_K:
        raise InvalidSearchParametersError(
            f"{name} exceeds maximum limit ({MAX_TOP_K}), got {top_k}"
        )


def validate_search_params(
    query: str,
    top_k: int,
    timeout: Optional[float] = None
) -> None:
    """
    Validate search parameters before execution.

    An empty query is valid; it simply matches nothing on the keyword side.

    Args:
        query: Query text
        top_k: Number of results requested
        timeout: Optional timeout in seconds

    Raises:
        InvalidSearchParametersError: If any parameter is invalid
    """
    if not isinstance(query, str):
        raise InvalidSearchParametersError(
            f"query must be a string, got {type(query).__name__}"
        )

    validate_top_k(top_k)

    if timeout is not None and timeout <= 0:
        raise InvalidSearchParametersError(f"timeout must be positive, got {timeout}")

    logger.debug(f"Search parameters validated - top_k: {top_k}, timeout: {timeout}")


def validate_queries(queries: Sequence[str]) -> None:
    """
    Validate a batch of queries.

    Raises:
        InvalidSearchParametersError: If the batch is empty or holds a non-string
    """
    if not queries:
        raise InvalidSearchParametersError("Queries list cannot be empty")
    for i, query in enumerate(queries):
        if not isinstance(query, str):
            raise InvalidSearchParametersError(
                f"Query at index {i} must be a string, got {type(query).__name__}"
            )
