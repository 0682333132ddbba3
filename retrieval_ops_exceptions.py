"""
Retrieval Operations Exceptions

This module defines the root exceptions for the hybrid retrieval package
to provide clear error handling and reporting.
"""

class RetrievalOpsError(Exception):
    """Base exception for all retrieval operations errors"""
    pass


class ConfigurationError(RetrievalOpsError):
    """Raised when configuration is invalid or missing"""
    pass


class QueryError(RetrievalOpsError):
    """Raised when a query operation fails"""
    pass


class InsertionError(RetrievalOpsError):
    """Raised when adding documents fails"""
    pass


class DataValidationError(RetrievalOpsError):
    """Raised when data validation fails"""
    pass


class OperationTimeoutError(RetrievalOpsError):
    """Raised when an operation times out"""
    pass
