"""
Custom exceptions for meta-analysis computations.
"""


class MetaAnalysisError(Exception):
    """Base exception for meta-analysis errors."""

    pass


class InvalidInputError(MetaAnalysisError, ValueError):
    """Raised when study data violates a pooling precondition."""

    pass


class NumericDomainError(MetaAnalysisError, ValueError):
    """Raised when an effect-size transform is evaluated outside its domain."""

    pass


class ExternalValidationError(MetaAnalysisError):
    """Raised when an external recomputation fails or returns unusable output. Retryable."""

    pass
