"""
Exception hierarchy for termcluster.

Exception Hierarchy:
    TermClusterError (base)
    ├── InvalidInputError      malformed or out-of-domain input
    ├── DimensionMismatchError two aligned artifacts disagree on keys or shape
    └── NotFittedError         a pipeline is cut before it was fitted

All errors are raised at the point of detection. The pipeline is
deterministic, so nothing is retried internally.
"""

from typing import Any, Dict, Optional


class TermClusterError(Exception):
    """Base exception for all termcluster errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class InvalidInputError(TermClusterError, ValueError):
    """Input is malformed or outside the domain of an operation."""
    pass


class DimensionMismatchError(TermClusterError, ValueError):
    """Keys or shapes of two artifacts that must line up do not."""
    pass


class NotFittedError(TermClusterError, RuntimeError):
    """A clusterer was asked for a cut before fit() was called."""
    pass
