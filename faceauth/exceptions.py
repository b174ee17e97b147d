"""Error taxonomy for enrollment and verification."""
from typing import Optional


class FaceAuthError(Exception):
    """Base exception for face authentication operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face authentication error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInput(FaceAuthError):
    """Raised for a missing or malformed descriptor, an empty name or an unreadable image."""
    pass


class DimensionMismatch(InvalidInput):
    """Raised when two descriptors of different length are compared or stored."""
    pass


class ExtractionFailure(FaceAuthError):
    """Raised when no descriptor can be derived from an image (e.g. no face found)."""
    pass


class StoreUnavailable(FaceAuthError):
    """Raised when the descriptor store is unreachable or erroring."""
    pass


class ModelNotInitialized(FaceAuthError):
    """Raised when extraction is attempted before the model handle was initialized."""
    pass
