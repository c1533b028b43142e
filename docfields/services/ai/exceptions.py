"""
Shared exceptions for AI service modules.
"""

from enum import Enum


class ModelFailure(str, Enum):
    """Classification of a failed model call."""

    QUOTA = "quota"
    AUTH = "auth"
    TIMEOUT = "timeout"
    INVALID_REQUEST = "invalid_request"
    MALFORMED_OUTPUT = "malformed_output"
    UNKNOWN = "unknown"


class AIServiceError(Exception):
    """Raised when AI service operations fail."""

    def __init__(self, message: str, failure: ModelFailure = ModelFailure.UNKNOWN):
        super().__init__(message)
        self.failure = failure
