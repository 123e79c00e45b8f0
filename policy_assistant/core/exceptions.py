"""Custom exception hierarchy."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class NotFoundError(AppError):
    """Raised when a requested record does not exist for the caller."""
    pass


class AuthenticationError(AppError):
    """Raised when credentials or tokens are rejected."""
    pass


class ConflictError(AppError):
    """Raised when a record would violate a uniqueness rule."""
    pass


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class PipelineError(AppError):
    """Base exception for background pipeline errors."""
    pass


class ExtractionError(PipelineError):
    """Document content extraction failed."""
    pass


class QueryProcessingError(PipelineError):
    """Claim query orchestration failed."""
    pass


class PayloadTooLargeError(ValidationError):
    """Raised when an uploaded file exceeds the configured size limit."""
    pass
