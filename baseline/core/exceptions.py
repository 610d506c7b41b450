"""Custom exceptions for Baseline."""

from __future__ import annotations


class BaselineError(Exception):
    """Base exception for all Baseline errors."""
    pass


class APIError(BaselineError):
    """Base exception for external API failures."""
    pass


class SourceAdapterError(APIError):
    """Raised when a trending-signal provider (Reddit, Trends, YouTube) fails."""

    def __init__(self, message: str, source: str | None = None, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(message)


class LLMServiceError(APIError):
    """Raised when the OpenAI decision-maker call fails or returns unusable output."""

    def __init__(self, message: str, model: str | None = None):
        self.model = model
        super().__init__(message)


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded."""

    def __init__(self, service: str, retry_after: int | None = None):
        self.service = service
        self.retry_after = retry_after
        super().__init__(f"{service} rate limit exceeded")


class ValidationError(BaselineError):
    """Raised when input validation fails."""
    pass


class StorageError(BaselineError):
    """Raised when topic history cannot be written."""
    pass
