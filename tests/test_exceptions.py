"""
Tests for custom exception hierarchy in baseline.core.exceptions.
"""
from __future__ import annotations

import httpx
import pytest

from baseline.core.exceptions import (
    APIError,
    BaselineError,
    LLMServiceError,
    RateLimitError,
    SourceAdapterError,
    StorageError,
    ValidationError,
)
from baseline.services.provider_utils import provider_error


class TestExceptionHierarchy:
    """Verify inheritance relationships in the exception hierarchy."""

    def test_all_exceptions_inherit_from_baseline_error(self):
        for exc_cls in (
            APIError, SourceAdapterError, LLMServiceError, RateLimitError, ValidationError, StorageError,
        ):
            assert issubclass(exc_cls, BaselineError)

    def test_api_errors_inherit_from_api_error(self):
        for exc_cls in (SourceAdapterError, LLMServiceError, RateLimitError):
            assert issubclass(exc_cls, APIError)

    def test_baseline_error_is_exception(self):
        assert issubclass(BaselineError, Exception)


class TestSourceAdapterError:
    def test_with_status_code(self):
        err = SourceAdapterError("Not found", source="Reddit", status_code=404)
        assert str(err) == "Not found"
        assert err.source == "Reddit"
        assert err.status_code == 404

    def test_without_status_code(self):
        err = SourceAdapterError("Network error")
        assert err.status_code is None
        assert err.source is None


class TestRateLimitError:
    def test_attributes(self):
        err = RateLimitError(service="SerpAPI", retry_after=30)
        assert err.service == "SerpAPI"
        assert err.retry_after == 30
        assert "SerpAPI rate limit exceeded" in str(err)

    def test_catchable_as_api_error(self):
        with pytest.raises(APIError):
            raise RateLimitError(service="test")


class TestLLMServiceError:
    def test_with_model(self):
        err = LLMServiceError("selection failed", model="gpt-4o")
        assert str(err) == "selection failed"
        assert err.model == "gpt-4o"

    def test_without_model(self):
        assert LLMServiceError("failed").model is None


class TestProviderError:
    def _status_error(self, status_code: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
        request = httpx.Request("GET", "https://example.com")
        response = httpx.Response(status_code, headers=headers, request=request)
        return httpx.HTTPStatusError("boom", request=request, response=response)

    def test_429_becomes_rate_limit_error(self):
        err = provider_error(self._status_error(429, {"Retry-After": "12"}), "YouTube")
        assert isinstance(err, RateLimitError)
        assert err.service == "YouTube"
        assert err.retry_after == 12

    def test_other_status_becomes_source_adapter_error(self):
        err = provider_error(self._status_error(403), "Reddit")
        assert isinstance(err, SourceAdapterError)
        assert err.status_code == 403
        assert err.source == "Reddit"

    def test_transport_error_has_no_status(self):
        err = provider_error(httpx.ConnectError("refused"), "SerpAPI")
        assert isinstance(err, SourceAdapterError)
        assert err.status_code is None
