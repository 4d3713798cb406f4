import pytest

from medassist.llm.exceptions import (
    GENERIC_USER_MESSAGE,
    ConfigurationError,
    QuotaExhaustedError,
    RateLimitError,
    UpstreamError,
    classify_upstream_status,
)


class TestClassifyUpstreamStatus:
    def test_429_is_rate_limit(self):
        error = classify_upstream_status(429, '{"error": "slow down"}')

        assert isinstance(error, RateLimitError)
        assert error.http_status == 429
        assert error.retryable is True
        assert error.get_user_message() == (
            "Rate limit exceeded. Please wait a moment and try again."
        )

    def test_429_with_retry_after(self):
        error = classify_upstream_status(429, "", retry_after="12")

        assert error.retry_after == 12
        assert "12 seconds" in error.get_user_message()

    @pytest.mark.parametrize(
        "header", ["soon", "-3", "0", None, "", "inf", "-inf", "1e400", "nan"]
    )
    def test_unusable_retry_after_ignored(self, header):
        error = classify_upstream_status(429, "", retry_after=header)

        assert isinstance(error, RateLimitError)
        assert error.retry_after is None

    def test_402_is_quota(self):
        error = classify_upstream_status(402, "Payment Required")

        assert isinstance(error, QuotaExhaustedError)
        assert error.http_status == 402
        assert error.retryable is False
        assert "credits are exhausted" in error.get_user_message()

    @pytest.mark.parametrize(
        "body",
        [
            '{"error": {"code": "insufficient_quota", "message": "You exceeded"}}',
            '{"error": {"type": "insufficient_quota"}}',
            "insufficient_quota",
        ],
    )
    def test_429_with_quota_body_is_quota(self, body):
        error = classify_upstream_status(429, body)

        assert isinstance(error, QuotaExhaustedError)
        assert error.status_code == 429
        assert error.http_status == 402

    @pytest.mark.parametrize(
        "status,error_type",
        [
            (400, "invalid_request"),
            (401, "authentication_error"),
            (403, "authentication_error"),
            (500, "server_error"),
            (503, "server_error"),
        ],
    )
    def test_other_statuses_are_generic(self, status, error_type):
        error = classify_upstream_status(status, "boom", service="embedding")

        assert type(error) is UpstreamError
        assert error.http_status == 500
        assert error.error_type == error_type
        assert error.service == "embedding"
        assert error.get_user_message() == GENERIC_USER_MESSAGE

    def test_response_body_truncated_in_metadata(self):
        error = classify_upstream_status(500, "x" * 5000)

        assert len(error.metadata["response_body"]) == 1000
        assert len(error.response_body) == 5000


class TestErrorShapes:
    def test_transport_error_type(self):
        error = UpstreamError("Failed to reach completion service")

        assert error.error_type == "transport_error"
        assert error.status_code is None

    def test_to_dict(self):
        data = RateLimitError("limited", retry_after=5).to_dict()

        assert data["error_type"] == "rate_limited"
        assert data["http_status"] == 429
        assert data["metadata"]["retry_after"] == 5

    def test_str_names_service(self):
        assert str(UpstreamError("HTTP 500")) == "HTTP 500 (service: completion)"

    def test_configuration_error_fields(self):
        error = ConfigurationError("missing", config_fields=["ai_api_key"])

        assert error.config_fields == ["ai_api_key"]
        assert error.metadata == {"config_fields": ["ai_api_key"]}
