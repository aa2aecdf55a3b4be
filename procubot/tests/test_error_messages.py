import asyncio

import pytest

from procubot.agents.error_messages import classify_error, user_facing_error
from procubot.domain.exceptions import (
    ApiError,
    ContentBlockedError,
    NetworkError,
    RateLimitError,
    StreamTimeoutError,
    UnsupportedMimeTypeError,
    ValidationError,
)
from procubot.locale import text


@pytest.mark.parametrize(
    "exc,kind",
    [
        (ValidationError(code="MISSING_API_KEY", message="API_KEY not set"), "credential"),
        (ValidationError(code="INVALID_API_KEY", message="bad key", http_status=400), "credential"),
        (RateLimitError(code="RATE_LIMIT", message="slow down", http_status=429), "rate_limit"),
        (ContentBlockedError(code="RESPONSE_BLOCKED", message="Response blocked: SAFETY"), "safety"),
        (UnsupportedMimeTypeError(code="UNSUPPORTED_MIME_TYPE", message="zip"), "unsupported_mime"),
        (StreamTimeoutError(code="STREAM_TIMEOUT", message="no data"), "timeout"),
        (asyncio.TimeoutError(), "timeout"),
        (ApiError(code="UPSTREAM_UNAVAILABLE", message="down", http_status=503), "upstream"),
        (NetworkError(code="NETWORK_ERROR", message="connection reset"), "upstream"),
        # 只有文本可用时按子串判断
        (RuntimeError("API key not valid. Please pass a valid API key."), "credential"),
        (RuntimeError("got status: 429 Too Many Requests"), "rate_limit"),
        (RuntimeError("[GoogleGenerativeAI Error]: Candidate was blocked due to SAFETY"), "safety"),
        (RuntimeError("Unsupported MIME type: application/x-rar"), "unsupported_mime"),
        (RuntimeError("503 The model is overloaded"), "upstream"),
        (RuntimeError("something odd"), "unknown"),
    ],
)
def test_classify_error(exc, kind):
    assert classify_error(exc) == kind


def test_user_facing_error_is_localized():
    exc = RateLimitError(code="RATE_LIMIT", message="quota", http_status=429)
    assert user_facing_error(exc, "en") == text("error.rate_limit", "en")
    assert user_facing_error(exc, "zh") == text("error.rate_limit", "zh")


def test_unknown_error_includes_raw_text():
    msg = user_facing_error(RuntimeError("something odd"), "en")
    assert "something odd" in msg
    assert msg.startswith("Sorry")


def test_unknown_error_without_text_uses_generic_message():
    assert user_facing_error(RuntimeError(), "zh") == text("error.unknown", "zh")


def test_unknown_language_falls_back_to_english():
    exc = ContentBlockedError(code="PROMPT_BLOCKED", message="x")
    assert user_facing_error(exc, "fr") == text("error.safety", "en")
