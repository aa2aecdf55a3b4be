"""错误分类与用户提示。

先按异常类型判断，再对错误文本做子串匹配（上游 SDK/HTTP 错误常常只有文本可用），
最后映射到本地化的提示文本。
"""

import asyncio
from typing import Literal

from procubot.domain.exceptions import (
    ApiError,
    BusinessError,
    ContentBlockedError,
    NetworkError,
    RateLimitError,
    StreamTimeoutError,
    UnsupportedMimeTypeError,
    ValidationError,
)
from procubot.locale import text


ErrorKind = Literal[
    "credential",
    "rate_limit",
    "safety",
    "unsupported_mime",
    "timeout",
    "upstream",
    "unknown",
]

CREDENTIAL_CODES = {"MISSING_API_KEY", "INVALID_API_KEY"}

_SUBSTRING_RULES = (
    ("credential", ("api key", "api_key", "apikey", "permission denied", "unauthenticated")),
    ("rate_limit", ("429", "resource_exhausted", "quota", "rate limit")),
    ("safety", ("safety", "blocked", "prohibited")),
    ("unsupported_mime", ("mime type", "mimetype", "unsupported")),
    ("upstream", ("500", "502", "503", "504", "unavailable", "overloaded", "internal")),
)

_MESSAGE_KEYS = {
    "credential": "error.config",
    "rate_limit": "error.rate_limit",
    "safety": "error.safety",
    "unsupported_mime": "error.unsupported_mime",
    "timeout": "error.timeout",
    "upstream": "error.upstream",
}


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, ValidationError) and exc.code in CREDENTIAL_CODES:
        return "credential"
    if isinstance(exc, RateLimitError):
        return "rate_limit"
    if isinstance(exc, ContentBlockedError):
        return "safety"
    if isinstance(exc, UnsupportedMimeTypeError):
        return "unsupported_mime"
    if isinstance(exc, (StreamTimeoutError, asyncio.TimeoutError)):
        return "timeout"
    if isinstance(exc, ApiError) and exc.http_status >= 500:
        return "upstream"
    if isinstance(exc, NetworkError):
        return "upstream"

    raw = _raw_text(exc).lower()
    for kind, needles in _SUBSTRING_RULES:
        if any(n in raw for n in needles):
            return kind  # type: ignore[return-value]
    return "unknown"


def user_facing_error(exc: BaseException, language: str = "en") -> str:
    """返回应替换到 model 消息中的提示文本。"""

    kind = classify_error(exc)
    key = _MESSAGE_KEYS.get(kind)
    if key:
        return text(key, language)
    detail = _raw_text(exc).strip()
    if detail:
        return text("error.unknown_detail", language, detail=detail)
    return text("error.unknown", language)


def _raw_text(exc: BaseException) -> str:
    if isinstance(exc, BusinessError):
        return f"{exc.code}: {exc.message}"
    return str(exc)
