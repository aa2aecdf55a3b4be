"""Gemini / Generative Language API 适配器。

使用 REST 流式端点：
- URL: {base_url}/models/{model}:streamGenerateContent?alt=sse
- 认证: x-goog-api-key: <api_key>

每个 SSE `data:` 行是一段 GenerateContentResponse JSON，本实现只依赖公共字段：
candidates[0].content.parts[].text、candidates[0].finishReason、
candidates[0].groundingMetadata.groundingChunks[].web 以及 promptFeedback.blockReason。
"""

import json
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from procubot.config.settings import Settings, settings
from procubot.domain.exceptions import (
    ApiError,
    BusinessError,
    ContentBlockedError,
    NetworkError,
    RateLimitError,
    UnsupportedMimeTypeError,
    ValidationError,
)
from procubot.domain.models import (
    Citation,
    Fragment,
    InlineDataPart,
    Payload,
    PartsPayload,
    TextPart,
    TextPayload,
)
from procubot.providers.base import SessionConfig
from procubot.providers.registry import GEMINI_CONFIG, ModelConfig, resolve_model


# 这些 finishReason 表示回答被安全策略截断
BLOCKED_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "IMAGE_SAFETY"}


class GeminiClient:
    """Gemini Provider 客户端实现。"""

    name = "gemini"

    def __init__(self, cfg=settings):
        self._settings = cfg

    def create_session(self, config: SessionConfig) -> "GeminiChatSession":
        api_key = self._resolve_api_key()
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="API_KEY not set")
        model_cfg = resolve_model(GEMINI_CONFIG, config.model)
        return GeminiChatSession(self._settings, config, model_cfg, api_key)

    def _resolve_api_key(self) -> Optional[str]:
        """每次创建会话时读取密钥；使用全局配置时重新加载环境变量与 .env。"""

        key = getattr(self._settings, "gemini_api_key", None)
        if key or self._settings is not settings:
            return key
        return Settings().gemini_api_key


class GeminiChatSession:
    """一个 Gemini 多轮会话。

    只有成功完成的轮次才会写入历史；失败的轮次不影响后续上下文。
    """

    def __init__(self, cfg, config: SessionConfig, model_cfg: ModelConfig, api_key: str):
        self._settings = cfg
        self._api_key = api_key
        self._config = config
        self._model_cfg = model_cfg
        self._history: List[Dict[str, Any]] = []

    @property
    def history(self) -> List[Dict[str, Any]]:
        return list(self._history)

    async def send_streaming(self, payload: Payload) -> AsyncIterator[Fragment]:
        user_content = {"role": "user", "parts": self._payload_to_parts(payload)}
        body = self._build_body(user_content)
        base = getattr(self._settings, "gemini_base_url", None) or GEMINI_CONFIG.base_url
        url = f"{base}/models/{self._model_cfg.provider_model}:streamGenerateContent"
        pieces: List[str] = []
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                async with client.stream(
                    "POST",
                    url,
                    params={"alt": "sse"},
                    json=body,
                    headers={
                        "x-goog-api-key": self._api_key,
                        "Content-Type": "application/json",
                    },
                ) as resp:
                    if resp.status_code >= 400:
                        await resp.aread()
                        raise error_from_response(resp.status_code, resp.text)
                    async for line in resp.aiter_lines():
                        if not line:
                            continue
                        data_str = line
                        if data_str.startswith("data:"):
                            data_str = data_str[5:].strip()
                        else:
                            data_str = data_str.strip()
                        if not data_str or data_str == "[DONE]":
                            continue
                        try:
                            chunk = json.loads(data_str)
                        except json.JSONDecodeError:
                            continue
                        fragment = self._parse_stream_chunk(chunk)
                        pieces.append(fragment.text_delta)
                        yield fragment
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__)

        self._history.append(user_content)
        self._history.append({"role": "model", "parts": [{"text": "".join(pieces)}]})

    # ---- 辅助方法 ----

    def _build_body(self, user_content: Dict[str, Any]) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "contents": self._history + [user_content],
            "generationConfig": {
                "temperature": self._config.temperature,
                "maxOutputTokens": self._model_cfg.max_tokens,
            },
        }
        if self._config.system_prompt:
            body["systemInstruction"] = {"parts": [{"text": self._config.system_prompt}]}
        if self._config.enable_search:
            body["tools"] = [{"google_search": {}}]
        return body

    @staticmethod
    def _payload_to_parts(payload: Payload) -> List[Dict[str, Any]]:
        if isinstance(payload, TextPayload):
            return [{"text": payload.text}]
        if isinstance(payload, PartsPayload):
            parts: List[Dict[str, Any]] = []
            for part in payload.parts:
                if isinstance(part, TextPart):
                    parts.append({"text": part.text})
                elif isinstance(part, InlineDataPart):
                    parts.append({"inlineData": {"mimeType": part.mime_type, "data": part.data}})
            return parts
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

    def _parse_stream_chunk(self, data: Dict[str, Any]) -> Fragment:
        if "error" in data:
            err = data.get("error") or {}
            raise error_from_payload(int(err.get("code") or 500), err)

        feedback = data.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason")
        if block_reason:
            raise ContentBlockedError(code="PROMPT_BLOCKED", message=f"Prompt blocked: {block_reason}")

        candidates = data.get("candidates") or []
        if not candidates:
            return Fragment()
        cand = candidates[0]
        parts = (cand.get("content") or {}).get("parts") or []
        text = "".join(
            p.get("text") or ""
            for p in parts
            if isinstance(p, dict) and not p.get("thought")
        )
        finish_reason = cand.get("finishReason")
        if finish_reason in BLOCKED_FINISH_REASONS:
            raise ContentBlockedError(code="RESPONSE_BLOCKED", message=f"Response blocked: {finish_reason}")
        citations = self._parse_grounding(cand.get("groundingMetadata") or {})
        return Fragment(text_delta=text, citations=citations)

    @staticmethod
    def _parse_grounding(metadata: Dict[str, Any]) -> List[Citation]:
        citations: List[Citation] = []
        for chunk in metadata.get("groundingChunks") or []:
            web = (chunk or {}).get("web") or {}
            uri = web.get("uri")
            if not uri:
                continue
            citations.append(Citation(title=web.get("title") or uri, uri=uri))
        return citations


def error_from_response(status_code: int, body_text: str) -> BusinessError:
    """把 HTTP 错误响应转换为业务异常。"""

    err: Dict[str, Any] = {}
    try:
        parsed = json.loads(body_text or "{}")
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("error"), dict):
        err = parsed["error"]
    elif isinstance(parsed, list) and parsed and isinstance(parsed[0], dict):
        # 流式端点出错时偶尔返回数组包裹的错误对象
        err = parsed[0].get("error") or {}
    if not err.get("message"):
        err = dict(err, message=body_text or f"HTTP {status_code}")
    return error_from_payload(status_code, err)


def error_from_payload(status_code: int, err: Dict[str, Any]) -> BusinessError:
    message: str = str(err.get("message") or f"HTTP {status_code}")
    status: Optional[str] = err.get("status")
    lowered = message.lower()
    if status_code == 429 or status == "RESOURCE_EXHAUSTED":
        return RateLimitError(code="RATE_LIMIT", message=message, http_status=429, status=status)
    if status_code in (401, 403) or "api key not valid" in lowered or status == "UNAUTHENTICATED":
        return ValidationError(code="INVALID_API_KEY", message=message, http_status=status_code, status=status)
    if status_code == 400 and "mime" in lowered:
        return UnsupportedMimeTypeError(
            code="UNSUPPORTED_MIME_TYPE", message=message, http_status=status_code, status=status
        )
    if status_code >= 500:
        return ApiError(code="UPSTREAM_UNAVAILABLE", message=message, http_status=status_code, status=status)
    return ApiError(code="API_ERROR", message=message, http_status=status_code, status=status)
