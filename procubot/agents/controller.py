"""会话控制器。

负责一次发送的完整流程：构造请求 -> 打开流 -> 逐片段合并到 model 占位消息
-> 合并引用来源 -> 出错时把异常映射为本地化提示。

并发模型：单线程 asyncio 事件循环。同一会话同时只允许一个发送（布尔标记，
不排队）；reset 会推进 epoch，旧的流在写入前核对 epoch，过期则不再修改状态。
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, List, Optional
from uuid import uuid4

from procubot.agents.error_messages import classify_error, user_facing_error
from procubot.config.settings import settings
from procubot.domain.conversation import Conversation, copy_message
from procubot.domain.exceptions import StreamTimeoutError
from procubot.domain.models import (
    Attachment,
    Citation,
    Fragment,
    InlineDataPart,
    Language,
    Message,
    Part,
    PartsPayload,
    Payload,
    TextPart,
    TextPayload,
    merge_citations,
)
from procubot.attachments import audio_attachment
from procubot.infrastructure.logging.logger import logger
from procubot.locale import text as locale_text
from procubot.prompts import load_system_prompt
from procubot.providers.base import ChatSession, ProviderClient, SessionConfig


@dataclass
class ControllerConfig:
    model: str = "procubot-chat"
    temperature: float = 0.7
    enable_search: bool = True
    language: Language = "en"
    stream_timeout: Optional[float] = None  # 单个片段的最长等待时间，None 表示不限制

    @classmethod
    def from_settings(cls, cfg=settings) -> "ControllerConfig":
        return cls(
            model=getattr(cfg, "default_model", "procubot-chat"),
            temperature=getattr(cfg, "temperature", 0.7),
            enable_search=getattr(cfg, "enable_search_grounding", True),
            language=getattr(cfg, "default_language", "en"),
            stream_timeout=getattr(cfg, "stream_timeout", None),
        )


MessageListener = Callable[[Message], None]


def build_payload(text: str, attachments: List[Attachment]) -> Payload:
    """无附件时原样发送文本；有附件时为 [可选文本 part] + 每个附件一个 inline data part。"""

    if not attachments:
        return TextPayload(text)
    parts: List[Part] = []
    if text:
        parts.append(TextPart(text))
    for att in attachments:
        if att.transmittable:
            parts.append(InlineDataPart(mime_type=att.mime_type, data=att.inline_data or ""))
    return PartsPayload(parts)


class ConversationController:
    def __init__(
        self,
        provider_client: ProviderClient,
        config: Optional[ControllerConfig] = None,
        on_update: Optional[MessageListener] = None,
    ):
        self._provider_client = provider_client
        self._config = config or ControllerConfig.from_settings()
        self._on_update = on_update
        self._ids = itertools.count(1)
        self._epoch = 0
        self._in_flight = False
        self._session: Optional[ChatSession] = None
        self._conversation = Conversation(epoch=0)
        self.reset()

    # ---- 对外属性 ----

    @property
    def messages(self) -> List[Message]:
        return self._conversation.snapshot()

    @property
    def busy(self) -> bool:
        return self._in_flight

    @property
    def session_ready(self) -> bool:
        return self._session is not None

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def config(self) -> ControllerConfig:
        return self._config

    # ---- 操作 ----

    def reset(self, *, language: Optional[Language] = None) -> Conversation:
        """丢弃整个会话（包括进行中的发送），重建 Provider 会话与欢迎消息。

        进行中的流不会被取消，但它之后的写入会因 epoch 变化而被忽略。
        """

        lang = language or self._config.language
        self._epoch += 1
        self._in_flight = False
        conversation = Conversation(epoch=self._epoch)
        log_ctx: Dict[str, Any] = {"epoch": self._epoch, "provider": self._provider_client.name}
        try:
            self._session = self._provider_client.create_session(
                SessionConfig(
                    model=self._config.model,
                    system_prompt=load_system_prompt(),
                    temperature=self._config.temperature,
                    enable_search=self._config.enable_search,
                )
            )
            greeting = locale_text("greeting", lang)
            self._log(logging.INFO, "Created chat session", log_ctx, model=self._config.model)
        except Exception as e:
            self._session = None
            greeting = user_facing_error(e, lang)
            self._log(
                logging.ERROR,
                "Failed to create chat session",
                log_ctx,
                error=str(e),
                error_kind=classify_error(e),
            )
        conversation.append(Message(id=next(self._ids), role="model", text=greeting))
        self._conversation = conversation
        self._notify(conversation.messages[0])
        return conversation

    async def submit(
        self,
        text: str,
        attachments: Optional[List[Attachment]] = None,
        *,
        language: Optional[Language] = None,
    ) -> Optional[Message]:
        """发送一条用户消息并流式接收回答。

        被拒绝（空输入、已有发送进行中、会话未就绪）时返回 None，否则返回
        model 消息的最终副本（成功时为完整回答，失败时为错误提示）。
        """

        attachments = list(attachments or [])
        # 只有 display_url 的附件无法发送，不算作输入
        if not text.strip() and not any(a.transmittable for a in attachments):
            return None
        if self._in_flight:
            logger.info("Submit ignored: a response is still streaming")
            return None
        session = self._session
        if session is None:
            logger.warning("Submit ignored: chat session is not initialized")
            return None

        self._in_flight = True
        epoch = self._epoch
        lang = language or self._config.language
        log_ctx: Dict[str, Any] = {"trace_id": f"tr-{uuid4().hex}", "epoch": epoch}

        user_msg = Message(id=next(self._ids), role="user", text=text, attachments=attachments)
        model_msg = Message(id=next(self._ids), role="model", text="")

        try:
            self._append(epoch, user_msg)
            self._append(epoch, model_msg)
            payload = build_payload(text, attachments)
            skipped = sum(1 for a in attachments if not a.transmittable)
            if skipped:
                self._log(logging.WARNING, "Skipped attachments without inline data", log_ctx, skipped=skipped)
            self._log(
                logging.INFO,
                "Sending message",
                log_ctx,
                payload_kind=type(payload).__name__,
                attachment_count=len(attachments),
                text_length=len(text),
            )

            streamed = ""
            sources: List[Citation] = []
            fragment_count = 0
            stream = session.send_streaming(payload)
            iterator = stream.__aiter__()
            try:
                while True:
                    fragment = await self._next_fragment(iterator)
                    if fragment is None:
                        break
                    fragment_count += 1
                    streamed += fragment.text_delta or ""
                    if fragment.citations:
                        sources = merge_citations(sources, fragment.citations)
                    if not self._write(epoch, model_msg.id, streamed, sources):
                        self._log(logging.INFO, "Dropped stale stream after reset", log_ctx)
                        return None
            finally:
                aclose = getattr(iterator, "aclose", None)
                if aclose is not None:
                    await aclose()

            self._log(
                logging.INFO,
                "Completed response",
                log_ctx,
                fragments=fragment_count,
                response_length=len(streamed),
                sources=len(sources),
            )
        except Exception as e:
            self._log(
                logging.ERROR,
                "Error sending message",
                log_ctx,
                error=str(e),
                error_type=type(e).__name__,
                error_kind=classify_error(e),
            )
            if not self._write(epoch, model_msg.id, user_facing_error(e, lang), []):
                return None
        finally:
            if epoch == self._epoch:
                self._in_flight = False

        if epoch != self._epoch:
            return None
        current = self._conversation.get(model_msg.id)
        return copy_message(current) if current else None

    async def submit_audio(
        self,
        recording: bytes,
        mime_type: Optional[str] = None,
        *,
        language: Optional[Language] = None,
    ) -> Optional[Message]:
        """把一次完整录音作为音频附件发送，配上固定的说明文字。"""

        lang = language or self._config.language
        return await self.submit(
            locale_text("audio_caption", lang),
            [audio_attachment(recording, mime_type)],
            language=lang,
        )

    # ---- 内部方法 ----

    async def _next_fragment(self, iterator: AsyncIterator[Fragment]) -> Optional[Fragment]:
        """取下一个片段，流结束时返回 None。"""

        timeout = self._config.stream_timeout
        try:
            if timeout:
                return await asyncio.wait_for(iterator.__anext__(), timeout)
            return await iterator.__anext__()
        except StopAsyncIteration:
            return None
        except asyncio.TimeoutError:
            raise StreamTimeoutError(
                code="STREAM_TIMEOUT",
                message=f"No response fragment within {timeout}s",
            )

    def _append(self, epoch: int, message: Message) -> None:
        if epoch != self._epoch:
            return
        self._conversation.append(message)
        self._notify(message)

    def _write(self, epoch: int, message_id: int, text: str, sources: List[Citation]) -> bool:
        """按 id 整体替换消息内容；epoch 已过期时不做任何修改并返回 False。"""

        if epoch != self._epoch:
            return False
        msg = self._conversation.replace_content(message_id, text, sources)
        if msg is None:
            return False
        self._notify(msg)
        return True

    def _notify(self, message: Message) -> None:
        if self._on_update is not None:
            self._on_update(copy_message(message))

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
