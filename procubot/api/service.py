"""对外 API 服务模块。

提供简化的函数接口供展示层调用，返回可直接序列化的字典。
"""

from typing import Any, Dict, List, Optional

from procubot.agents.controller import ConversationController, ControllerConfig
from procubot.attachments import resolve_attachment_for_display
from procubot.config.settings import settings
from procubot.domain.models import Attachment, Language, Message
from procubot.infrastructure.logging.logger import logger
from procubot.providers import create_provider


_controller: Optional[ConversationController] = None


def get_default_controller() -> ConversationController:
    """获取默认的会话控制器实例（单例）。"""
    global _controller
    if _controller is None:
        _controller = ConversationController(
            provider_client=create_provider(),
            config=ControllerConfig.from_settings(settings),
        )
    return _controller


def message_to_dict(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "role": message.role,
        "text": message.text,
        "attachments": [
            {
                "kind": a.kind,
                "mime_type": a.mime_type,
                "file_name": a.file_name,
                "src": resolve_attachment_for_display(a),
            }
            for a in message.attachments
        ],
        "sources": [{"title": s.title, "uri": s.uri} for s in message.sources],
    }


async def send_message(
    text: str,
    attachments: Optional[List[Attachment]] = None,
    language: Optional[Language] = None,
) -> Optional[Dict[str, Any]]:
    """发送一条消息，返回 model 回复（被拒绝时返回 None）。

    Provider 错误已在控制器内转换为回复文本，这里只兜底记录意外异常。
    """
    controller = get_default_controller()
    try:
        reply = await controller.submit(text, attachments, language=language)
    except Exception as e:
        logger.error(f"Send failed: {e}", extra={"extra": {"error": str(e)}})
        raise
    return message_to_dict(reply) if reply else None


def reset_conversation(language: Optional[Language] = None) -> List[Dict[str, Any]]:
    controller = get_default_controller()
    conversation = controller.reset(language=language)
    return [message_to_dict(m) for m in conversation.snapshot()]


def get_messages() -> List[Dict[str, Any]]:
    """获取当前会话的所有消息。"""
    return [message_to_dict(m) for m in get_default_controller().messages]
