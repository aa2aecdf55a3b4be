"""会话控制器与错误提示映射。"""

from procubot.agents.controller import ConversationController, ControllerConfig, build_payload

__all__ = ["ConversationController", "ControllerConfig", "build_payload"]
