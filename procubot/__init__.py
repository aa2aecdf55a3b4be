"""ProcuBot 核心包。

该包提供双语采购导师聊天客户端的核心实现，
包括配置加载、领域模型、Gemini Provider 适配、流式会话控制器、
附件处理与本地化错误提示等能力。
"""

from procubot.agents import ConversationController, ControllerConfig

__all__ = ["ConversationController", "ControllerConfig"]
