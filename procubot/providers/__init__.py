"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider / 会话抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供具体实现 (gemini_client)。
"""

from typing import Optional

from procubot.config.settings import settings
from procubot.providers.base import ChatSession, ProviderClient, SessionConfig
from procubot.providers.gemini_client import GeminiClient
from procubot.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = (name or getattr(settings, "default_provider", "gemini")).lower()
    # 未知名称直接报错，避免静默落到错误的厂商
    get_provider_config(provider_name)
    return GeminiClient(settings)


__all__ = ["ChatSession", "ProviderClient", "SessionConfig", "GeminiClient", "create_provider"]
