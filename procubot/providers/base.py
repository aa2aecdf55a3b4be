"""Provider 抽象接口。

控制器不直接依赖具体厂商的 HTTP API，而是依赖以下协议：

- ProviderClient：根据 SessionConfig 创建一个多轮对话会话。
- ChatSession：接收一次用户输入，返回流式片段的异步迭代器。

测试中可以用任何满足协议的假对象替换真实 Provider。
"""

from dataclasses import dataclass
from typing import AsyncIterator, Protocol

from procubot.domain.models import Fragment, Payload


@dataclass
class SessionConfig:
    """创建会话所需的配置，对控制器而言是不透明的。"""

    model: str
    system_prompt: str
    temperature: float = 0.7
    enable_search: bool = False


class ChatSession(Protocol):
    """一个多轮对话会话，历史由会话自身维护。"""

    def send_streaming(self, payload: Payload) -> AsyncIterator[Fragment]:
        """发送一条用户消息，逐步产出回答片段。"""

        ...


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    - name: Provider 名称，用于日志。
    - create_session(config): 创建会话；缺少凭据等配置问题应抛出 ValidationError。
    """

    name: str

    def create_session(self, config: SessionConfig) -> ChatSession:
        ...
