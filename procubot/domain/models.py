"""统一的对话数据模型。

本模块定义控制器、Provider 适配层与展示层之间共享的数据结构：

- Attachment: 用户上传的图片/音频/文档附件。
- Citation: 搜索 grounding 返回的引用来源。
- Message: 会话中的一条消息（user / model）。
- Fragment: 流式回答中的一个增量片段。
- Payload: 发送给 Provider 的请求内容（纯文本或 parts 列表）。

Provider 适配器（如 GeminiClient）只依赖这些模型，
并负责在厂商 API JSON 与这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional, Union


# 消息角色
Role = Literal["user", "model"]

AttachmentKind = Literal["image", "audio", "document"]

# 界面语言：zh 对应繁體中文
Language = Literal["en", "zh"]


@dataclass
class Attachment:
    """一个附件。

    - inline_data: base64 编码的文件内容，发送给 Provider 时必需。
    - display_url: 可直接展示的地址（图片预览的 data URL 或外部链接）。
    """

    kind: AttachmentKind
    mime_type: str
    inline_data: Optional[str] = None
    display_url: Optional[str] = None
    file_name: Optional[str] = None

    @property
    def transmittable(self) -> bool:
        return bool(self.inline_data)


@dataclass(frozen=True)
class Citation:
    """一个网页引用来源。"""

    title: str
    uri: str


@dataclass
class Message:
    """会话中的一条消息。

    model 消息在流式过程中会按 id 原地替换 text 与 sources。
    """

    id: int
    role: Role
    text: str
    attachments: List[Attachment] = field(default_factory=list)
    sources: List[Citation] = field(default_factory=list)


@dataclass
class Fragment:
    """流式回答的增量片段。"""

    text_delta: str = ""
    citations: List[Citation] = field(default_factory=list)


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class InlineDataPart:
    mime_type: str
    data: str  # base64


Part = Union[TextPart, InlineDataPart]


@dataclass(frozen=True)
class TextPayload:
    """无附件时的请求：原样发送用户文本。"""

    text: str


@dataclass(frozen=True)
class PartsPayload:
    """带附件时的请求：可选的文本 part 加上每个附件的 inline data part。"""

    parts: List[Part]


Payload = Union[TextPayload, PartsPayload]


def merge_citations(existing: Iterable[Citation], incoming: Iterable[Citation]) -> List[Citation]:
    """按 uri 去重合并引用列表。

    保持首次出现的顺序；同一 uri 重复出现时保留最先看到的标题。
    uri 为空的条目直接忽略。
    """

    merged: List[Citation] = []
    seen: set[str] = set()
    for citation in list(existing) + list(incoming):
        if not citation.uri or citation.uri in seen:
            continue
        seen.add(citation.uri)
        merged.append(citation)
    return merged
