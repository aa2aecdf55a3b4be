from dataclasses import dataclass, field, replace
from typing import List, Optional

from .models import Citation, Message


@dataclass
class Conversation:
    """一次会话的有序消息列表。

    epoch 在每次 reset 时递增；流式回调在写入前需核对 epoch，
    避免旧的流覆盖新会话。
    """

    epoch: int
    messages: List[Message] = field(default_factory=list)

    def append(self, message: Message) -> None:
        self.messages.append(message)

    def get(self, message_id: int) -> Optional[Message]:
        for msg in self.messages:
            if msg.id == message_id:
                return msg
        return None

    def replace_content(
        self,
        message_id: int,
        text: str,
        sources: Optional[List[Citation]] = None,
    ) -> Optional[Message]:
        """整体替换某条消息的 text（及 sources），返回被修改的消息。"""

        msg = self.get(message_id)
        if msg is None:
            return None
        msg.text = text
        if sources is not None:
            msg.sources = list(sources)
        return msg

    def snapshot(self) -> List[Message]:
        return [copy_message(m) for m in self.messages]

    def __len__(self) -> int:
        return len(self.messages)


def copy_message(message: Message) -> Message:
    return replace(
        message,
        attachments=list(message.attachments),
        sources=list(message.sources),
    )
