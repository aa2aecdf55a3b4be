"""附件的输入与展示辅助函数。

- 文件/录音 -> Attachment（整块读入内存并 base64 编码，不限制大小）。
- Attachment -> 可展示的地址或本地文件。
"""

import base64
import binascii
import mimetypes
from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

from procubot.domain.exceptions import UnsupportedMimeTypeError
from procubot.domain.models import Attachment, AttachmentKind
from procubot.infrastructure.logging.logger import logger


DOCUMENT_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}

# 录音格式的优先级（依次尝试，取第一个录音端支持的）
AUDIO_MIME_PREFERENCES = ("audio/webm", "audio/mp4", "audio/ogg", "audio/wav")


def kind_for_mime_type(mime_type: str) -> AttachmentKind:
    mime = (mime_type or "").split(";", 1)[0].strip().lower()
    if mime.startswith("image/"):
        return "image"
    if mime.startswith("audio/"):
        return "audio"
    if mime in DOCUMENT_MIME_TYPES:
        return "document"
    raise UnsupportedMimeTypeError(
        code="UNSUPPORTED_MIME_TYPE",
        message=f"Unsupported attachment type: {mime_type or 'unknown'}",
        mime_type=mime_type,
    )


def attachment_from_bytes(data: bytes, mime_type: str, file_name: Optional[str] = None) -> Attachment:
    """把整块文件内容转换为 Attachment。图片额外生成 data URL 用于预览。"""

    kind = kind_for_mime_type(mime_type)
    encoded = base64.b64encode(data).decode("ascii")
    display_url = f"data:{mime_type};base64,{encoded}" if kind == "image" else None
    return Attachment(
        kind=kind,
        mime_type=mime_type,
        inline_data=encoded,
        display_url=display_url,
        file_name=file_name,
    )


def attachment_from_path(path: str | Path) -> Attachment:
    p = Path(path)
    mime_type, _ = mimetypes.guess_type(p.name)
    if not mime_type:
        raise UnsupportedMimeTypeError(
            code="UNSUPPORTED_MIME_TYPE",
            message=f"Cannot determine the type of {p.name}",
            file_name=p.name,
        )
    return attachment_from_bytes(p.read_bytes(), mime_type, file_name=p.name)


def audio_attachment(recording: bytes, mime_type: Optional[str] = None) -> Attachment:
    """一次录音（完整的一段编码数据，不分块）转换为音频附件。"""

    return attachment_from_bytes(recording, mime_type or AUDIO_MIME_PREFERENCES[0])


def pick_audio_mime_type(supported: Iterable[str]) -> str:
    supported_set = {s.lower() for s in supported}
    for mime in AUDIO_MIME_PREFERENCES:
        if mime in supported_set:
            return mime
    return AUDIO_MIME_PREFERENCES[0]


def resolve_attachment_for_display(attachment: Attachment) -> Optional[str]:
    """返回可渲染的地址：优先 display_url，否则用 inline_data 拼出 data URL。"""

    if attachment.display_url:
        return attachment.display_url
    if attachment.inline_data:
        return f"data:{attachment.mime_type};base64,{attachment.inline_data}"
    return None


def materialize_attachment(attachment: Attachment, target_dir: str | Path) -> Optional[Path]:
    """把附件解码写入本地文件，供系统查看器打开。

    base64 损坏或写入失败时只记录日志并返回 None。
    """

    if not attachment.inline_data:
        return None
    try:
        raw = base64.b64decode(attachment.inline_data, validate=True)
        out_dir = Path(target_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        name = attachment.file_name or f"attachment-{uuid4().hex[:8]}{_guess_extension(attachment.mime_type)}"
        out_path = out_dir / Path(name).name
        out_path.write_bytes(raw)
        return out_path
    except (binascii.Error, ValueError, OSError) as e:
        logger.warning(
            "Unable to open attachment",
            extra={"extra": {
                "file_name": attachment.file_name,
                "mime_type": attachment.mime_type,
                "error": str(e),
            }},
        )
        return None


def _guess_extension(mime_type: str) -> str:
    return mimetypes.guess_extension(mime_type.split(";", 1)[0]) or ""
