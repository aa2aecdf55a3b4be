"""结构化日志：每条记录写成一行 JSON。

调用方通过 `extra={"extra": {...}}` 传入上下文字段（trace_id、epoch 等），
这些字段会平铺到 JSON 顶层。开启 log_redact_content 后，消息与较长的字符串
字段会被截断，避免把用户输入或上游错误原文完整落盘。
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from procubot.config.settings import settings

LOG_FILE_NAME = "procubot.log"
REDACT_LIMIT = 64


def _truncate(value: Any) -> Any:
    if isinstance(value, str) and len(value) > REDACT_LIMIT:
        return value[:REDACT_LIMIT] + "..."
    return value


class JsonLineFormatter(logging.Formatter):
    def __init__(self, redact: bool = False):
        super().__init__()
        self.redact = redact

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage() or ""
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        fields = getattr(record, "extra", None)
        if isinstance(fields, dict):
            for key, value in fields.items():
                # 保留字段不允许被上下文覆盖
                if key not in payload:
                    payload[key] = value
        if self.redact:
            payload = {k: _truncate(v) if k not in ("ts", "level", "name") else v for k, v in payload.items()}
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(
    name: str = "procubot",
    log_dir: Optional[str] = None,
    redact: Optional[bool] = None,
) -> logging.Logger:
    """为指定 logger 挂一个 JSON 文件 handler；重复调用不会重复挂载。"""

    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    path = Path(log_dir or settings.log_dir) / LOG_FILE_NAME
    target = os.path.abspath(path)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return logger

    path.parent.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(path, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonLineFormatter(settings.log_redact_content if redact is None else redact))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
