"""系统提示词加载工具。

从 prompts 目录读取 ProcuBot 的 system prompt 文本，
作为 SessionConfig.system_prompt 交给 Provider。
"""

from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(name: str = "procubot_system") -> str:
    fname = PROMPTS_DIR / f"{name}.md"
    return fname.read_text(encoding="utf-8")
