"""界面文本（英文 / 繁體中文）。

语言由调用方显式传入，不依赖全局开关。未知语言回退到英文。
"""

from typing import Dict

from procubot.domain.models import Language


DEFAULT_LANGUAGE: Language = "en"

TEXTS: Dict[str, Dict[str, str]] = {
    "greeting": {
        # 欢迎语本身是双语的，与界面语言无关
        "en": (
            "Hello! I am ProcuBot, your expert procurement tutor. I can analyze multiple documents "
            "(PDF, Word, PPT, Excel, Images) simultaneously. How can I assist you today?\n\n"
            "您好！我是 ProcuBot，您的專業採購導師。我可以同時分析多份文件"
            "（如 PDF, Word, PPT, Excel, 圖片）。今天有什麼可以協助您的嗎？"
        ),
    },
    "audio_caption": {
        "en": "Please listen to this audio.",
        "zh": "請聽這段語音。",
    },
    "error.config": {
        "en": (
            "Configuration error: the API key is missing or invalid. "
            "Please set the API_KEY environment variable and reset the conversation."
        ),
        "zh": "設定錯誤：API 金鑰遺失或無效。請設定 API_KEY 環境變數後重新開始對話。",
    },
    "error.rate_limit": {
        "en": "The service is receiving too many requests right now (quota exceeded). Please wait a moment and try again.",
        "zh": "目前請求量過多（已超出配額）。請稍候片刻再試一次。",
    },
    "error.safety": {
        "en": (
            "Your request was blocked by the content safety filter. "
            "Please rephrase it in a more professional and objective way."
        ),
        "zh": "您的請求被內容安全機制攔截。請以更專業、客觀的方式重新描述您的問題。",
    },
    "error.unsupported_mime": {
        "en": "This file type is not supported. Please convert it to PDF or an image and try again.",
        "zh": "不支援此檔案類型。請將檔案轉換為 PDF 或圖片格式後再試。",
    },
    "error.upstream": {
        "en": "The AI service is temporarily unavailable. Please try again, or reset the conversation.",
        "zh": "AI 服務暫時無法使用。請重試，或重新開始對話。",
    },
    "error.timeout": {
        "en": "The response took too long and was stopped. Please try again.",
        "zh": "回應時間過長，已停止等待。請再試一次。",
    },
    "error.unknown": {
        "en": (
            "Sorry, I encountered an error processing your request. "
            "Please ensure the files are not too large and try again."
        ),
        "zh": "抱歉，處理您的請求時發生錯誤。請確保檔案不會太大並重試。",
    },
    "error.unknown_detail": {
        "en": (
            "Sorry, I encountered an error processing your request ({detail}). "
            "Please ensure the files are not too large and try again."
        ),
        "zh": "抱歉，處理您的請求時發生錯誤（{detail}）。請確保檔案不會太大並重試。",
    },
}


def text(key: str, language: str = DEFAULT_LANGUAGE, **fmt: str) -> str:
    """按语言取文本；缺少该语言时回退到英文。"""

    variants = TEXTS[key]
    value = variants.get(language) or variants[DEFAULT_LANGUAGE]
    return value.format(**fmt) if fmt else value
