"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在控制器层统一捕获并转换为面向用户的提示文本。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 错误描述（原始信息，不直接展示给用户）。
        http_status: 上游返回的 HTTP 状态码，默认 400。
        extra: 其他补充字段（例如 provider、status 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、读超时等。"""


class StreamTimeoutError(NetworkError):
    """等待下一个流式片段超过 stream_timeout。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流或配额耗尽，不做自动重试。"""


class ValidationError(BusinessError):
    """参数或配置校验失败（如缺少 API 密钥）。"""


class ContentBlockedError(BusinessError):
    """内容安全策略拒绝了请求或回答。"""


class UnsupportedMimeTypeError(BusinessError):
    """附件的 MIME 类型不被支持。"""
