"""统一异常模型。

所有对外抛出的错误都继承自 GenerativeAIError，
便于调用方在会话层或 API 层统一捕获与提示。
"""

from typing import Any, Dict, List, Optional


class GenerativeAIError(Exception):
    """异常基类。

    Attributes:
        code: 机器可读错误码（如 "FETCH_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 url、model 等）。
    """

    def __init__(self, message: str, code: str = "GENAI_ERROR", http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(f"[GenerativeAI Error]: {message}")


class NetworkError(GenerativeAIError):
    """网络层错误，例如 DNS 失败、连接被重置等。"""


class AbortError(GenerativeAIError):
    """请求超时或被中止。"""


class FetchError(GenerativeAIError):
    """服务端返回非 2xx 状态码。

    status / status_text 对应 HTTP 状态；error_details 为响应体中
    error.details 字段（若有）。
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        error_details: Optional[List[Dict[str, Any]]] = None,
        code: str = "FETCH_ERROR",
    ):
        super().__init__(message, code=code, http_status=status or 500)
        self.status = status
        self.status_text = status_text
        self.error_details = error_details


class RateLimitError(FetchError):
    """服务端限流（HTTP 429），是否重试由上层决定。"""


class ResponseError(GenerativeAIError):
    """响应被拦截（安全策略、引用检测等）时访问文本抛出。"""

    def __init__(self, message: str, response: Any = None):
        super().__init__(message, code="RESPONSE_BLOCKED")
        self.response = response


class RequestInputError(GenerativeAIError):
    """请求参数不合法（例如在同一条消息中混合 function_response 与其他 part）。"""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_REQUEST")


class ValidationError(GenerativeAIError):
    """配置校验失败，例如缺少 API key。"""
