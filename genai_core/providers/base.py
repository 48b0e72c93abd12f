"""Request Delegate 抽象接口。

上层 ChatSession 不直接依赖 HTTP 实现，而是依赖此协议：

- 默认实现为 GenerateContentClient（httpx + Generative Language REST API）。
- 测试或其他后端可以注入任意满足协议的对象。

这样会话层只负责历史与错误传播策略，网络细节全部留在 delegate 中。
"""

from typing import Optional, Protocol

from genai_core.domain.models import (
    GenerateContentRequest,
    GenerateContentResult,
    GenerateContentStreamResult,
    RequestOptions,
)


class RequestDelegate(Protocol):
    """执行实际网络调用的协议。

    实现者需要提供：
    - generate_content: 单次调用，返回完整结果；失败时直接抛出异常。
    - generate_content_stream: 流式调用，建立连接后立即返回分片流与聚合结果。
    """

    async def generate_content(
        self,
        api_key: str,
        model: str,
        request: GenerateContentRequest,
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentResult:
        ...

    async def generate_content_stream(
        self,
        api_key: str,
        model: str,
        request: GenerateContentRequest,
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentStreamResult:
        ...
