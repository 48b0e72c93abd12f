"""默认的 Request Delegate 实现。

本模块负责：

1. 接收统一的 GenerateContentRequest。
2. 序列化为 REST JSON 并通过 request 层发送。
3. 将响应 JSON 解析为 GenerateContentResponse；流式时交给 stream 层处理 SSE。
"""

from typing import Optional

from genai_core.config.settings import settings
from genai_core.domain.models import (
    GenerateContentRequest,
    GenerateContentResponse,
    GenerateContentResult,
    GenerateContentStreamResult,
    RequestOptions,
    Task,
)
from genai_core.providers.request import make_model_request, open_stream
from genai_core.providers.stream import process_stream


class GenerateContentClient:
    """基于 httpx 的 generateContent 客户端。

    - name: 名称（供日志/调试使用）。
    - generate_content / generate_content_stream: 满足 RequestDelegate 协议。
    """

    name = "generativelanguage"

    def __init__(self, cfg=settings):
        # Settings 里包含 base_url、api_version、超时等配置
        self._settings = cfg

    async def generate_content(
        self,
        api_key: str,
        model: str,
        request: GenerateContentRequest,
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentResult:
        data = await make_model_request(
            self._settings,
            api_key,
            model,
            Task.GENERATE_CONTENT,
            request.to_dict(),
            request_options,
        )
        return GenerateContentResult(response=GenerateContentResponse.from_dict(data))

    async def generate_content_stream(
        self,
        api_key: str,
        model: str,
        request: GenerateContentRequest,
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentStreamResult:
        client, resp = await open_stream(
            self._settings,
            api_key,
            model,
            Task.STREAM_GENERATE_CONTENT,
            request.to_dict(),
            request_options,
        )

        async def close() -> None:
            await resp.aclose()
            await client.aclose()

        return process_stream(resp.aiter_lines(), on_close=close)
