"""GenerativeModel 的便捷包装。

把 api_key、模型名以及 generation_config / safety_settings / system_instruction
等参数绑定到一个对象上，提供单次生成、流式生成以及创建 ChatSession 的入口。
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from genai_core.chat.session import ChatSession, merge_request_options
from genai_core.config.settings import settings
from genai_core.domain.content import MessageRequest, format_new_content, format_system_instruction
from genai_core.domain.models import (
    Content,
    GenerateContentRequest,
    GenerateContentResult,
    GenerateContentStreamResult,
    RequestOptions,
    StartChatParams,
)
from genai_core.infrastructure.logging.logger import logger as default_logger
from genai_core.providers import create_delegate
from genai_core.providers.base import RequestDelegate
from genai_core.providers.registry import normalize_model_name


class GenerativeModel:
    """绑定了模型与默认参数的客户端。

    未显式传入 model 时使用配置中的 default_model。
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        safety_settings: Optional[List[Dict[str, Any]]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_config: Optional[Dict[str, Any]] = None,
        system_instruction: Optional[Union[str, Content]] = None,
        cached_content: Optional[str] = None,
        request_options: Optional[RequestOptions] = None,
        delegate: Optional[RequestDelegate] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.api_key = api_key
        self.model = normalize_model_name(model or settings.default_model)
        self.generation_config = generation_config
        self.safety_settings = safety_settings
        self.tools = tools
        self.tool_config = tool_config
        self.system_instruction = format_system_instruction(system_instruction)
        self.cached_content = cached_content
        self._request_options = request_options
        self._delegate = delegate or create_delegate()
        self._logger = logger or default_logger

    def _format_request(self, request: Union[MessageRequest, GenerateContentRequest]) -> GenerateContentRequest:
        """把调用方输入补齐为完整请求；请求中未设置的字段使用模型级默认值。"""

        if isinstance(request, GenerateContentRequest):
            gc_request = request
        else:
            gc_request = GenerateContentRequest(contents=[format_new_content(request)])
        return GenerateContentRequest(
            contents=list(gc_request.contents),
            generation_config=gc_request.generation_config or self.generation_config,
            safety_settings=gc_request.safety_settings or self.safety_settings,
            tools=gc_request.tools or self.tools,
            tool_config=gc_request.tool_config or self.tool_config,
            system_instruction=gc_request.system_instruction or self.system_instruction,
            cached_content=gc_request.cached_content or self.cached_content,
        )

    async def generate_content(
        self,
        request: Union[MessageRequest, GenerateContentRequest],
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentResult:
        return await self._delegate.generate_content(
            self.api_key,
            self.model,
            self._format_request(request),
            merge_request_options(self._request_options, request_options),
        )

    async def generate_content_stream(
        self,
        request: Union[MessageRequest, GenerateContentRequest],
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentStreamResult:
        return await self._delegate.generate_content_stream(
            self.api_key,
            self.model,
            self._format_request(request),
            merge_request_options(self._request_options, request_options),
        )

    def start_chat(
        self,
        history: Optional[Sequence[Union[Content, Dict[str, Any]]]] = None,
        **overrides: Any,
    ) -> ChatSession:
        """创建一个共享本模型参数与 delegate 的会话。

        overrides 可覆盖 generation_config、safety_settings、tools、tool_config、
        system_instruction、cached_content。
        """

        params = StartChatParams(
            history=list(history) if history else None,
            generation_config=overrides.get("generation_config", self.generation_config),
            safety_settings=overrides.get("safety_settings", self.safety_settings),
            tools=overrides.get("tools", self.tools),
            tool_config=overrides.get("tool_config", self.tool_config),
            system_instruction=overrides.get("system_instruction", self.system_instruction),
            cached_content=overrides.get("cached_content", self.cached_content),
        )
        return ChatSession(
            self.api_key,
            self.model,
            params,
            request_options=self._request_options,
            delegate=self._delegate,
            logger=self._logger,
        )
