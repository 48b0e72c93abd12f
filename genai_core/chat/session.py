"""多轮对话会话。

ChatSession 维护一份消息历史，把每条新消息连同历史一起交给
Request Delegate，并按调用结果决定是否写入历史：

- 单次发送：delegate 抛出的异常原样向上传播，历史不变；会话不会因此失效。
- 流式发送：建立连接失败同样直接抛出；建立成功后立即返回分片流，
  聚合结果由后台任务等待并提交历史，后台阶段的异常只记录日志、不会抛给调用方。
- 被拦截（引用检测、安全策略等）或无效的响应：不写入任何消息。

同一会话上的发送是串行的：每次发送都会先等待上一次发送（包括流式的后台聚合）结束。
"""

import asyncio
import dataclasses
import logging
from typing import Any, Dict, List, Optional

from genai_core.domain.content import (
    MessageRequest,
    format_new_content,
    format_system_instruction,
    validate_chat_history,
)
from genai_core.domain.models import (
    Content,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerateContentResult,
    GenerateContentStreamResult,
    RequestOptions,
    StartChatParams,
)
from genai_core.domain.response_helpers import format_block_error_message, had_bad_finish_reason
from genai_core.infrastructure.logging.logger import logger as default_logger
from genai_core.providers import create_delegate
from genai_core.providers.base import RequestDelegate


def is_valid_response(response: GenerateContentResponse) -> bool:
    """判断响应能否作为一轮完整回答写入历史。"""

    if response.candidates is None or len(response.candidates) == 0:
        return False
    first = response.candidates[0]
    if had_bad_finish_reason(first):
        return False
    content = first.content
    if content is None or len(content.parts) == 0:
        return False
    for part in content.parts:
        if part is None or part.is_empty():
            return False
        if part.text is not None and part.text == "":
            return False
    return True


def merge_request_options(
    base: Optional[RequestOptions],
    override: Optional[RequestOptions],
) -> Optional[RequestOptions]:
    """单次调用的参数覆盖会话级参数（仅覆盖非 None 字段）。"""

    if override is None:
        return base
    if base is None:
        return override
    changes = {f.name: getattr(override, f.name) for f in dataclasses.fields(override)}
    return dataclasses.replace(base, **{k: v for k, v in changes.items() if v is not None})


class ChatSession:
    """一个与模型进行多轮对话的会话。

    Args:
        api_key: 每次请求使用的 API key。
        model: 模型名，例如 "gemini-1.5-flash" 或 "models/gemini-1.5-flash"。
        params: 会话参数（初始历史、generation_config、system_instruction 等）。
        request_options: 会话级传输参数（超时、api_version、自定义头）。
        delegate: Request Delegate，默认使用 GenerateContentClient。
        logger: 诊断日志输出，默认使用包内 logger；测试可注入记录用的替身。
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        params: Optional[StartChatParams] = None,
        request_options: Optional[RequestOptions] = None,
        delegate: Optional[RequestDelegate] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._api_key = api_key
        self.model = model
        self.params = params or StartChatParams()
        self._request_options = request_options
        self._delegate = delegate or create_delegate()
        self._logger = logger or default_logger
        self._history: List[Content] = []
        # 首次发送时在运行中的事件循环里创建
        self._send_lock: Optional[asyncio.Lock] = None
        # 流式发送后负责提交历史的后台任务
        self._pending: Optional[asyncio.Task] = None

        if self.params.history:
            history = [c if isinstance(c, Content) else Content.from_dict(c) for c in self.params.history]
            validate_chat_history(history)
            self._history = history

    async def get_history(self) -> List[Content]:
        """等待进行中的发送结束后，返回历史的快照。"""

        async with self._lock():
            await self._wait_pending()
            return list(self._history)

    async def send_message(
        self,
        request: MessageRequest,
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentResult:
        """发送一条消息并等待完整回答。

        delegate 的异常原样抛出，此时历史不做任何修改。
        """

        async with self._lock():
            await self._wait_pending()
            new_content = format_new_content(request)
            gc_request = self._build_request(new_content)
            self._log(logging.DEBUG, "Calling delegate", message_count=len(gc_request.contents))
            result = await self._delegate.generate_content(
                self._api_key,
                self.model,
                gc_request,
                merge_request_options(self._request_options, request_options),
            )
            self._commit(new_content, result.response, "send_message")
            return result

    async def send_message_stream(
        self,
        request: MessageRequest,
        request_options: Optional[RequestOptions] = None,
    ) -> GenerateContentStreamResult:
        """发送一条消息并以流式方式返回回答。

        连接建立失败时直接抛出；建立成功后立即返回，聚合结果在后台提交。
        """

        async with self._lock():
            await self._wait_pending()
            new_content = format_new_content(request)
            gc_request = self._build_request(new_content)
            self._log(logging.DEBUG, "Calling delegate (stream)", message_count=len(gc_request.contents))
            stream_result = await self._delegate.generate_content_stream(
                self._api_key,
                self.model,
                gc_request,
                merge_request_options(self._request_options, request_options),
            )
            # 后台任务与调用方都要读取聚合结果，统一包装成 Future
            aggregate = asyncio.ensure_future(stream_result.response)
            self._pending = asyncio.get_running_loop().create_task(
                self._finish_stream(new_content, aggregate)
            )
            return dataclasses.replace(stream_result, response=aggregate)

    def _lock(self) -> asyncio.Lock:
        if self._send_lock is None:
            self._send_lock = asyncio.Lock()
        return self._send_lock

    async def _wait_pending(self) -> None:
        pending = self._pending
        if pending is not None:
            await pending
            self._pending = None

    async def _finish_stream(self, new_content: Content, aggregate: asyncio.Future) -> None:
        try:
            response = await aggregate
            self._commit(new_content, response, "send_message_stream")
        except Exception as e:
            self._logger.error(
                "send_message_stream() failed while aggregating the response: %s",
                e,
                exc_info=e,
                extra={"extra": {"model": self.model}},
            )

    def _build_request(self, new_content: Content) -> GenerateContentRequest:
        p = self.params
        return GenerateContentRequest(
            contents=[*self._history, new_content],
            generation_config=p.generation_config,
            safety_settings=p.safety_settings,
            tools=p.tools,
            tool_config=p.tool_config,
            system_instruction=format_system_instruction(p.system_instruction),
            cached_content=p.cached_content,
        )

    def _commit(self, new_content: Content, response: GenerateContentResponse, method: str) -> None:
        if is_valid_response(response):
            model_content = response.candidates[0].content
            if not model_content.role:
                model_content = Content(role="model", parts=model_content.parts)
            self._history.append(new_content)
            self._history.append(model_content)
            self._log(logging.INFO, "Stored chat turn", method=method, history_length=len(self._history))
            return
        block_message = format_block_error_message(response)
        if block_message:
            self._logger.warning(
                "%s() was unsuccessful. %s. Inspect response object for details.",
                method,
                block_message,
            )

    def _log(self, level: int, message: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {"model": self.model}
        payload.update(fields)
        self._logger.log(level, message, extra={"extra": payload})
