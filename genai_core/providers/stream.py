"""流式响应处理。

远端使用 SSE（`alt=sse`）逐条推送 JSON 分片。本模块负责：

- iter_sse_payloads: 把文本行解析为 JSON 分片。
- aggregate_responses: 把全部分片合并为一个完整响应。
- process_stream: 用一个后台 pump 任务同时喂给
  「调用方消费的分片流」与「聚合结果 future」，两者互不阻塞。
"""

import asyncio
import json
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Set

from genai_core.domain.exceptions import GenerativeAIError
from genai_core.domain.models import (
    Candidate,
    Content,
    GenerateContentResponse,
    GenerateContentStreamResult,
    Part,
)
from genai_core.infrastructure.logging.logger import logger

# 持有 pump 任务的引用，避免被提前回收
_background_tasks: Set[asyncio.Task] = set()

_END = object()


class _StreamFailure:
    def __init__(self, error: BaseException):
        self.error = error


def _parse_payload(data: str) -> Dict[str, Any]:
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        raise GenerativeAIError("Error parsing JSON response", code="STREAM_PARSE_ERROR", data=data)


async def iter_sse_payloads(lines: AsyncIterator[str]) -> AsyncIterator[Dict[str, Any]]:
    """按 SSE 规则解析：同一事件内的多行 data: 拼接，空行表示事件结束。"""

    data_lines: List[str] = []
    async for raw in lines:
        line = raw.rstrip("\r")
        if not line:
            if data_lines:
                yield _parse_payload("\n".join(data_lines))
                data_lines = []
            continue
        if line.startswith(":"):
            # SSE 注释行
            continue
        if line.startswith("data:"):
            data_lines.append(line[5:].strip())
        elif data_lines:
            raise GenerativeAIError("Failed to parse stream", code="STREAM_PARSE_ERROR", data=line)
    if data_lines:
        yield _parse_payload("\n".join(data_lines))


class _CandidateAccumulator:
    def __init__(self, index: int):
        self.index = index
        self.role: Optional[str] = None
        self.parts: List[Part] = []
        self.has_content = False
        self.finish_reason = None
        self.finish_message = None
        self.safety_ratings = []
        self.citation_metadata = None

    def add(self, candidate: Candidate) -> None:
        self.finish_reason = candidate.finish_reason
        self.finish_message = candidate.finish_message
        self.safety_ratings = candidate.safety_ratings
        self.citation_metadata = candidate.citation_metadata
        if candidate.content is None:
            return
        self.has_content = True
        self.role = self.role or candidate.content.role or "model"
        for part in candidate.content.parts:
            if part.text is not None and part.kinds() == ["text"]:
                if part.text == "":
                    continue
                if self.parts and self.parts[-1].kinds() == ["text"]:
                    self.parts[-1] = Part(text=self.parts[-1].text + part.text)
                    continue
            self.parts.append(part)

    def build(self) -> Candidate:
        content = None
        if self.has_content:
            content = Content(role=self.role or "model", parts=tuple(self.parts))
        return Candidate(
            index=self.index,
            content=content,
            finish_reason=self.finish_reason,
            finish_message=self.finish_message,
            safety_ratings=self.safety_ratings,
            citation_metadata=self.citation_metadata,
        )


def aggregate_responses(responses: List[GenerateContentResponse]) -> GenerateContentResponse:
    """合并流式分片：同一 index 的候选文本依次拼接，其余字段取最后一次出现的值。"""

    aggregated = GenerateContentResponse(
        prompt_feedback=responses[-1].prompt_feedback if responses else None,
    )
    accumulators: Dict[int, _CandidateAccumulator] = {}
    for response in responses:
        for position, candidate in enumerate(response.candidates or []):
            index = candidate.index if candidate.index is not None else position
            acc = accumulators.setdefault(index, _CandidateAccumulator(index))
            acc.add(candidate)
        if response.usage_metadata:
            aggregated.usage_metadata = response.usage_metadata
    if accumulators:
        aggregated.candidates = [accumulators[i].build() for i in sorted(accumulators)]
    return aggregated


def process_stream(
    lines: AsyncIterator[str],
    on_close: Optional[Callable[[], Awaitable[None]]] = None,
) -> GenerateContentStreamResult:
    """启动 pump 任务并返回 (分片流, 聚合结果)。

    分片在 pump 中缓存到队列，即使调用方不消费 stream，
    聚合结果也会在流结束后完成。
    """

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    aggregate: asyncio.Future = loop.create_future()
    # 只读取异常以免未等待时出现 "exception was never retrieved"，调用方 await 时仍会抛出
    aggregate.add_done_callback(lambda f: f.cancelled() or f.exception())

    async def pump() -> None:
        collected: List[GenerateContentResponse] = []
        try:
            async for payload in iter_sse_payloads(lines):
                chunk = GenerateContentResponse.from_dict(payload)
                collected.append(chunk)
                await queue.put(chunk)
            aggregate.set_result(aggregate_responses(collected))
            await queue.put(_END)
        except Exception as e:
            if not aggregate.done():
                aggregate.set_exception(e)
            await queue.put(_StreamFailure(e))
        finally:
            if on_close is not None:
                try:
                    await on_close()
                except Exception as e:
                    logger.warning("Failed to close stream: %s", e, exc_info=e)

    task = loop.create_task(pump())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    async def stream() -> AsyncIterator[GenerateContentResponse]:
        while True:
            item = await queue.get()
            if item is _END:
                return
            if isinstance(item, _StreamFailure):
                raise item.error
            yield item

    return GenerateContentStreamResult(stream=stream(), response=aggregate)
