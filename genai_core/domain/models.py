"""统一的内容、请求与响应数据模型。

本模块定义了会话层与 Request Delegate 之间共享的标准数据结构：

- Part / Content: 一条消息及其组成部分（文本、内联数据、函数调用等）。
- GenerateContentRequest: 发给 generateContent 接口的完整请求。
- GenerateContentResponse: 解析后的统一响应（候选、拦截反馈、用量）。
- GenerateContentResult / GenerateContentStreamResult: 单次/流式调用的返回值。

远端 REST API 使用 camelCase 字段（inlineData、finishReason...），
各模型的 to_dict / from_dict 负责在 JSON 与 dataclass 之间转换，
Python 侧统一使用 snake_case。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Dict, List, Literal, Optional, Tuple, Union


# 会话中的消息角色
Role = Literal["user", "model", "function", "system"]

POSSIBLE_ROLES: Tuple[str, ...] = ("user", "model", "function", "system")


class FinishReason(str, Enum):
    FINISH_REASON_UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    LANGUAGE = "LANGUAGE"
    BLOCKLIST = "BLOCKLIST"
    PROHIBITED_CONTENT = "PROHIBITED_CONTENT"
    SPII = "SPII"
    MALFORMED_FUNCTION_CALL = "MALFORMED_FUNCTION_CALL"
    OTHER = "OTHER"


class BlockReason(str, Enum):
    BLOCKED_REASON_UNSPECIFIED = "BLOCKED_REASON_UNSPECIFIED"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


class Task(str, Enum):
    """REST 接口上的方法名（URL 中冒号后的部分）。"""

    GENERATE_CONTENT = "generateContent"
    STREAM_GENERATE_CONTENT = "streamGenerateContent"


def _pick(data: Dict[str, Any], camel: str, snake: str) -> Any:
    """同时兼容 camelCase（线上 JSON）与 snake_case（调用方手写 dict）。"""

    if camel in data:
        return data[camel]
    return data.get(snake)


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


# ---- Part ----


@dataclass(frozen=True)
class InlineData:
    mime_type: str
    data: str  # base64

    def to_dict(self) -> Dict[str, Any]:
        return {"mimeType": self.mime_type, "data": self.data}


@dataclass(frozen=True)
class FileData:
    mime_type: str
    file_uri: str

    def to_dict(self) -> Dict[str, Any]:
        return {"mimeType": self.mime_type, "fileUri": self.file_uri}


@dataclass(frozen=True)
class FunctionCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "args": self.args}


@dataclass(frozen=True)
class FunctionResponse:
    name: str
    response: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "response": self.response}


@dataclass(frozen=True)
class ExecutableCode:
    language: str
    code: str

    def to_dict(self) -> Dict[str, Any]:
        return {"language": self.language, "code": self.code}


@dataclass(frozen=True)
class CodeExecutionResult:
    outcome: str
    output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"outcome": self.outcome, "output": self.output})


# Part 上可能出现的字段，(python 属性名, JSON 字段名)
PART_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("text", "text"),
    ("inline_data", "inlineData"),
    ("function_call", "functionCall"),
    ("function_response", "functionResponse"),
    ("file_data", "fileData"),
    ("executable_code", "executableCode"),
    ("code_execution_result", "codeExecutionResult"),
)


@dataclass(frozen=True)
class Part:
    """消息中的一个片段，通常只会设置其中一个字段。"""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None
    function_call: Optional[FunctionCall] = None
    function_response: Optional[FunctionResponse] = None
    file_data: Optional[FileData] = None
    executable_code: Optional[ExecutableCode] = None
    code_execution_result: Optional[CodeExecutionResult] = None

    def kinds(self) -> List[str]:
        """返回本 part 实际携带的字段名（snake_case）。"""

        return [name for name, _ in PART_FIELDS if getattr(self, name) is not None]

    def is_empty(self) -> bool:
        return not self.kinds()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for name, wire in PART_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            payload[wire] = value if isinstance(value, str) else value.to_dict()
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Part":
        inline = _pick(data, "inlineData", "inline_data")
        file_data = _pick(data, "fileData", "file_data")
        call = _pick(data, "functionCall", "function_call")
        fn_resp = _pick(data, "functionResponse", "function_response")
        code = _pick(data, "executableCode", "executable_code")
        code_result = _pick(data, "codeExecutionResult", "code_execution_result")
        return cls(
            text=data.get("text"),
            inline_data=InlineData(
                mime_type=_pick(inline, "mimeType", "mime_type"), data=inline.get("data", "")
            ) if inline is not None else None,
            file_data=FileData(
                mime_type=_pick(file_data, "mimeType", "mime_type"),
                file_uri=_pick(file_data, "fileUri", "file_uri"),
            ) if file_data is not None else None,
            function_call=FunctionCall(
                name=call.get("name", ""), args=call.get("args") or {}
            ) if call is not None else None,
            function_response=FunctionResponse(
                name=fn_resp.get("name", ""), response=fn_resp.get("response") or {}
            ) if fn_resp is not None else None,
            executable_code=ExecutableCode(
                language=code.get("language", ""), code=code.get("code", "")
            ) if code is not None else None,
            code_execution_result=CodeExecutionResult(
                outcome=code_result.get("outcome", ""), output=code_result.get("output")
            ) if code_result is not None else None,
        )


@dataclass(frozen=True)
class Content:
    """一条消息：角色 + 若干 Part。追加到历史后不再修改。"""

    role: str
    parts: Tuple[Part, ...] = ()

    def __post_init__(self):
        # 允许传入 list，统一冻结为 tuple
        if not isinstance(self.parts, tuple):
            object.__setattr__(self, "parts", tuple(self.parts))

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [p.to_dict() for p in self.parts]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_role: str = "") -> "Content":
        raw_parts = data.get("parts") or []
        parts = [p if isinstance(p, Part) else Part.from_dict(p) for p in raw_parts]
        return cls(role=data.get("role") or default_role, parts=tuple(parts))


# ---- Response ----


@dataclass
class SafetyRating:
    category: str
    probability: str
    blocked: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SafetyRating":
        return cls(
            category=data.get("category", ""),
            probability=data.get("probability", ""),
            blocked=data.get("blocked"),
        )


@dataclass
class CitationSource:
    start_index: Optional[int] = None
    end_index: Optional[int] = None
    uri: Optional[str] = None
    license: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CitationSource":
        return cls(
            start_index=data.get("startIndex"),
            end_index=data.get("endIndex"),
            uri=data.get("uri"),
            license=data.get("license"),
        )


@dataclass
class CitationMetadata:
    citation_sources: List[CitationSource] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CitationMetadata":
        # v1 使用 citationSources，v1beta 部分模型返回 citations
        sources = data.get("citationSources") or data.get("citations") or []
        return cls(citation_sources=[CitationSource.from_dict(s) for s in sources])


@dataclass
class Candidate:
    """单个候选回答（会话只使用 index=0 的第一条）。"""

    index: Optional[int] = None
    content: Optional[Content] = None
    finish_reason: Optional[str] = None
    finish_message: Optional[str] = None
    safety_ratings: List[SafetyRating] = field(default_factory=list)
    citation_metadata: Optional[CitationMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
        content = data.get("content")
        citation = data.get("citationMetadata")
        return cls(
            index=data.get("index"),
            content=Content.from_dict(content) if content is not None else None,
            finish_reason=data.get("finishReason"),
            finish_message=data.get("finishMessage"),
            safety_ratings=[SafetyRating.from_dict(r) for r in data.get("safetyRatings") or []],
            citation_metadata=CitationMetadata.from_dict(citation) if citation is not None else None,
        )


@dataclass
class PromptFeedback:
    block_reason: Optional[str] = None
    block_reason_message: Optional[str] = None
    safety_ratings: List[SafetyRating] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PromptFeedback":
        return cls(
            block_reason=data.get("blockReason"),
            block_reason_message=data.get("blockReasonMessage"),
            safety_ratings=[SafetyRating.from_dict(r) for r in data.get("safetyRatings") or []],
        )


@dataclass
class UsageMetadata:
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0
    cached_content_token_count: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageMetadata":
        return cls(
            prompt_token_count=data.get("promptTokenCount", 0),
            candidates_token_count=data.get("candidatesTokenCount", 0),
            total_token_count=data.get("totalTokenCount", 0),
            cached_content_token_count=data.get("cachedContentTokenCount"),
        )


@dataclass
class GenerateContentResponse:
    """一次 generateContent 调用（或一个流式分片）的解析结果。

    - candidates: 候选回答列表；被拦截时可能为空或为 None。
    - prompt_feedback: 提示词本身被拦截时的反馈。
    - usage_metadata: token 统计。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    candidates: Optional[List[Candidate]] = None
    prompt_feedback: Optional[PromptFeedback] = None
    usage_metadata: Optional[UsageMetadata] = None
    raw: Optional[dict] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerateContentResponse":
        candidates = data.get("candidates")
        feedback = data.get("promptFeedback")
        usage = data.get("usageMetadata")
        return cls(
            candidates=[Candidate.from_dict(c) for c in candidates] if candidates is not None else None,
            prompt_feedback=PromptFeedback.from_dict(feedback) if feedback is not None else None,
            usage_metadata=UsageMetadata.from_dict(usage) if usage is not None else None,
            raw=data,
        )

    def text(self) -> str:
        from genai_core.domain.response_helpers import response_text

        return response_text(self)

    def function_calls(self) -> Optional[List[FunctionCall]]:
        from genai_core.domain.response_helpers import function_calls

        return function_calls(self)


# ---- Request ----


@dataclass
class RequestOptions:
    """单次请求的传输层参数，由默认 Request Delegate 使用。"""

    timeout: Optional[float] = None
    api_version: Optional[str] = None
    base_url: Optional[str] = None
    custom_headers: Optional[Dict[str, str]] = None
    api_client: Optional[str] = None


@dataclass
class GenerateContentRequest:
    """一次完整的 generateContent 请求。

    contents 为「历史 + 本轮新消息」；其余字段均可选，原样透传给
    远端（generation_config 等使用 API 文档中的 camelCase 键）。
    """

    contents: List[Content]
    generation_config: Optional[Dict[str, Any]] = None
    safety_settings: Optional[List[Dict[str, Any]]] = None
    tools: Optional[List[Dict[str, Any]]] = None
    tool_config: Optional[Dict[str, Any]] = None
    system_instruction: Optional[Content] = None
    cached_content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "contents": [c.to_dict() for c in self.contents],
                "generationConfig": self.generation_config,
                "safetySettings": self.safety_settings,
                "tools": self.tools,
                "toolConfig": self.tool_config,
                "systemInstruction": self.system_instruction.to_dict() if self.system_instruction else None,
                "cachedContent": self.cached_content,
            }
        )


@dataclass
class StartChatParams:
    """创建会话时的可选参数，会作用于该会话发出的每个请求。"""

    history: Optional[List[Content]] = None
    generation_config: Optional[Dict[str, Any]] = None
    safety_settings: Optional[List[Dict[str, Any]]] = None
    tools: Optional[List[Dict[str, Any]]] = None
    tool_config: Optional[Dict[str, Any]] = None
    system_instruction: Optional[Union[str, Content]] = None
    cached_content: Optional[str] = None


# ---- Result ----


@dataclass
class GenerateContentResult:
    response: GenerateContentResponse


@dataclass
class GenerateContentStreamResult:
    """流式调用的返回值。

    - stream: 逐个产出分片的异步迭代器，由调用方消费。
    - response: 流结束后得到聚合完整响应的 awaitable，会话层在后台等待它。
    """

    stream: AsyncIterator[GenerateContentResponse]
    response: Awaitable[GenerateContentResponse]
