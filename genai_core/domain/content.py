"""消息构造与历史校验。

- format_new_content: 把调用方传入的 str / Part / dict 统一转换为 Content。
- format_system_instruction: 把 system instruction 统一转换为 Content。
- validate_chat_history: 校验会话初始历史（角色顺序、各角色允许的 part 类型）。
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from genai_core.domain.exceptions import GenerativeAIError, RequestInputError
from genai_core.domain.models import POSSIBLE_ROLES, PART_FIELDS, Content, Part


PartLike = Union[str, Part, Dict[str, Any]]
MessageRequest = Union[PartLike, Sequence[PartLike]]

# 每种角色允许出现的 part 类型
VALID_PARTS_PER_ROLE: Dict[str, List[str]] = {
    "user": ["text", "inline_data"],
    "function": ["function_response"],
    "model": ["text", "function_call", "executable_code", "code_execution_result"],
    "system": ["text"],
}


def _to_part(item: PartLike) -> Part:
    if isinstance(item, Part):
        return item
    if isinstance(item, str):
        return Part(text=item)
    if isinstance(item, dict):
        return Part.from_dict(item)
    raise RequestInputError(f"Unsupported part type: {type(item).__name__}")


def format_new_content(request: MessageRequest) -> Content:
    """把一次 send_message 的入参转换为一条新的 Content。

    单个 str / Part / dict 视为只有一个 part 的消息，list / tuple 为多个 part。
    只包含 function_response 的消息使用 "function" 角色，
    其余一律为 "user"；两者不能混在同一条消息里。
    """

    if isinstance(request, (str, Part, dict)):
        parts = [_to_part(request)]
    elif isinstance(request, (list, tuple)):
        parts = [_to_part(item) for item in request]
    else:
        raise RequestInputError(f"Unsupported request type: {type(request).__name__}")

    user_parts: List[Part] = []
    function_parts: List[Part] = []
    for part in parts:
        if part.function_response is not None:
            function_parts.append(part)
        else:
            user_parts.append(part)

    if user_parts and function_parts:
        raise RequestInputError(
            "Within a single message, FunctionResponse cannot be mixed with other type of part in "
            "the request for sending chat message."
        )
    if not user_parts and not function_parts:
        raise RequestInputError("No content is provided for sending chat message.")

    if function_parts:
        return Content(role="function", parts=tuple(function_parts))
    return Content(role="user", parts=tuple(user_parts))


def format_system_instruction(instruction: Optional[Union[str, Part, Content, Dict[str, Any]]]) -> Optional[Content]:
    if instruction is None:
        return None
    if isinstance(instruction, Content):
        return instruction
    if isinstance(instruction, str):
        return Content(role="system", parts=(Part(text=instruction),))
    if isinstance(instruction, Part):
        return Content(role="system", parts=(instruction,))
    if "parts" in instruction:
        return Content.from_dict(instruction, default_role="system")
    return Content(role="system", parts=(Part.from_dict(instruction),))


def validate_chat_history(history: Sequence[Content]) -> None:
    """校验会话初始历史，不合法时抛出 GenerativeAIError。"""

    prev_content = False
    for curr in history:
        role, parts = curr.role, curr.parts
        if not prev_content and role != "user":
            raise GenerativeAIError(f"First content should be with role 'user', got {role}")
        if role not in POSSIBLE_ROLES:
            raise GenerativeAIError(
                f"Each item should include role field. Got {role} but valid roles are: {list(POSSIBLE_ROLES)}"
            )
        if not isinstance(parts, (list, tuple)):
            raise GenerativeAIError("Content should have 'parts' property with an array of Parts")
        if len(parts) == 0:
            raise GenerativeAIError("Each Content should have at least one part")

        counts = {name: 0 for name, _ in PART_FIELDS}
        for part in parts:
            for kind in part.kinds():
                counts[kind] += 1

        valid_parts = VALID_PARTS_PER_ROLE[role]
        for name, wire in PART_FIELDS:
            if name not in valid_parts and counts[name] > 0:
                raise GenerativeAIError(f"Content with role '{role}' can't contain '{wire}' part")

        prev_content = True
