"""响应读取工具。

把「候选是否被拦截」「如何拼接文本」等规则集中在这里，
会话层与调用方都只通过这些函数读取 GenerateContentResponse。
"""

from typing import List, Optional

from genai_core.domain.exceptions import ResponseError
from genai_core.domain.models import Candidate, FinishReason, FunctionCall, GenerateContentResponse
from genai_core.infrastructure.logging.logger import logger

BAD_FINISH_REASONS = (FinishReason.RECITATION, FinishReason.SAFETY, FinishReason.LANGUAGE)


def had_bad_finish_reason(candidate: Candidate) -> bool:
    return candidate.finish_reason is not None and candidate.finish_reason in BAD_FINISH_REASONS


def format_block_error_message(response: GenerateContentResponse) -> str:
    """返回可读的拦截原因；未被拦截时返回空字符串。"""

    message = ""
    if not response.candidates and response.prompt_feedback:
        message += "Response was blocked"
        if response.prompt_feedback.block_reason:
            message += f" due to {response.prompt_feedback.block_reason}"
        if response.prompt_feedback.block_reason_message:
            message += f": {response.prompt_feedback.block_reason_message}"
    elif response.candidates:
        first = response.candidates[0]
        if had_bad_finish_reason(first):
            message += f"Candidate was blocked due to {first.finish_reason}"
            if first.finish_message:
                message += f": {first.finish_message}"
    return message


def _first_candidate(response: GenerateContentResponse) -> Optional[Candidate]:
    if response.candidates:
        if len(response.candidates) > 1:
            logger.warning(
                "This response had %d candidates. Returning only the first candidate's data. "
                "Access response.candidates directly to use the other candidates.",
                len(response.candidates),
            )
        first = response.candidates[0]
        if had_bad_finish_reason(first):
            raise ResponseError(format_block_error_message(response), response=response)
        return first
    if response.prompt_feedback:
        raise ResponseError(
            f"Text not available. {format_block_error_message(response)}",
            response=response,
        )
    return None


def response_text(response: GenerateContentResponse) -> str:
    """拼接第一个候选的全部文本 part；没有候选时返回空字符串。"""

    first = _first_candidate(response)
    if first is None or first.content is None:
        return ""
    return "".join(p.text for p in first.content.parts if p.text)


def function_calls(response: GenerateContentResponse) -> Optional[List[FunctionCall]]:
    first = _first_candidate(response)
    if first is None or first.content is None:
        return None
    calls = [p.function_call for p in first.content.parts if p.function_call is not None]
    return calls or None
