"""对外 API 服务模块。

提供简化的函数接口供上层应用调用。
"""

from typing import Any, Dict, Optional, Sequence

from genai_core.chat.model import GenerativeModel
from genai_core.chat.session import ChatSession
from genai_core.config.settings import settings
from genai_core.domain.exceptions import ValidationError
from genai_core.domain.models import Content
from genai_core.infrastructure.logging.logger import logger


_model: Optional[GenerativeModel] = None


def get_default_model() -> GenerativeModel:
    """获取按全局配置创建的 GenerativeModel（单例）。"""
    global _model
    if _model is None:
        if not settings.google_api_key:
            raise ValidationError("GOOGLE_API_KEY not set", code="MISSING_API_KEY")
        _model = GenerativeModel(api_key=settings.google_api_key, model=settings.default_model)
    return _model


def start_chat(history: Optional[Sequence[Content]] = None) -> ChatSession:
    """使用默认模型创建新会话。"""
    return get_default_model().start_chat(history=history)


async def run_chat_turn(session: ChatSession, user_input: str) -> Dict[str, Any]:
    """在给定会话上执行一轮对话。

    Args:
        session: 会话实例
        user_input: 用户输入

    Returns:
        包含回答文本、token 统计和当前历史长度的字典

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    try:
        result = await session.send_message(user_input)
        usage = result.response.usage_metadata
        history = await session.get_history()
        return {
            "model": session.model,
            "text": result.response.text(),
            "usage": {
                "prompt_tokens": usage.prompt_token_count,
                "completion_tokens": usage.candidates_token_count,
                "total_tokens": usage.total_token_count,
            } if usage else None,
            "history_length": len(history),
        }
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {
            "model": session.model,
            "error": str(e),
        }})
        raise
