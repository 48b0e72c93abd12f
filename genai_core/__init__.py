"""GenAI Core 顶层包。

该包提供基于 Generative Language API 的多轮对话客户端，
包括配置加载、领域模型、Request Delegate 适配、流式处理与会话历史管理等能力。
"""

__version__ = "0.1.0"

from genai_core.chat import ChatSession, GenerativeModel

__all__ = ["ChatSession", "GenerativeModel", "__version__"]
