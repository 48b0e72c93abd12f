"""Request Delegate 集成层。

该包下的模块负责：
- 定义 Request Delegate 抽象接口 (base)。
- 维护端点与模型名规则 (registry)。
- HTTP 请求与错误映射 (request)、SSE 解析与聚合 (stream)。
- 提供默认实现 (generate_content)。
"""

from genai_core.config.settings import settings
from genai_core.providers.base import RequestDelegate
from genai_core.providers.generate_content import GenerateContentClient


def create_delegate(cfg=None) -> RequestDelegate:
    """创建默认 Request Delegate，默认使用全局配置。"""

    return GenerateContentClient(cfg or settings)
