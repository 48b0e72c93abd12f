"""服务端点与模型名配置。

本模块集中维护：

- 默认的 base_url / api_version / 客户端标识。
- 模型名规范化：调用方可以写 "gemini-1.5-flash"，
  也可以写完整资源名 "models/gemini-1.5-flash" 或 "tunedModels/xxx"。

上层只关心模型名，URL 如何拼接由这里集中决定，便于后续切换版本。"""

from dataclasses import dataclass
from typing import Optional

from genai_core import __version__
from genai_core.domain.models import RequestOptions, Task


DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_API_VERSION = "v1beta"
PACKAGE_LOG_HEADER = f"genai-core/{__version__}"


@dataclass
class EndpointConfig:
    """一次请求实际使用的端点配置。"""

    base_url: str
    api_version: str


def resolve_endpoint(
    settings,
    request_options: Optional[RequestOptions] = None,
) -> EndpointConfig:
    """请求级参数优先，其次是 settings，最后是内置默认值。"""

    opts = request_options or RequestOptions()
    base = opts.base_url or getattr(settings, "base_url", None) or DEFAULT_BASE_URL
    version = opts.api_version or getattr(settings, "api_version", None) or DEFAULT_API_VERSION
    return EndpointConfig(base_url=base.rstrip("/"), api_version=version)


def normalize_model_name(model: str) -> str:
    """补齐 models/ 前缀；已包含资源路径的名字原样返回。"""

    if not model:
        raise ValueError("Must provide a model name. Example: gemini-1.5-flash")
    if "/" in model:
        return model
    return f"models/{model}"


def build_request_url(endpoint: EndpointConfig, model: str, task: Task, stream: bool) -> str:
    url = f"{endpoint.base_url}/{endpoint.api_version}/{normalize_model_name(model)}:{task.value}"
    if stream:
        url += "?alt=sse"
    return url
