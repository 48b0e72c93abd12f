"""HTTP 请求层。

负责：

1. 拼接 URL 与请求头（API key、客户端标识、自定义头）。
2. 通过 httpx.AsyncClient 发送请求。
3. 把网络错误/超时/限流/服务端错误映射为统一异常。

流式请求需要在读取完 SSE 之前保持连接，因此 open_stream 返回
(client, response)，由调用方负责关闭。
"""

from typing import Any, Dict, Optional, Tuple

import httpx

from genai_core.domain.exceptions import (
    AbortError,
    FetchError,
    NetworkError,
    RateLimitError,
    RequestInputError,
    ValidationError,
)
from genai_core.domain.models import RequestOptions, Task
from genai_core.providers.registry import PACKAGE_LOG_HEADER, build_request_url, resolve_endpoint


def build_headers(api_key: str, request_options: Optional[RequestOptions] = None) -> Dict[str, str]:
    opts = request_options or RequestOptions()
    client_header = PACKAGE_LOG_HEADER
    if opts.api_client:
        client_header = f"{opts.api_client} {PACKAGE_LOG_HEADER}"
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-client": client_header,
        "x-goog-api-key": api_key,
    }
    for name, value in (opts.custom_headers or {}).items():
        lowered = name.lower()
        if lowered == "x-goog-api-client":
            raise RequestInputError(f"Cannot set reserved header name {name}")
        if lowered in {k.lower() for k in headers}:
            raise RequestInputError(f"Header name {name} can only be set once.")
        headers[name] = value
    return headers


def _timeout(settings, request_options: Optional[RequestOptions]) -> float:
    if request_options and request_options.timeout is not None and request_options.timeout >= 0:
        return request_options.timeout
    return getattr(settings, "http_timeout", 60.0)


def _error_from_response(url: str, resp: httpx.Response) -> FetchError:
    """把非 2xx 响应转换为 FetchError（429 为 RateLimitError）。"""

    message = resp.text
    error_details = None
    try:
        body = resp.json()
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}
        message = error.get("message") or message
        error_details = error.get("details")
        if error_details:
            message += f" {error_details}"
    except ValueError:
        pass
    cls = RateLimitError if resp.status_code == 429 else FetchError
    return cls(
        f"Error fetching from {url}: [{resp.status_code} {resp.reason_phrase}] {message}",
        status=resp.status_code,
        status_text=resp.reason_phrase,
        error_details=error_details,
        code="RATE_LIMIT" if resp.status_code == 429 else "FETCH_ERROR",
    )


def _prepare(settings, api_key: str, model: str, task: Task, stream: bool, request_options):
    if not api_key:
        # 配置缺失走 ValidationError，方便上层统一处理
        raise ValidationError("API key not set", code="MISSING_API_KEY")
    endpoint = resolve_endpoint(settings, request_options)
    url = build_request_url(endpoint, model, task, stream)
    return url, build_headers(api_key, request_options)


async def make_model_request(
    settings,
    api_key: str,
    model: str,
    task: Task,
    body: Dict[str, Any],
    request_options: Optional[RequestOptions] = None,
) -> Dict[str, Any]:
    """执行一次非流式请求，返回响应 JSON。"""

    url, headers = _prepare(settings, api_key, model, task, False, request_options)
    try:
        async with httpx.AsyncClient(timeout=_timeout(settings, request_options), trust_env=False) as client:
            resp = await client.post(url, json=body, headers=headers)
    except httpx.TimeoutException as e:
        raise AbortError(f"Request aborted when fetching {url}: {e}", code="ABORTED")
    except httpx.RequestError as e:
        # 网络错误：DNS 失败、连接超时等
        raise NetworkError(f"Error fetching from {url}: {e}", code="NETWORK_ERROR")
    if resp.status_code >= 400:
        raise _error_from_response(url, resp)
    return resp.json()


async def open_stream(
    settings,
    api_key: str,
    model: str,
    task: Task,
    body: Dict[str, Any],
    request_options: Optional[RequestOptions] = None,
) -> Tuple[httpx.AsyncClient, httpx.Response]:
    """建立一次流式请求，成功时返回仍处于打开状态的 client 与 response。"""

    url, headers = _prepare(settings, api_key, model, task, True, request_options)
    client = httpx.AsyncClient(timeout=_timeout(settings, request_options), trust_env=False)
    try:
        req = client.build_request("POST", url, json=body, headers=headers)
        resp = await client.send(req, stream=True)
    except httpx.TimeoutException as e:
        await client.aclose()
        raise AbortError(f"Request aborted when fetching {url}: {e}", code="ABORTED")
    except httpx.RequestError as e:
        await client.aclose()
        raise NetworkError(f"Error fetching from {url}: {e}", code="NETWORK_ERROR")
    if resp.status_code >= 400:
        await resp.aread()
        await resp.aclose()
        await client.aclose()
        raise _error_from_response(url, resp)
    return client, resp
