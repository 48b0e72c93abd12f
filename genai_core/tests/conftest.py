import json
import logging
from pathlib import Path

import pytest

from genai_core.domain.models import (
    GenerateContentResponse,
    GenerateContentResult,
    GenerateContentStreamResult,
)

MOCK_DIR = Path(__file__).resolve().parent / "mock_responses"


def load_mock_json(name):
    return json.loads((MOCK_DIR / name).read_text(encoding="utf-8"))


def load_mock_lines(name):
    return (MOCK_DIR / name).read_text(encoding="utf-8").splitlines()


class RecordingLogger:
    """只记录调用的 logger 替身，测试直接断言 records。"""

    def __init__(self):
        self.records = []

    def log(self, level, msg, *args, **kwargs):
        self.records.append((level, msg % args if args else str(msg), kwargs))

    def debug(self, msg, *args, **kwargs):
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self.log(logging.ERROR, msg, *args, **kwargs)

    def messages(self, level):
        return [m for lvl, m, _ in self.records if lvl == level]


class StubDelegate:
    """可配置结果的 Request Delegate，记录每次调用参数。"""

    def __init__(self):
        self.calls = []
        self.stream_calls = []
        self._unary = None
        self._stream = None

    def resolves(self, response):
        self._unary = response
        return self

    def rejects(self, error):
        self._unary = error
        return self

    def stream_resolves(self, stream_result):
        self._stream = stream_result
        return self

    def stream_rejects(self, error):
        self._stream = error
        return self

    async def generate_content(self, api_key, model, request, request_options=None):
        self.calls.append((api_key, model, request, request_options))
        if isinstance(self._unary, BaseException):
            raise self._unary
        return GenerateContentResult(response=self._unary)

    async def generate_content_stream(self, api_key, model, request, request_options=None):
        self.stream_calls.append((api_key, model, request, request_options))
        if isinstance(self._stream, BaseException):
            raise self._stream
        return self._stream


def make_stream_result(chunks, aggregate):
    """构造一个流式结果：aggregate 为响应对象或要抛出的异常。"""

    async def stream():
        for chunk in chunks:
            yield chunk

    async def response():
        if isinstance(aggregate, BaseException):
            raise aggregate
        return aggregate

    return GenerateContentStreamResult(stream=stream(), response=response())


@pytest.fixture
def mock_response():
    def _load(name):
        return GenerateContentResponse.from_dict(load_mock_json(name))

    return _load


@pytest.fixture
def mock_json():
    return load_mock_json


@pytest.fixture
def mock_lines():
    return load_mock_lines


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def stub_delegate():
    return StubDelegate()


@pytest.fixture
def stream_result_factory():
    return make_stream_result
