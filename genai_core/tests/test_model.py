from genai_core.chat.model import GenerativeModel
from genai_core.chat.session import ChatSession
from genai_core.domain.models import Content, GenerateContentRequest, Part, RequestOptions


def _model(delegate, logger, **kwargs):
    return GenerativeModel(api_key="MY_API_KEY", model="a-model", delegate=delegate, logger=logger, **kwargs)


async def test_generate_content_applies_model_defaults(stub_delegate, recording_logger, mock_response):
    stub_delegate.resolves(mock_response("unary-success-basic-reply-short.json"))
    model = _model(
        stub_delegate,
        recording_logger,
        generation_config={"temperature": 0.1},
        system_instruction="be brief",
    )

    result = await model.generate_content("where is the HQ?")

    api_key, model_name, request, _ = stub_delegate.calls[0]
    assert result.response.text() == "Mountain View, California"
    assert (api_key, model_name) == ("MY_API_KEY", "models/a-model")
    assert request.generation_config == {"temperature": 0.1}
    assert request.system_instruction.parts[0].text == "be brief"
    assert request.contents[0].role == "user"


async def test_generate_content_request_overrides_defaults(stub_delegate, recording_logger, mock_response):
    stub_delegate.resolves(mock_response("unary-success-basic-reply-short.json"))
    model = _model(stub_delegate, recording_logger, generation_config={"temperature": 0.1})

    await model.generate_content(
        GenerateContentRequest(
            contents=[Content(role="user", parts=(Part(text="hi"),))],
            generation_config={"temperature": 0.9},
        ),
        RequestOptions(timeout=2),
    )

    _, _, request, options = stub_delegate.calls[0]
    assert request.generation_config == {"temperature": 0.9}
    assert options.timeout == 2


async def test_generate_content_stream_delegates(stub_delegate, recording_logger, stream_result_factory, mock_response):
    final = mock_response("unary-success-basic-reply-short.json")
    stream_result = stream_result_factory([final], final)
    stub_delegate.stream_resolves(stream_result)
    model = _model(stub_delegate, recording_logger)

    result = await model.generate_content_stream("hi")

    assert result is stream_result
    assert (await result.response).text() == "Mountain View, California"


async def test_start_chat_shares_params_and_delegate(stub_delegate, recording_logger, mock_response):
    stub_delegate.resolves(mock_response("unary-success-basic-reply-short.json"))
    model = _model(stub_delegate, recording_logger, generation_config={"temperature": 0.1})

    chat = model.start_chat(
        history=[Content(role="user", parts=(Part(text="hi"),)), Content(role="model", parts=(Part(text="hey"),))],
        system_instruction="stay on topic",
    )
    await chat.send_message("hello")

    assert isinstance(chat, ChatSession)
    _, model_name, request, _ = stub_delegate.calls[0]
    assert model_name == "models/a-model"
    assert request.generation_config == {"temperature": 0.1}
    assert request.system_instruction.parts[0].text == "stay on topic"
    assert len(request.contents) == 3
    assert len(await chat.get_history()) == 4
