import pytest

from genai_core.domain.content import format_new_content, format_system_instruction, validate_chat_history
from genai_core.domain.exceptions import GenerativeAIError, RequestInputError
from genai_core.domain.models import Content, FunctionCall, InlineData, Part


def test_format_new_content_from_string():
    content = format_new_content("hello")
    assert content.role == "user"
    assert content.parts == (Part(text="hello"),)


def test_format_new_content_mixed_parts():
    content = format_new_content(
        ["describe this", {"inlineData": {"mimeType": "image/png", "data": "aGk="}}]
    )
    assert content.role == "user"
    assert content.parts[1].inline_data == InlineData(mime_type="image/png", data="aGk=")


def test_format_new_content_function_response():
    content = format_new_content([{"function_response": {"name": "f", "response": {"ok": True}}}])
    assert content.role == "function"
    assert content.parts[0].function_response.response == {"ok": True}


def test_format_new_content_rejects_mixing_function_response():
    with pytest.raises(RequestInputError):
        format_new_content(["hi", {"functionResponse": {"name": "f", "response": {}}}])


def test_format_new_content_single_dict_is_one_part():
    content = format_new_content({"text": "hello"})
    assert content.role == "user"
    assert content.parts == (Part(text="hello"),)


def test_format_new_content_single_part_and_function_response():
    assert format_new_content(Part(text="hi")).parts == (Part(text="hi"),)
    content = format_new_content({"functionResponse": {"name": "f", "response": {"ok": True}}})
    assert content.role == "function"


def test_format_new_content_rejects_non_sequence():
    with pytest.raises(RequestInputError, match="Unsupported request type: int"):
        format_new_content(42)
    with pytest.raises(RequestInputError):
        format_new_content(iter(["hi"]))


def test_format_new_content_rejects_empty():
    with pytest.raises(RequestInputError):
        format_new_content([])


def test_format_system_instruction():
    assert format_system_instruction(None) is None
    assert format_system_instruction("be brief") == Content(role="system", parts=(Part(text="be brief"),))
    assert format_system_instruction({"parts": [{"text": "x"}]}).role == "system"
    assert format_system_instruction({"text": "y"}).parts == (Part(text="y"),)


def _c(role, *parts):
    return Content(role=role, parts=parts)


def test_validate_chat_history_ok():
    validate_chat_history(
        [
            _c("user", Part(text="hi")),
            _c("model", Part(function_call=FunctionCall(name="f"))),
            Content.from_dict({"role": "function", "parts": [{"functionResponse": {"name": "f", "response": {}}}]}),
            _c("model", Part(text="done")),
        ]
    )


def test_validate_chat_history_first_must_be_user():
    with pytest.raises(GenerativeAIError, match="First content should be with role 'user', got model"):
        validate_chat_history([_c("model", Part(text="hi"))])


def test_validate_chat_history_unknown_role():
    with pytest.raises(GenerativeAIError, match="valid roles are"):
        validate_chat_history([_c("user", Part(text="hi")), _c("assistant", Part(text="yo"))])


def test_validate_chat_history_empty_parts():
    with pytest.raises(GenerativeAIError, match="at least one part"):
        validate_chat_history([_c("user")])


def test_validate_chat_history_role_part_mismatch():
    with pytest.raises(GenerativeAIError, match="Content with role 'user' can't contain 'functionCall' part"):
        validate_chat_history([_c("user", Part(function_call=FunctionCall(name="f")))])
