"""Tests for the OpenAI completion service."""

from unittest.mock import MagicMock, Mock

import pytest

from schema_discovery.llm_call import OpenAICompletionService


def _make_mock_response(content=None, tool_calls=None, usage=None) -> Mock:
    """Create a mock chat completion response."""
    msg = Mock()
    msg.content = content
    msg.tool_calls = tool_calls
    response = Mock()
    response.choices = [Mock(message=msg)]
    response.usage = usage
    return response


def _make_tool_call(call_id: str, name: str, arguments: str) -> Mock:
    call = Mock()
    call.id = call_id
    call.function.name = name
    call.function.arguments = arguments
    return call


class TestOpenAICompletionService:
    """Tests for OpenAICompletionService.complete."""

    def test_text_reply(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _make_mock_response(content="Hello")
        service = OpenAICompletionService(model="test-model", temperature=0.5, client=client)

        message = service.complete([{"role": "user", "content": "hi"}], [])

        assert message.role == "assistant"
        assert message.content == "Hello"
        assert message.tool_calls == []
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs == {
            "model": "test-model",
            "messages": [{"role": "user", "content": "hi"}],
            "temperature": 0.5,
        }

    def test_tools_sent_with_auto_choice(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _make_mock_response(
            tool_calls=[_make_tool_call("c1", "get_files_list", "{}")]
        )
        service = OpenAICompletionService(client=client)
        tools = [{"type": "function", "function": {"name": "get_files_list"}}]

        message = service.complete([{"role": "user", "content": "list files"}], tools)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["tools"] == tools
        assert kwargs["tool_choice"] == "auto"
        assert message.tool_calls[0].id == "c1"
        assert message.tool_calls[0].name == "get_files_list"
        assert message.tool_calls[0].arguments == "{}"

    def test_empty_arguments_default_to_object(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _make_mock_response(
            tool_calls=[_make_tool_call("c1", "get_files_list", "")]
        )

        message = OpenAICompletionService(client=client).complete([], [])

        assert message.tool_calls[0].arguments == "{}"

    def test_usage_recorded(self):
        usage = Mock(prompt_tokens=12, completion_tokens=3, total_tokens=15)
        client = MagicMock()
        client.chat.completions.create.return_value = _make_mock_response(content="x", usage=usage)
        service = OpenAICompletionService(client=client)

        service.complete([], [])

        assert service.last_usage == {
            "prompt_tokens": 12,
            "completion_tokens": 3,
            "total_tokens": 15,
        }

    def test_no_choices_raises(self):
        client = MagicMock()
        response = Mock()
        response.choices = []
        client.chat.completions.create.return_value = response

        with pytest.raises(ValueError, match="no choices"):
            OpenAICompletionService(client=client).complete([], [])

    def test_upstream_errors_propagate(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("503")

        with pytest.raises(RuntimeError):
            OpenAICompletionService(client=client).complete([], [])

    def test_close(self):
        client = MagicMock()
        OpenAICompletionService(client=client).close()
        client.close.assert_called_once()
