"""Tests for conversation state and the pending human request helpers."""

import json

import pytest

from schema_discovery.conversation import (
    PENDING_SENTINEL,
    Conversation,
    Message,
    ToolCallRequest,
    extract_text,
)
from schema_discovery.errors import ConversationError, PendingHumanRequestError


def _ask(conversation: Conversation, call_id: str = "call_1", question: str = "Which file?"):
    """Append an ask_human call and its pending marker."""
    conversation.add_assistant(
        tool_calls=[
            ToolCallRequest(id=call_id, name="ask_human", arguments=json.dumps({"message": question}))
        ]
    )
    conversation.add_tool_result(call_id, dict(PENDING_SENTINEL))


class TestExtractText:
    """Tests for extract_text."""

    def test_string_content(self):
        assert extract_text("hello") == "hello"

    def test_none_content(self):
        assert extract_text(None) is None

    def test_empty_part_list(self):
        assert extract_text([]) is None

    def test_first_text_part(self):
        content = [{"type": "text", "text": "first"}, {"type": "text", "text": "second"}]
        assert extract_text(content) == "first"

    def test_non_text_part_is_json_encoded(self):
        part = {"type": "image_url", "image_url": {"url": "http://x/y.png"}}
        assert json.loads(extract_text([part])) == part


class TestMessage:
    """Tests for Message validation and wire conversion."""

    def test_unknown_role_rejected(self):
        with pytest.raises(ConversationError):
            Message(role="robot", content="hi")

    def test_tool_message_requires_call_id(self):
        with pytest.raises(ConversationError):
            Message(role="tool", content="{}")

    def test_only_assistant_carries_tool_calls(self):
        with pytest.raises(ConversationError):
            Message(role="user", content="hi", tool_calls=[ToolCallRequest(id="a", name="x")])

    def test_to_dict_omits_empty_fields(self):
        assert Message(role="user", content="hi").to_dict() == {"role": "user", "content": "hi"}

    def test_assistant_to_dict_includes_tool_calls(self):
        message = Message(
            role="assistant",
            content=None,
            tool_calls=[ToolCallRequest(id="c1", name="get_files_list", arguments="{}")],
        )
        data = message.to_dict()
        assert data["tool_calls"] == [
            {"id": "c1", "type": "function", "function": {"name": "get_files_list", "arguments": "{}"}}
        ]

    def test_from_dict_round_trip(self):
        data = {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {"id": "c1", "type": "function", "function": {"name": "f", "arguments": "{\"a\": 1}"}}
            ],
        }
        assert Message.from_dict(data).to_dict() == data

    def test_from_dict_without_role(self):
        with pytest.raises(ConversationError):
            Message.from_dict({"content": "hi"})

    def test_malformed_tool_call(self):
        with pytest.raises(ConversationError):
            ToolCallRequest.from_dict({"type": "function", "function": {"name": "f"}})

    def test_is_pending(self):
        assert Message(role="tool", tool_call_id="c1", content='{"response": "pending"}').is_pending
        assert not Message(
            role="tool", tool_call_id="c1", content='{"status": "answered", "response": "pending"}'
        ).is_pending
        assert not Message(role="tool", tool_call_id="c1", content="not json").is_pending
        assert not Message(role="user", content='{"response": "pending"}').is_pending


class TestConversationPairing:
    """Tests for tool-call pairing enforcement."""

    def test_starts_with_system_prompt(self):
        conversation = Conversation(system_prompt="instructions")
        assert len(conversation) == 1
        assert conversation[0].role == "system"
        assert conversation[0].content == "instructions"

    def test_tool_result_for_unknown_call_rejected(self):
        conversation = Conversation()
        with pytest.raises(ConversationError, match="unknown tool_call_id"):
            conversation.add_tool_result("nope", {"ok": True})

    def test_duplicate_answer_rejected(self):
        conversation = Conversation()
        conversation.add_assistant(tool_calls=[ToolCallRequest(id="c1", name="get_files_list")])
        conversation.add_tool_result("c1", {"files": []})
        with pytest.raises(ConversationError, match="already answered"):
            conversation.add_tool_result("c1", {"files": []})

    def test_duplicate_request_id_rejected(self):
        conversation = Conversation()
        conversation.add_assistant(tool_calls=[ToolCallRequest(id="c1", name="get_files_list")])
        with pytest.raises(ConversationError, match="Duplicate"):
            conversation.add_assistant(tool_calls=[ToolCallRequest(id="c1", name="get_file_size")])

    def test_unanswered_tool_calls(self):
        conversation = Conversation()
        conversation.add_assistant(
            tool_calls=[
                ToolCallRequest(id="c1", name="get_files_list"),
                ToolCallRequest(id="c2", name="get_file_size"),
            ]
        )
        conversation.add_tool_result("c1", {"files": []})
        assert [call.id for call in conversation.unanswered_tool_calls()] == ["c2"]

    def test_tool_result_payload_is_json(self):
        conversation = Conversation()
        conversation.add_assistant(tool_calls=[ToolCallRequest(id="c1", name="get_file_size")])
        message = conversation.add_tool_result("c1", {"size_bytes": 12})
        assert json.loads(message.content) == {"size_bytes": 12}

    def test_messages_view_is_read_only(self):
        conversation = Conversation(system_prompt="s")
        assert isinstance(conversation.messages, tuple)

    def test_from_openai_validates_history(self):
        history = [
            {"role": "system", "content": "s"},
            {"role": "tool", "tool_call_id": "ghost", "content": "{}"},
        ]
        with pytest.raises(ConversationError):
            Conversation.from_openai(history)

    def test_from_openai_round_trip(self):
        conversation = Conversation(system_prompt="s")
        conversation.add_user("list files")
        _ask(conversation)
        rebuilt = Conversation.from_openai(conversation.to_openai())
        assert rebuilt.to_openai() == conversation.to_openai()
        assert rebuilt.pending_count == 1


class TestPendingHumanRequest:
    """Tests for the pending marker and its resolution."""

    def test_pending_request_and_question(self):
        conversation = Conversation(system_prompt="s")
        _ask(conversation, question="Which file should I analyze?")
        assert conversation.pending_count == 1
        assert conversation.pending_request.tool_call_id == "call_1"
        assert conversation.pending_question() == "Which file should I analyze?"

    def test_no_pending_request(self):
        conversation = Conversation(system_prompt="s")
        assert conversation.pending_request is None
        assert conversation.pending_question() is None

    def test_resolve_pending_replaces_marker_and_appends_user(self):
        conversation = Conversation(system_prompt="s")
        _ask(conversation)
        length = len(conversation)

        conversation.resolve_pending("customers.csv")

        assert len(conversation) == length + 1
        marker = conversation[length - 1]
        assert marker.tool_call_id == "call_1"
        assert json.loads(marker.content) == {"status": "answered", "response": "customers.csv"}
        assert conversation[-1].role == "user"
        assert conversation[-1].content == "customers.csv"
        assert conversation.pending_count == 0

    def test_answer_equal_to_sentinel_text_is_not_pending(self):
        conversation = Conversation(system_prompt="s")
        _ask(conversation)
        conversation.resolve_pending("pending")
        assert conversation.pending_count == 0

    def test_second_pending_marker_rejected(self):
        conversation = Conversation(system_prompt="s")
        _ask(conversation, call_id="ask_1")

        with pytest.raises(ConversationError, match="unresolved human request"):
            _ask(conversation, call_id="ask_2")

        assert conversation.pending_count == 1
        assert conversation.pending_request.tool_call_id == "ask_1"

    def test_new_pending_marker_allowed_after_resolution(self):
        conversation = Conversation(system_prompt="s")
        _ask(conversation, call_id="ask_1")
        conversation.resolve_pending("orders.json")

        _ask(conversation, call_id="ask_2")

        assert conversation.pending_count == 1
        assert conversation.pending_request.tool_call_id == "ask_2"

    def test_resolve_without_pending_raises(self):
        conversation = Conversation(system_prompt="s")
        with pytest.raises(PendingHumanRequestError):
            conversation.resolve_pending("anything")

    def test_last_assistant_text(self):
        conversation = Conversation(system_prompt="s")
        conversation.add_assistant(content="first")
        conversation.add_assistant(tool_calls=[ToolCallRequest(id="c1", name="get_files_list")])
        assert conversation.last_assistant_text() == "first"
