"""
Pytest configuration and fixtures for Schema Discovery tests.
"""

import copy
import json

import pytest

from schema_discovery.config import config
from schema_discovery.conversation import ASSISTANT, Message, ToolCallRequest


class ScriptedCompletionService:
    """Completion service that replays canned assistant messages in order.

    Each entry is a Message to return or an Exception to raise. Every request
    is recorded (deep-copied) so tests can inspect what the model was sent.
    """

    model = "scripted-model"

    def __init__(self, replies):
        self.replies = list(replies)
        self.requests: list[dict] = []
        self.last_usage = None

    def complete(self, messages, tools):
        self.requests.append({"messages": copy.deepcopy(messages), "tools": tools})
        if not self.replies:
            raise AssertionError("Completion requested with no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def text_reply(text: str) -> Message:
    """Assistant message with text content only."""
    return Message(role=ASSISTANT, content=text)


def call_reply(*calls, content=None) -> Message:
    """Assistant message with tool calls given as (id, name, arguments) tuples."""
    return Message(
        role=ASSISTANT,
        content=content,
        tool_calls=[
            ToolCallRequest(
                id=call_id,
                name=name,
                arguments=args if isinstance(args, str) else json.dumps(args),
            )
            for call_id, name, args in calls
        ],
    )


@pytest.fixture
def scripted():
    """Factory for ScriptedCompletionService instances."""
    return ScriptedCompletionService


@pytest.fixture
def text():
    return text_reply


@pytest.fixture
def calls():
    return call_reply


@pytest.fixture
def sample_dir(tmp_path, monkeypatch):
    """A sample files directory with a CSV, a JSON file and a dotfile."""
    root = tmp_path / "sample_files"
    root.mkdir()
    (root / "customers.csv").write_text(
        "id,name,email\n"
        "1,Ada,ada@example.com\n"
        "2,Linus,linus@example.com\n"
        "3,Grace,grace@example.com\n"
    )
    (root / "orders.json").write_text(
        '[{"order_id": 10, "customer_id": 1, "total": 9.5}]'
    )
    (root / ".DS_Store").write_text("ignored")
    monkeypatch.setattr(config.tools, "sample_files_dir", str(root))
    return root
