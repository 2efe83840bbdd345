"""
Conversation state for the orchestration loop.

A conversation is an ordered, append-only list of chat messages in the
OpenAI Chat Completions shape. It enforces the tool-call pairing rules:
every ``tool`` message must answer a ``tool_calls`` entry from an earlier
assistant message, and each entry may be answered only once.

The human-in-the-loop protocol lives here too. A pending human request is a
``tool`` message whose content is the JSON sentinel ``{"response": "pending"}``;
:meth:`Conversation.resolve_pending` substitutes the human's answer and
appends it as a ``user`` message.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator, Optional, Union

from .errors import ConversationError, PendingHumanRequestError

logger = logging.getLogger(__name__)

SYSTEM = "system"
USER = "user"
ASSISTANT = "assistant"
TOOL = "tool"

ROLES = (SYSTEM, USER, ASSISTANT, TOOL)

PENDING_SENTINEL: dict = {"response": "pending"}

Content = Optional[Union[str, list]]


def extract_text(content: Content) -> Optional[str]:
    """
    Extract text from message content.

    Plain strings are returned as-is. For a list of content parts, the first
    part is used: its ``text`` when it is a text part, otherwise the part
    encoded as JSON.
    """
    if content is None:
        return None
    if isinstance(content, str):
        return content
    if not content:
        return None

    first = content[0]
    if not isinstance(first, dict):
        # SDK objects (pydantic models) expose model_dump()
        first = first.model_dump() if hasattr(first, "model_dump") else {"value": str(first)}
    if first.get("type") == "text":
        return first.get("text")
    return json.dumps(first)


@dataclass(frozen=True)
class ToolCallRequest:
    """A single function call requested by the assistant."""

    id: str
    name: str
    arguments: str = "{}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ToolCallRequest":
        function = data.get("function") or {}
        name = function.get("name") or data.get("name")
        if not data.get("id") or not name:
            raise ConversationError(f"Malformed tool call: {data!r}")
        arguments = function.get("arguments", data.get("arguments", "{}"))
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(id=data["id"], name=name, arguments=arguments)


@dataclass
class Message:
    """A single chat message."""

    role: str
    content: Content = None
    tool_call_id: Optional[str] = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ConversationError(f"Unknown message role: {self.role!r}")
        if self.role == TOOL and not self.tool_call_id:
            raise ConversationError("Tool messages require a tool_call_id")
        if self.tool_calls and self.role != ASSISTANT:
            raise ConversationError("Only assistant messages may carry tool_calls")

    @property
    def text(self) -> Optional[str]:
        """Text of the message, whatever the content format."""
        return extract_text(self.content)

    @property
    def is_pending(self) -> bool:
        """True for an unresolved human request marker."""
        if self.role != TOOL or not isinstance(self.content, str):
            return False
        try:
            return json.loads(self.content) == PENDING_SENTINEL
        except json.JSONDecodeError:
            return False

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        if "role" not in data:
            raise ConversationError(f"Message without role: {data!r}")
        return cls(
            role=data["role"],
            content=data.get("content"),
            tool_call_id=data.get("tool_call_id"),
            tool_calls=[
                ToolCallRequest.from_dict(call) for call in data.get("tool_calls") or []
            ],
        )


class Conversation:
    """
    Ordered, append-only message history owned by one loop invocation.

    Messages are never reordered or deleted. The only in-place change allowed
    is replacing the content of a pending human request with the answer.
    """

    def __init__(self, system_prompt: Optional[str] = None):
        self._messages: list[Message] = []
        self._requested: dict[str, ToolCallRequest] = {}
        self._answered: set[str] = set()
        if system_prompt is not None:
            self.append(Message(role=SYSTEM, content=system_prompt))

    @classmethod
    def from_messages(cls, messages: Iterable[Union[Message, dict]]) -> "Conversation":
        """Rebuild a conversation from stored messages, validating pairing."""
        conversation = cls()
        for message in messages:
            if isinstance(message, dict):
                message = Message.from_dict(message)
            conversation.append(message)
        return conversation

    @classmethod
    def from_openai(cls, messages: list[dict]) -> "Conversation":
        """Rebuild a conversation from Chat Completions wire messages."""
        return cls.from_messages(messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    @property
    def messages(self) -> tuple[Message, ...]:
        """Read-only view of the history."""
        return tuple(self._messages)

    def append(self, message: Message) -> Message:
        """Append a message, enforcing tool-call pairing and a single pending request."""
        if message.is_pending and self.pending_request is not None:
            raise ConversationError(
                "Conversation already has an unresolved human request "
                f"('{self.pending_request.tool_call_id}')"
            )
        if message.role == TOOL:
            call_id = message.tool_call_id
            if call_id not in self._requested:
                raise ConversationError(
                    f"Tool message references unknown tool_call_id '{call_id}'"
                )
            if call_id in self._answered:
                raise ConversationError(f"tool_call_id '{call_id}' already answered")
            self._answered.add(call_id)

        for call in message.tool_calls:
            if call.id in self._requested:
                raise ConversationError(f"Duplicate tool_call_id '{call.id}'")
            self._requested[call.id] = call

        self._messages.append(message)
        return message

    def add_user(self, content: str) -> Message:
        return self.append(Message(role=USER, content=content))

    def add_assistant(
        self, content: Content = None, tool_calls: Optional[list[ToolCallRequest]] = None
    ) -> Message:
        return self.append(
            Message(role=ASSISTANT, content=content, tool_calls=list(tool_calls or []))
        )

    def add_tool_result(self, tool_call_id: str, payload: Any) -> Message:
        """Append a tool message with a JSON-encoded payload."""
        return self.append(
            Message(role=TOOL, tool_call_id=tool_call_id, content=json.dumps(payload, default=str))
        )

    def unanswered_tool_calls(self) -> list[ToolCallRequest]:
        """Tool calls requested by the assistant that have no tool message yet."""
        return [
            call for call_id, call in self._requested.items() if call_id not in self._answered
        ]

    def pending_indexes(self) -> list[int]:
        return [i for i, message in enumerate(self._messages) if message.is_pending]

    @property
    def pending_count(self) -> int:
        return len(self.pending_indexes())

    @property
    def pending_request(self) -> Optional[Message]:
        """The most recent unresolved human request, if any."""
        indexes = self.pending_indexes()
        return self._messages[indexes[-1]] if indexes else None

    def pending_question(self) -> Optional[str]:
        """The question text of the pending human request, if recoverable."""
        pending = self.pending_request
        if pending is None:
            return None
        call = self._requested.get(pending.tool_call_id or "")
        if call is None:
            return None
        try:
            return json.loads(call.arguments).get("message")
        except (json.JSONDecodeError, AttributeError):
            return None

    def resolve_pending(self, answer: str) -> Message:
        """
        Apply a human answer to the pending request.

        Replaces the pending marker's content with the answer (same
        ``tool_call_id``) and appends the answer as a ``user`` message.

        Raises:
            PendingHumanRequestError: If nothing is pending.
        """
        indexes = self.pending_indexes()
        if not indexes:
            raise PendingHumanRequestError("No pending human request to resolve")

        index = indexes[-1]
        pending = self._messages[index]
        self._messages[index] = replace(
            pending, content=json.dumps({"status": "answered", "response": answer})
        )
        logger.debug("Resolved pending request %s", pending.tool_call_id)
        return self.add_user(answer)

    def last_assistant_text(self) -> Optional[str]:
        for message in reversed(self._messages):
            if message.role == ASSISTANT and message.text:
                return message.text
        return None

    def to_openai(self) -> list[dict]:
        """Messages in the Chat Completions wire format."""
        return [message.to_dict() for message in self._messages]

    def snapshot(self) -> str:
        """Pretty JSON dump of the history for progress narration."""
        return json.dumps(self.to_openai(), indent=2, default=str)
