"""
Completion service for the orchestration loop.

The loop only depends on the :class:`CompletionService` protocol: given the
conversation in Chat Completions format and the tool catalog, return exactly
one assistant message. :class:`OpenAICompletionService` implements it with
the OpenAI SDK and function calling.
"""

import logging
from typing import Optional, Protocol

from openai import OpenAI

from .config import config
from .conversation import ASSISTANT, Message, ToolCallRequest

logger = logging.getLogger(__name__)


class CompletionService(Protocol):
    """Anything that turns a conversation into the next assistant message."""

    model: str

    def complete(self, messages: list[dict], tools: list[dict]) -> Message:
        """Return one assistant message. Raises on any upstream failure."""
        ...


class OpenAICompletionService:
    """Chat Completions with ``tool_choice="auto"``."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        client: Optional[OpenAI] = None,
    ):
        self.model = model or config.orchestrator.model
        self.temperature = (
            temperature if temperature is not None else config.orchestrator.temperature
        )
        self.client = client or OpenAI(
            api_key=api_key or config.orchestrator.api_key or None,
            base_url=base_url or config.orchestrator.base_url or None,
        )
        self.last_usage: Optional[dict] = None

    def complete(self, messages: list[dict], tools: list[dict]) -> Message:
        create_kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if tools:
            create_kwargs["tools"] = tools
            create_kwargs["tool_choice"] = "auto"

        response = self.client.chat.completions.create(**create_kwargs)
        if not response.choices:
            raise ValueError("Completion response contained no choices")

        usage = getattr(response, "usage", None)
        self.last_usage = (
            {
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens,
            }
            if usage
            else None
        )
        return self.to_message(response.choices[0].message)

    @staticmethod
    def to_message(sdk_message) -> Message:
        """Convert an SDK ``ChatCompletionMessage`` into a :class:`Message`."""
        tool_calls = [
            ToolCallRequest(
                id=call.id,
                name=call.function.name,
                arguments=call.function.arguments or "{}",
            )
            for call in (sdk_message.tool_calls or [])
        ]
        return Message(role=ASSISTANT, content=sdk_message.content, tool_calls=tool_calls)

    def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            self.client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
