"""
Schema Discovery Agent - invocation interface.

Wraps the orchestration loop with the human-in-the-loop resumption
contract. Callers keep the :class:`Conversation` and pass each new user
text to :meth:`SchemaDiscoveryAgent.run`:

- If the conversation is awaiting a human answer, the text resolves the
  pending request (the pending tool message gets the answer and the answer
  is appended as a user message).
- Otherwise the text is appended as a new user message.

The loop then runs with a fresh step budget.
"""

import logging
from typing import Optional

from .conversation import Conversation
from .llm_call import CompletionService, OpenAICompletionService
from .orchestration import (
    OrchestrationLoop,
    OrchestrationResult,
    ProgressReporter,
    ToolDispatcher,
)
from .orchestration.prompts import SYSTEM_PROMPT
from .tracing import TracingContext

logger = logging.getLogger(__name__)

# Shown to the user when an invocation ends without an answer.
FALLBACK_MESSAGE = "I've processed your request."


class SchemaDiscoveryAgent:
    """Runs schema discovery over caller-owned conversations."""

    def __init__(
        self,
        completion_service: Optional[CompletionService] = None,
        dispatcher: Optional[ToolDispatcher] = None,
        max_steps: Optional[int] = None,
        execution_id: Optional[str] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        self.completion_service = completion_service or OpenAICompletionService()
        self.dispatcher = dispatcher
        self.max_steps = max_steps
        self.execution_id = execution_id
        self.tracing_context = tracing_context
        self.last_loop: Optional[OrchestrationLoop] = None

    @staticmethod
    def new_conversation(system_prompt: str = SYSTEM_PROMPT) -> Conversation:
        """Start a conversation holding only the task instructions."""
        return Conversation(system_prompt=system_prompt)

    def run(
        self,
        user_text: str,
        conversation: Conversation,
        reporter: Optional[ProgressReporter] = None,
    ) -> OrchestrationResult:
        """
        Submit user text to the conversation and run the loop.

        Args:
            user_text: A new request, or the answer to a pending question.
            conversation: The caller's conversation, mutated in place.
            reporter: Optional progress sink for this invocation.

        Returns:
            OrchestrationResult with outcome ``final``, ``question`` or ``none``.
        """
        if conversation.pending_request is not None:
            logger.debug("Resuming conversation with human answer")
            conversation.resolve_pending(user_text)
        else:
            conversation.add_user(user_text)

        loop = OrchestrationLoop(
            completion_service=self.completion_service,
            dispatcher=self.dispatcher,
            reporter=reporter,
            max_steps=self.max_steps,
            execution_id=self.execution_id,
            tracing_context=self.tracing_context,
        )
        self.last_loop = loop
        return loop.run(conversation)

    def close(self) -> None:
        close = getattr(self.completion_service, "close", None)
        if close:
            close()


def reply_text(result: OrchestrationResult) -> str:
    """Text to show the user for a loop outcome."""
    return result.text or FALLBACK_MESSAGE
