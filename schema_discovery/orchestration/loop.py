"""
Core orchestration loop.

Drives the completion service through at most ``max_steps`` steps over a
growing conversation. Each step requests one assistant message and appends
it; tool calls it carries are dispatched in order, each answered by exactly
one ``tool`` message before the next request.

An invocation ends with one of three outcomes:

- ``final``: the assistant replied with text and no tool calls, after the
  warm-up steps or after it has used at least one tool in this invocation.
- ``question``: the assistant called ``ask_human``. The conversation now
  holds a pending marker which the caller must resolve before running the
  loop again.
- ``none``: the step budget ran out, or the completion request failed.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import config
from ..conversation import Conversation, Message, ToolCallRequest
from ..errors import PendingHumanRequestError
from ..llm_call import CompletionService, OpenAICompletionService
from ..tracing import TracingContext
from .dispatcher import ToolDispatcher
from .reporter import LoggingReporter, ProgressReporter, safe_report
from .tool_defs import build_tool_definitions

logger = logging.getLogger(__name__)

# Content-only replies before this step index are not final unless a tool
# was dispatched earlier in the same invocation.
WARMUP_STEPS = 2

FINAL = "final"
QUESTION = "question"
NONE = "none"

# Result for tool calls batched after ask_human, which are not executed.
SKIPPED_PAYLOAD: dict = {"skipped": True, "reason": "awaiting human response"}


@dataclass
class OrchestrationStep:
    """A single step in the orchestration process."""

    step_number: int
    content: Optional[str] = None
    actions: list[str] = field(default_factory=list)
    observations: list[Any] = field(default_factory=list)
    is_final: bool = False
    error: Optional[str] = None


@dataclass
class OrchestrationResult:
    """Outcome of one loop invocation."""

    outcome: str
    text: Optional[str] = None
    steps: list[OrchestrationStep] = field(default_factory=list)
    completion_requests: int = 0

    @property
    def is_final(self) -> bool:
        return self.outcome == FINAL

    @property
    def awaiting_human(self) -> bool:
        return self.outcome == QUESTION


class OrchestrationLoop:
    """
    Step-bounded tool-calling loop over an explicit conversation.

    Per-step flow:
        1. Report the conversation snapshot
        2. Request one assistant message (conversation + tool catalog)
        3. Append it
        4. Tool calls: dispatch each in order, append one tool message per
           call; ``ask_human`` suspends the invocation
        5. No tool calls: text past the warm-up is the final answer
    """

    def __init__(
        self,
        completion_service: Optional[CompletionService] = None,
        dispatcher: Optional[ToolDispatcher] = None,
        reporter: Optional[ProgressReporter] = None,
        max_steps: Optional[int] = None,
        execution_id: Optional[str] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        self.completion_service = completion_service or OpenAICompletionService()
        self.execution_id = execution_id
        self.tracing_context = tracing_context
        self.dispatcher = dispatcher or ToolDispatcher(
            tracing_context=tracing_context, execution_id=execution_id
        )
        self.reporter = reporter if reporter is not None else LoggingReporter(logger, logging.DEBUG)
        self.max_steps = max_steps if max_steps is not None else config.orchestrator.max_steps

        self.steps: list[OrchestrationStep] = []
        self._completion_requests = 0

    @property
    def _prefix(self) -> str:
        return f"[{self.execution_id}] " if self.execution_id else ""

    def run(self, conversation: Conversation) -> OrchestrationResult:
        """
        Run the loop over a conversation, mutating it in place.

        Raises:
            PendingHumanRequestError: If the conversation still has an
                unresolved human request.
        """
        if conversation.pending_request is not None:
            raise PendingHumanRequestError(
                "Conversation has an unresolved human request; resolve it before running"
            )

        self.steps = []
        self._completion_requests = 0
        logger.debug("%sStarting orchestration over %d messages", self._prefix, len(conversation))

        if self.tracing_context:
            with self.tracing_context.span(
                name="orchestration", metadata={"max_steps": self.max_steps}
            ) as span:
                result = self._run_loop(conversation)
                span.set_output(
                    {
                        "outcome": result.outcome,
                        "completion_requests": result.completion_requests,
                    }
                )
                return result
        return self._run_loop(conversation)

    def _run_loop(self, conversation: Conversation) -> OrchestrationResult:
        tools = build_tool_definitions()
        used_tools = False

        for step_index in range(self.max_steps):
            step = OrchestrationStep(step_number=step_index + 1)
            self.steps.append(step)
            self._report(
                f"Step {step.step_number}: Sending messages to the model:\n"
                f"{conversation.snapshot()}"
            )

            try:
                assistant = self._call_llm(conversation, tools, step.step_number)
                conversation.append(assistant)
            except Exception as e:
                logger.error(
                    "%sCompletion request failed at step %d: %s",
                    self._prefix,
                    step.step_number,
                    e,
                )
                step.error = str(e)
                self._report(f"Completion request failed: {e}")
                return self._result(NONE)

            step.content = assistant.text
            self._report(
                f"Assistant response:\n{json.dumps(assistant.to_dict(), indent=2, default=str)}"
            )

            if assistant.tool_calls:
                used_tools = True
                question = self._process_tool_calls(conversation, assistant.tool_calls, step)
                if question is not None:
                    return self._result(QUESTION, question)
                continue

            if step.content and (step_index >= WARMUP_STEPS or used_tools):
                step.is_final = True
                return self._result(FINAL, step.content)

            logger.debug(
                "%sStep %d: content-only reply during warm-up, continuing",
                self._prefix,
                step.step_number,
            )

        logger.warning("%sMax steps (%d) reached without an answer", self._prefix, self.max_steps)
        self._report(f"No answer after {self.max_steps} steps")
        return self._result(NONE)

    def _process_tool_calls(
        self,
        conversation: Conversation,
        tool_calls: list[ToolCallRequest],
        step: OrchestrationStep,
    ) -> Optional[str]:
        """
        Dispatch the tool calls of one assistant message in order.

        Returns:
            The human question when ``ask_human`` was called, else None.
        """
        question: Optional[str] = None

        for call in tool_calls:
            if question is not None:
                conversation.add_tool_result(call.id, dict(SKIPPED_PAYLOAD))
                self._report(f"Skipped tool {call.name}: awaiting human response")
                continue

            self._report(f"Executing Tool: {call.name}\nArguments: {call.arguments}")
            outcome = self.dispatcher.dispatch(call.name, call.arguments)
            conversation.add_tool_result(call.id, outcome.payload)
            step.actions.append(call.name)
            step.observations.append(outcome.payload)

            if outcome.suspends:
                question = outcome.question
                self._report(f"Waiting for human response: {question}")
            elif outcome.is_error:
                self._report(f"Error executing tool {call.name}: {outcome.payload.get('error')}")
            else:
                self._report(
                    f"Tool {call.name} executed successfully\n"
                    f"Response: {json.dumps(outcome.payload, indent=2, default=str)}"
                )

        return question

    def _call_llm(self, conversation: Conversation, tools: list[dict], step_num: int) -> Message:
        """Request the next assistant message. Exceptions propagate."""
        messages = conversation.to_openai()
        self._completion_requests += 1
        logger.debug("%sStep %d: calling completion service", self._prefix, step_num)

        if not self.tracing_context:
            return self.completion_service.complete(messages, tools)

        with self.tracing_context.generation(
            name=f"schema_agent_step_{step_num}",
            model=getattr(self.completion_service, "model", "unknown"),
            input=messages,
        ) as gen:
            try:
                assistant = self.completion_service.complete(messages, tools)
            except Exception:
                gen.set_status("error")
                raise
            gen.set_output(assistant.to_dict())
            usage = getattr(self.completion_service, "last_usage", None)
            if usage:
                gen.set_usage(**usage)
            return assistant

    def _report(self, text: str) -> None:
        safe_report(self.reporter, text)

    def _result(self, outcome: str, text: Optional[str] = None) -> OrchestrationResult:
        self._log_trace_summary(outcome)
        return OrchestrationResult(
            outcome=outcome,
            text=text,
            steps=list(self.steps),
            completion_requests=self._completion_requests,
        )

    def _log_trace_summary(self, outcome: str) -> None:
        """Log a compact trace summary."""
        logger.info("%sOrchestration ended: %s after %d step(s)", self._prefix, outcome, len(self.steps))
        for step in self.steps:
            if step.error:
                logger.info("%sStep %d [ERROR]: %s", self._prefix, step.step_number, step.error)
            elif step.is_final:
                logger.info("%sStep %d [FINAL]", self._prefix, step.step_number)
            else:
                logger.info(
                    "%sStep %d: %s",
                    self._prefix,
                    step.step_number,
                    ", ".join(step.actions) or "(no tool calls)",
                )

    def get_trace(self) -> list[dict]:
        """Trace of the last invocation's steps as dictionaries."""
        return [
            {
                "step": s.step_number,
                "content": s.content,
                "actions": list(s.actions),
                "observations": list(s.observations),
                "is_final": s.is_final,
                "error": s.error,
            }
            for s in self.steps
        ]
