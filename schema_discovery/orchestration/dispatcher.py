"""
Tool dispatch for the orchestration loop.

Turns one tool call (name + JSON argument text) into a JSON-serializable
outcome. Failures never propagate: malformed arguments, unknown tools and
handler exceptions all become an ``{"error": ...}`` payload that the model
sees as the tool result and can react to on the next step.

``ask_human`` is special: no handler runs, the outcome carries the question
and the pending sentinel that marks the conversation as awaiting a human.
"""

import json
import logging
import traceback
from dataclasses import dataclass
from typing import Any, Optional

from ..conversation import PENDING_SENTINEL
from ..tools.registry import ToolDefinition, ToolRegistry
from ..tracing import TracingContext
from .tool_defs import ASK_HUMAN

logger = logging.getLogger(__name__)

# Traceback text kept in error payloads (tail end, where the raise is).
MAX_DETAILS_CHARS = 2000


@dataclass
class DispatchOutcome:
    """Result of dispatching one tool call."""

    payload: Any
    question: Optional[str] = None
    is_error: bool = False

    @property
    def suspends(self) -> bool:
        """True when the call asks the human and the loop must pause."""
        return self.question is not None


def parse_arguments(args_json: Optional[str]) -> dict:
    """
    Parse tool-call argument text into a dict.

    Raises:
        ValueError: If the text is not JSON or not a JSON object.
    """
    if args_json is None or not args_json.strip():
        return {}
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON arguments: {e}") from e
    if not isinstance(args, dict):
        raise ValueError(f"Tool arguments must be a JSON object, got {type(args).__name__}")
    return args


def error_payload(error: BaseException, details: Optional[str] = None) -> dict:
    payload: dict[str, Any] = {"error": str(error) or type(error).__name__}
    if details:
        payload["details"] = details[-MAX_DETAILS_CHARS:]
    return payload


class ToolDispatcher:
    """Routes tool calls to registry handlers."""

    def __init__(
        self,
        registry: type[ToolRegistry] = ToolRegistry,
        tracing_context: Optional[TracingContext] = None,
        execution_id: Optional[str] = None,
    ):
        self.registry = registry
        self.tracing_context = tracing_context
        self.execution_id = execution_id

    @property
    def _prefix(self) -> str:
        return f"[{self.execution_id}] " if self.execution_id else ""

    def dispatch(self, name: str, args_json: Optional[str]) -> DispatchOutcome:
        """Dispatch a single tool call."""
        try:
            args = parse_arguments(args_json)
        except ValueError as e:
            logger.warning("%sBad arguments for '%s': %s", self._prefix, name, e)
            return DispatchOutcome(
                payload=error_payload(e, details=(args_json or "")[:500]), is_error=True
            )

        if name == ASK_HUMAN:
            return self._ask_human(args)

        tool_def = self.registry.get(name)
        if tool_def is None:
            logger.warning("%sUnknown tool: %s", self._prefix, name)
            return DispatchOutcome(
                payload={
                    "error": f"Unknown tool '{name}'",
                    "available_tools": self.registry.names() + [ASK_HUMAN],
                },
                is_error=True,
            )

        if self.tracing_context:
            with self.tracing_context.span(name=f"tool:{name}", input=args) as span:
                outcome = self._invoke(tool_def, args)
                span.set_output(outcome.payload)
                if outcome.is_error:
                    span.set_status("error")
                return outcome
        return self._invoke(tool_def, args)

    def _invoke(self, tool_def: ToolDefinition, args: dict) -> DispatchOutcome:
        try:
            logger.debug("%sExecuting tool '%s'", self._prefix, tool_def.name)
            return DispatchOutcome(payload=tool_def.handler(args))
        except Exception as e:
            logger.error("%sTool '%s' execution failed: %s", self._prefix, tool_def.name, e)
            return DispatchOutcome(
                payload=error_payload(e, details=traceback.format_exc()), is_error=True
            )

    def _ask_human(self, args: dict) -> DispatchOutcome:
        message = args.get("message")
        if not isinstance(message, str) or not message.strip():
            return DispatchOutcome(
                payload={"error": "ask_human requires a non-empty 'message' argument"},
                is_error=True,
            )
        logger.info("%sAsking human: %s", self._prefix, message[:100])
        return DispatchOutcome(payload=dict(PENDING_SENTINEL), question=message)
