"""
Request-scoped tracing context using the Langfuse SDK v3.

One :class:`TracingContext` covers one agent invocation: a root span for the
invocation, a generation per completion request and a span per tool
dispatch. Children nest under the root through the SDK's OpenTelemetry
context propagation, since they are opened inside the root's ``with`` scope.

Everything degrades to a no-op when tracing is disabled.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from .client import get_tracing_client

logger = logging.getLogger(__name__)


@dataclass
class ObservationContext:
    """A single span or generation."""

    name: str
    as_type: str = "span"
    enabled: bool = False
    input: Optional[Any] = None
    metadata: Optional[dict] = None
    model: Optional[str] = None
    model_parameters: Optional[dict] = None
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[Any] = field(default=None, repr=False)
    _usage: Optional[dict] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    def start(self) -> None:
        if not self.enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return

        kwargs: dict[str, Any] = {
            "as_type": self.as_type,
            "name": self.name,
            "input": self.input,
            "metadata": self.metadata,
        }
        if self.as_type == "generation":
            kwargs["model"] = self.model
            kwargs["model_parameters"] = self.model_parameters

        try:
            self._start_time = time.time()
            self._context_manager = client.client.start_as_current_observation(**kwargs)
            self._observation = self._context_manager.__enter__()
        except Exception as e:
            logger.warning("Failed to start %s '%s': %s", self.as_type, self.name, e)
            self._observation = None

    def end(self) -> None:
        if not self.enabled or not self._observation:
            return
        try:
            update_kwargs: dict[str, Any] = {
                "metadata": {
                    "status": self._status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                }
            }
            if self._output is not None:
                update_kwargs["output"] = self._output
            if self._usage:
                update_kwargs["usage_details"] = self._usage
            self._observation.update(**update_kwargs)
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("Failed to end %s '%s': %s", self.as_type, self.name, e)

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status

    def set_usage(
        self,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        """Record token usage (generations only)."""
        usage = {
            "input": prompt_tokens,
            "output": completion_tokens,
            "total": total_tokens,
        }
        self._usage = {key: value for key, value in usage.items() if value is not None}


@dataclass
class TracingContext:
    """
    Tracing scope for one agent invocation.

    Attributes:
        execution_id: Identifier of this invocation, used in log prefixes.
        session_id: Conversation identifier supplied by the caller, if any.
    """

    execution_id: str
    session_id: Optional[str] = None
    _context_manager: Any = field(default=None, repr=False)
    _root_span: Any = field(default=None, repr=False)
    _enabled: bool = field(default=False, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(
        self,
        name: str = "schema_discovery",
        user_text: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """Open the root span for this invocation."""
        if not self._enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return

        try:
            trace_metadata = {"execution_id": self.execution_id, **(metadata or {})}
            self._context_manager = client.client.start_as_current_observation(
                as_type="span",
                name=name,
                input={"message": user_text} if user_text else None,
                metadata=trace_metadata,
            )
            self._root_span = self._context_manager.__enter__()
            self._root_span.update_trace(session_id=self.session_id)
            self._start_time = time.time()
        except Exception as e:
            logger.warning("[%s] Failed to start trace: %s", self.execution_id, e)
            self._root_span = None

    def end_trace(
        self,
        output: Optional[str] = None,
        status: str = "success",
        metadata: Optional[dict] = None,
    ) -> None:
        """Close the root span, recording the outcome."""
        if not self._enabled or not self._root_span:
            return
        try:
            self._root_span.update(
                output=output,
                metadata={
                    "status": status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                    **(metadata or {}),
                },
            )
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("[%s] Failed to end trace: %s", self.execution_id, e)
        finally:
            self._root_span = None

    @contextmanager
    def span(
        self,
        name: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator[ObservationContext, None, None]:
        """Span around a tool dispatch or other unit of work."""
        observation = ObservationContext(
            name=name, enabled=self._enabled, input=input, metadata=metadata
        )
        try:
            observation.start()
            yield observation
        finally:
            observation.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        model_parameters: Optional[dict] = None,
    ) -> Generator[ObservationContext, None, None]:
        """Generation around a completion request."""
        observation = ObservationContext(
            name=name,
            as_type="generation",
            enabled=self._enabled,
            input=input,
            model=model,
            model_parameters=model_parameters,
        )
        try:
            observation.start()
            yield observation
        finally:
            observation.end()
