"""
Langfuse tracing integration for the Schema Discovery Agent.

Provides observability for completion requests, tool dispatches and the
invocation lifecycle.
"""

from .client import (
    TracingClient,
    init_tracing_client,
    get_tracing_client,
    shutdown_tracing,
)
from .context import TracingContext, ObservationContext

__all__ = [
    "TracingClient",
    "init_tracing_client",
    "get_tracing_client",
    "shutdown_tracing",
    "TracingContext",
    "ObservationContext",
]
