"""
Schema discovery orchestration.

Step-bounded tool-calling loop over an explicit conversation, with
human-in-the-loop suspension through the ``ask_human`` tool.
"""

from .dispatcher import DispatchOutcome, ToolDispatcher
from .loop import (
    FINAL,
    NONE,
    QUESTION,
    OrchestrationLoop,
    OrchestrationResult,
    OrchestrationStep,
)
from .reporter import (
    CallbackReporter,
    CollectingReporter,
    LoggingReporter,
    NullReporter,
    ProgressReporter,
)
from .tool_defs import ASK_HUMAN, build_tool_definitions

__all__ = [
    "ASK_HUMAN",
    "build_tool_definitions",
    "DispatchOutcome",
    "ToolDispatcher",
    "FINAL",
    "NONE",
    "QUESTION",
    "OrchestrationLoop",
    "OrchestrationResult",
    "OrchestrationStep",
    "CallbackReporter",
    "CollectingReporter",
    "LoggingReporter",
    "NullReporter",
    "ProgressReporter",
]
