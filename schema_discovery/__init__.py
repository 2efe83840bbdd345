"""
Schema Discovery Agent

This package provides:
- A step-bounded tool-calling orchestration loop with human-in-the-loop
  suspension (``ask_human``)
- File access and LLM-backed schema analysis tools
- A FastAPI server with streaming progress
- Interactive CLI for testing
"""

from .agent import FALLBACK_MESSAGE, SchemaDiscoveryAgent
from .conversation import Conversation, Message, ToolCallRequest
from .llm_call import OpenAICompletionService

__all__ = [
    "FALLBACK_MESSAGE",
    "SchemaDiscoveryAgent",
    "Conversation",
    "Message",
    "ToolCallRequest",
    "OpenAICompletionService",
]

__version__ = "0.1.0"
