"""
Tool definitions for the orchestration loop.

Converts ToolRegistry entries into OpenAI function-calling tool definitions
and appends the ``ask_human`` suspension tool, which has no registry handler:
the dispatcher handles it by suspending the loop.
"""

import logging
from typing import Optional

from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

ASK_HUMAN = "ask_human"

# Suspension tool: calling this pauses the loop until a human answers.
ASK_HUMAN_TOOL: dict = {
    "type": "function",
    "function": {
        "name": ASK_HUMAN,
        "description": "Ask a question to the human user and get their response",
        "parameters": {
            "type": "object",
            "properties": {
                "message": {
                    "type": "string",
                    "description": "The question or message to show to the user",
                }
            },
            "required": ["message"],
        },
    },
}


def build_tool_definitions(exclude_tools: Optional[set[str]] = None) -> list[dict]:
    """
    Build OpenAI function-calling tool definitions from the registry.

    Tools appear in registration order; ``ask_human`` is always last and is
    never excluded.

    Args:
        exclude_tools: Registry tool names to leave out.

    Returns:
        List of OpenAI-format tool definitions.
    """
    exclude = exclude_tools or set()
    tools: list[dict] = []

    for name, tool_def in ToolRegistry.all_tools().items():
        if name in exclude:
            logger.debug("Excluding tool '%s'", name)
            continue
        tools.append(
            {
                "type": "function",
                "function": {
                    "name": name,
                    "description": tool_def.description,
                    "parameters": tool_def.parameters_schema(),
                },
            }
        )

    tools.append(ASK_HUMAN_TOOL)
    return tools
