"""
Tool Registry - Single source of truth for tool definitions.

Provides a central registry for all tools with their metadata, JSON-Schema
parameters and handlers. The dispatcher routes through this registry and the
declared tool catalog is built from it, so every declared tool has a handler.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

ToolHandler = Callable[[dict], Any]


@dataclass
class ToolDefinition:
    """Metadata for a tool - defined once, used everywhere."""

    name: str
    description: str
    parameters: dict[str, dict]  # param_name -> JSON-Schema property
    handler: ToolHandler
    required: list[str] = field(default_factory=list)

    def parameters_schema(self) -> dict:
        """JSON-Schema object describing the tool arguments."""
        return {
            "type": "object",
            "properties": dict(self.parameters),
            "required": list(self.required),
        }


class ToolRegistry:
    """Central registry for all tools."""

    _tools: dict[str, ToolDefinition] = {}

    @classmethod
    def register(
        cls,
        name: str,
        description: str,
        parameters: dict[str, dict],
        handler: ToolHandler,
        required: Optional[list[str]] = None,
    ) -> None:
        """Register a tool with its metadata."""
        unknown = set(required or []) - set(parameters)
        if unknown:
            raise ValueError(
                f"Tool '{name}' requires undeclared parameters: {sorted(unknown)}"
            )
        cls._tools[name] = ToolDefinition(
            name=name,
            description=description,
            parameters=parameters,
            handler=handler,
            required=list(required or []),
        )

    @classmethod
    def get(cls, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name."""
        return cls._tools.get(name)

    @classmethod
    def all_tools(cls) -> dict[str, ToolDefinition]:
        """Get a copy of all registered tools."""
        return cls._tools.copy()

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._tools)

    @classmethod
    def get_tools_summary(cls) -> str:
        """Get formatted summary of all tools for prompts."""
        lines = []
        for name, tool in cls._tools.items():
            lines.append(f"- {name}: {tool.description}")
        return "\n".join(lines)

    @classmethod
    def clear(cls) -> None:
        """Clear all registered tools (mainly for testing)."""
        cls._tools.clear()
