"""
Schema Discovery Tools Package

Available tools:
- get_files_list, get_file_size, get_file_content_low_level: file access
- understand_schema, analyze_content, analyze_merge: LLM-backed analysis

Importing this package registers every tool with the ToolRegistry.
"""

from .registry import ToolDefinition, ToolRegistry
from .files import get_files_list, get_file_size, get_file_content_low_level
from .schema import understand_schema, analyze_content, analyze_merge

__all__ = [
    "ToolDefinition",
    "ToolRegistry",
    "get_files_list",
    "get_file_size",
    "get_file_content_low_level",
    "understand_schema",
    "analyze_content",
    "analyze_merge",
]
