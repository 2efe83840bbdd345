"""
Schema Analysis Tools

LLM-backed analysis of file content:
- understand_schema: describe the schema/structure of a content chunk
- analyze_content: observations about the data itself (types, quality)
- analyze_merge: how several discovered schemas relate to each other

Each tool issues its own chat completion, separate from the orchestration
conversation, at a low temperature.
"""

import json
import logging
from typing import Optional, Union

from openai import OpenAI

from ..config import config
from ..errors import ToolExecutionError

logger = logging.getLogger(__name__)

# Phrases signalling the model could not see the whole structure yet.
INCOMPLETE_MARKERS = ("missing", "need more", "unclear")


def _create_client() -> OpenAI:
    return OpenAI(
        api_key=config.orchestrator.api_key or None,
        base_url=config.orchestrator.base_url or None,
    )


def _complete(prompt: str) -> str:
    """Run a single-prompt completion with the analysis model."""
    client = _create_client()
    try:
        completion = client.chat.completions.create(
            model=config.tools.schema_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=config.tools.schema_temperature,
        )
    finally:
        client.close()
    return completion.choices[0].message.content or ""


def _clip(content: str) -> str:
    limit = config.tools.max_content_chars
    return content if len(content) <= limit else content[:limit]


def understand_schema(content: str, file_type: str) -> dict:
    """
    Analyze content and describe its schema/structure.

    Args:
        content: Raw content chunk read from a file.
        file_type: Type of the file (json, xml, csv, ...).

    Returns:
        Dictionary with the analysis text, whether it looks complete, and
        the file type.
    """
    if not content or not content.strip():
        raise ToolExecutionError("content is required")

    file_type = (file_type or "unknown").strip()
    prompt = (
        f"Analyze the following {file_type.upper()} content and describe its "
        "schema/structure.\n"
        "If you can't determine the complete schema, indicate what's missing.\n"
        f"Content: {_clip(content)}"
    )
    analysis = _complete(prompt)
    lowered = analysis.lower()
    is_complete = bool(analysis) and not any(marker in lowered for marker in INCOMPLETE_MARKERS)
    logger.debug("Schema analysis for %s content complete=%s", file_type, is_complete)

    return {
        "schema_analysis": analysis,
        "is_complete": is_complete,
        "file_type": file_type,
    }


def analyze_content(content: str, file_type: str) -> dict:
    """Describe the data in a content chunk: value types, ranges, quality issues."""
    if not content or not content.strip():
        raise ToolExecutionError("content is required")

    file_type = (file_type or "unknown").strip()
    prompt = (
        f"Examine the following {file_type.upper()} content. For each field, "
        "describe the kind of values it holds, value ranges or formats, and "
        "any data quality issues (empty values, inconsistent formats, "
        "duplicates).\n"
        f"Content: {_clip(content)}"
    )
    return {"content_analysis": _complete(prompt), "file_type": file_type}


def analyze_merge(schemas: Union[list, dict, str], goal: Optional[str] = None) -> dict:
    """Explain how several schemas relate: shared keys, conflicts, merge strategy."""
    if not schemas:
        raise ToolExecutionError("schemas is required")
    if not isinstance(schemas, str):
        schemas = json.dumps(schemas, indent=2)

    prompt = (
        "Given the following schemas discovered from different files, identify "
        "fields that can be used to join or merge them, conflicting field names "
        "or types, and propose a merged schema.\n"
    )
    if goal:
        prompt += f"Merge goal: {goal}\n"
    prompt += f"Schemas: {_clip(schemas)}"
    return {"merge_analysis": _complete(prompt)}


def _handle_understand_schema(params: dict) -> dict:
    return understand_schema(params.get("content", ""), params.get("file_type", ""))


def _handle_analyze_content(params: dict) -> dict:
    return analyze_content(params.get("content", ""), params.get("file_type", ""))


def _handle_analyze_merge(params: dict) -> dict:
    return analyze_merge(params.get("schemas"), params.get("goal"))


# Register tools with the registry
def _register():
    from .registry import ToolRegistry

    ToolRegistry.register(
        name="understand_schema",
        description="Analyze content to understand its schema/structure",
        parameters={
            "content": {"type": "string", "description": "Content to analyze"},
            "file_type": {
                "type": "string",
                "description": "Type of file (json, xml, csv, etc)",
            },
        },
        handler=_handle_understand_schema,
        required=["content", "file_type"],
    )
    ToolRegistry.register(
        name="analyze_content",
        description="Describe the values in content: types, formats and data quality issues",
        parameters={
            "content": {"type": "string", "description": "Content to analyze"},
            "file_type": {
                "type": "string",
                "description": "Type of file (json, xml, csv, etc)",
            },
        },
        handler=_handle_analyze_content,
        required=["content", "file_type"],
    )
    ToolRegistry.register(
        name="analyze_merge",
        description="Analyze how schemas from several files can be merged or joined",
        parameters={
            "schemas": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Schema descriptions, one per file",
            },
            "goal": {
                "type": "string",
                "description": "Optional description of what the merged data is for",
            },
        },
        handler=_handle_analyze_merge,
        required=["schemas"],
    )


_register()
