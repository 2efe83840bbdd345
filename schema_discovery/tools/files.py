"""
File Access Tools

Read-only access to the sample files directory the agent analyzes:
- get_files_list: list the files available for analysis
- get_file_size: size of a file in bytes, KB and MB
- get_file_content_low_level: read a chunk by byte range or line range

All paths are resolved inside the configured sample files directory;
anything escaping it is rejected.
"""

import logging
from pathlib import Path
from typing import Optional

from ..config import config
from ..errors import PathOutsideRootError, ToolExecutionError

logger = logging.getLogger(__name__)


def files_root() -> Path:
    """Absolute path of the sample files directory."""
    return Path(config.tools.sample_files_dir).resolve()


def resolve_path(name: str, root: Optional[Path] = None) -> Path:
    """
    Resolve a file or folder name inside the sample files directory.

    Raises:
        PathOutsideRootError: If the resolved path is outside the root.
    """
    root = root or files_root()
    candidate = (root / name).resolve()
    if candidate != root and root not in candidate.parents:
        raise PathOutsideRootError(f"Path '{name}' is outside the sample files directory")
    return candidate


def file_type_of(name: str) -> str:
    """File extension without the leading dot ('' when there is none)."""
    return Path(name).suffix.lstrip(".")


def get_files_list(folder: Optional[str] = None) -> dict:
    """
    List files available for analysis.

    Args:
        folder: Sub-folder of the sample files directory. Defaults to the
            directory itself.

    Returns:
        Dictionary with a ``files`` list of ``{"name", "type"}`` entries.
    """
    root = files_root()
    if not folder or folder in (".", config.tools.sample_files_dir):
        directory = root
    else:
        directory = resolve_path(folder, root)

    logger.debug("Listing directory: %s", directory)
    if not directory.is_dir():
        raise ToolExecutionError(f"Folder '{folder or directory.name}' does not exist")

    files = sorted(entry.name for entry in directory.iterdir() if not entry.name.startswith("."))
    return {"files": [{"name": name, "type": file_type_of(name)} for name in files]}


def get_file_size(filename: str) -> dict:
    """
    Get the size of a file.

    Returns:
        Dictionary with size in bytes, and KB/MB rounded to two decimals.
    """
    path = _existing_file(filename)
    size = path.stat().st_size
    return {
        "size_bytes": size,
        "size_kb": round(size / 1024, 2),
        "size_mb": round(size / (1024 * 1024), 2),
    }


def get_file_content_low_level(
    filename: str,
    byte_start: Optional[int] = None,
    byte_length: Optional[int] = None,
    start_line: Optional[int] = None,
    num_lines: Optional[int] = None,
) -> dict:
    """
    Read a portion of a file, by byte range or by line range.

    Byte ranges are preferred when both ``byte_start`` and ``byte_length``
    are given; otherwise ``start_line`` and ``num_lines`` (0-based) are used.

    Raises:
        ToolExecutionError: If neither range is fully specified, or the
            range is invalid.
    """
    path = _existing_file(filename)
    file_type = file_type_of(filename)
    max_chars = config.tools.max_content_chars

    if byte_start is not None and byte_length is not None:
        byte_start, byte_length = int(byte_start), int(byte_length)
        if byte_start < 0 or byte_length <= 0:
            raise ToolExecutionError("byte_start must be >= 0 and byte_length > 0")
        byte_length = min(byte_length, max_chars)
        with path.open("rb") as fh:
            fh.seek(byte_start)
            data = fh.read(byte_length)
        return {
            "content": data.decode("utf-8", errors="replace"),
            "type": "byte",
            "start": byte_start,
            "length": len(data),
            "file_type": file_type,
        }

    if start_line is not None and num_lines is not None:
        start_line, num_lines = int(start_line), int(num_lines)
        if start_line < 0 or num_lines <= 0:
            raise ToolExecutionError("start_line must be >= 0 and num_lines > 0")
        end_line = start_line + num_lines
        lines: list[str] = []
        total_lines = 0
        with path.open("r", encoding="utf-8", errors="replace") as fh:
            for index, line in enumerate(fh):
                total_lines = index + 1
                if start_line <= index < end_line:
                    lines.append(line.rstrip("\n"))
        content = "\n".join(lines)
        return {
            "content": content[:max_chars],
            "type": "line",
            "start": start_line,
            "num_lines": len(lines),
            "total_lines": total_lines,
            "file_type": file_type,
        }

    raise ToolExecutionError("Either byte range or line range must be specified")


def _existing_file(filename: Optional[str]) -> Path:
    if not filename or not str(filename).strip():
        raise ToolExecutionError("filename is required")
    path = resolve_path(str(filename).strip())
    if not path.is_file():
        raise ToolExecutionError(f"File '{filename}' not found")
    return path


def _handle_get_files_list(params: dict) -> dict:
    return get_files_list(params.get("folder"))


def _handle_get_file_size(params: dict) -> dict:
    return get_file_size(params.get("filename", ""))


def _handle_get_file_content(params: dict) -> dict:
    return get_file_content_low_level(
        params.get("filename", ""),
        byte_start=params.get("byte_start"),
        byte_length=params.get("byte_length"),
        start_line=params.get("start_line"),
        num_lines=params.get("num_lines"),
    )


# Register tools with the registry
def _register():
    from .registry import ToolRegistry

    ToolRegistry.register(
        name="get_files_list",
        description="Get list of files from the sample files directory",
        parameters={
            "folder": {
                "type": "string",
                "description": "Sub-folder to list (defaults to the sample files directory)",
            }
        },
        handler=_handle_get_files_list,
    )
    ToolRegistry.register(
        name="get_file_size",
        description="Get the size of a file in bytes, KB, and MB",
        parameters={
            "filename": {"type": "string", "description": "Name of the file to check"}
        },
        handler=_handle_get_file_size,
        required=["filename"],
    )
    ToolRegistry.register(
        name="get_file_content_low_level",
        description="Read a portion of a file by byte range or line numbers",
        parameters={
            "filename": {"type": "string", "description": "Name of the file to read"},
            "byte_start": {"type": "number", "description": "Starting byte position"},
            "byte_length": {"type": "number", "description": "Number of bytes to read"},
            "start_line": {
                "type": "number",
                "description": "Starting line number (0-based)",
            },
            "num_lines": {"type": "number", "description": "Number of lines to read"},
        },
        handler=_handle_get_file_content,
        required=["filename"],
    )


_register()
