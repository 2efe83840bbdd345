"""Sample file browsing endpoints."""

import logging

from fastapi import APIRouter, HTTPException

from ...errors import PathOutsideRootError, ToolExecutionError
from ...tools.files import get_files_list, resolve_path
from ..schemas import ErrorResponse, FileContentResponse, FileListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/v1/files",
    response_model=FileListResponse,
    summary="List sample files",
    description="List the files available to the agent for analysis.",
)
def list_files() -> FileListResponse:
    try:
        listing = get_files_list()
    except ToolExecutionError as e:
        logger.error(f"Failed to list sample files: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    names = [entry["name"] for entry in listing["files"]]
    return FileListResponse(files=names, count=len(names))


@router.get(
    "/v1/files/{filename:path}",
    response_model=FileContentResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Path outside the sample files"},
        404: {"model": ErrorResponse, "description": "File not found"},
    },
    summary="Get sample file",
    description="Return the full text content of a sample file.",
)
def get_file(filename: str) -> FileContentResponse:
    try:
        path = resolve_path(filename)
    except PathOutsideRootError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not path.is_file():
        raise HTTPException(status_code=404, detail=f"File '{filename}' not found")

    content = path.read_text(encoding="utf-8", errors="replace")
    return FileContentResponse(filename=filename, content=content)
