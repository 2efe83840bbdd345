"""
Pydantic schemas for the API.

The client owns the conversation: each analysis request carries the history
returned by the previous response, and the server never stores it.
"""

from typing import Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field


class HistoryMessage(BaseModel):
    """A conversation message in Chat Completions format."""

    role: Literal["system", "user", "assistant", "tool"] = Field(
        ..., description="The role of the message author"
    )
    content: Optional[Union[str, list[dict[str, Any]]]] = Field(
        default=None, description="Text or a list of content parts"
    )
    tool_call_id: Optional[str] = Field(
        default=None, description="Tool call answered by a tool message"
    )
    tool_calls: Optional[list[dict[str, Any]]] = Field(
        default=None, description="Tool calls requested by an assistant message"
    )


class AnalysisRequest(BaseModel):
    """Request body for the analysis endpoints."""

    message: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("message", "currentMessage"),
        description="New user request, or the answer to the pending question",
    )
    history: list[HistoryMessage] = Field(
        default_factory=list,
        validation_alias=AliasChoices("history", "messageHistory"),
        description="Conversation returned by the previous response (empty to start)",
    )
    session_id: Optional[str] = Field(
        default=None, description="Client conversation identifier, used for tracing"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "list files",
                "history": [],
            }
        }
    }


class AnalysisResponse(BaseModel):
    """Response body for /v1/analysis."""

    outcome: Literal["final", "question", "none"] = Field(
        ..., description="final answer, question for the user, or no answer yet"
    )
    message: str = Field(..., description="Text to show the user")
    history: list[dict[str, Any]] = Field(
        ..., description="Updated conversation to send with the next request"
    )
    completion_requests: int = Field(default=0, description="Model requests made")


class FileListResponse(BaseModel):
    """Response body for /v1/files."""

    files: list[str]
    count: int


class FileContentResponse(BaseModel):
    """Response body for /v1/files/{filename}."""

    filename: str
    content: str


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    version: str
    model: str


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
