"""
Schema discovery endpoints.

Implements /v1/analysis (single JSON response) and /v1/analysis/stream
(Server-Sent Events with step-by-step progress). The server keeps no
conversation state: the client sends back the history from the previous
response with each new message.
"""

import contextvars
import json
import logging
import queue
import threading
import uuid
from typing import Generator, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from ...agent import SchemaDiscoveryAgent, reply_text
from ...conversation import SYSTEM, Conversation
from ...errors import ConversationError
from ...orchestration import CallbackReporter, OrchestrationResult
from ...orchestration.prompts import SYSTEM_PROMPT
from ...tracing import TracingContext, get_tracing_client
from ..schemas import AnalysisRequest, AnalysisResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter()

STREAM_ERROR_MESSAGE = "Sorry, there was an error processing your request."

_STREAM_DONE = object()


def build_conversation(request: AnalysisRequest) -> Conversation:
    """
    Rebuild the conversation from the request history.

    An empty history starts a new conversation; a history without a leading
    system message gets the task instructions prepended.

    Raises:
        HTTPException: 400 if the history breaks tool-call pairing.
    """
    history = [message.model_dump(exclude_none=True) for message in request.history]
    if not history or history[0]["role"] != SYSTEM:
        history.insert(0, {"role": SYSTEM, "content": SYSTEM_PROMPT})
    try:
        return Conversation.from_openai(history)
    except ConversationError as e:
        logger.warning(f"Rejected invalid history: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid history: {e}")


def _start_tracing(execution_id: str, request: AnalysisRequest, stream: bool) -> TracingContext:
    tracing_context = TracingContext(execution_id=execution_id, session_id=request.session_id)
    tracing_context.start_trace(
        name="schema_discovery",
        user_text=request.message,
        metadata={"stream": stream, "history_length": len(request.history)},
    )
    return tracing_context


def _end_tracing(
    tracing_context: TracingContext,
    result: Optional[OrchestrationResult],
    error: Optional[Exception] = None,
) -> None:
    if error is not None or result is None:
        tracing_context.end_trace(output=str(error) if error else None, status="error")
    else:
        tracing_context.end_trace(
            output=result.text,
            status="success",
            metadata={
                "outcome": result.outcome,
                "completion_requests": result.completion_requests,
            },
        )
    _flush_tracing()


@router.post(
    "/v1/analysis",
    response_model=AnalysisResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request or history"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Run schema discovery",
    description=(
        "Submit a message (a new request or the answer to a pending question) "
        "together with the conversation history and run the agent loop."
    ),
)
def run_analysis(request: AnalysisRequest) -> AnalysisResponse:
    """Run one agent invocation and return the outcome with the updated history."""
    conversation = build_conversation(request)
    execution_id = f"exec-{uuid.uuid4().hex[:8]}"
    logger.info(f"[{execution_id}] Processing analysis request: {request.message[:100]}")

    tracing_context = _start_tracing(execution_id, request, stream=False)
    try:
        agent = SchemaDiscoveryAgent(execution_id=execution_id, tracing_context=tracing_context)
        try:
            result = agent.run(request.message, conversation)
        finally:
            agent.close()
    except Exception as e:
        logger.exception(f"[{execution_id}] Analysis failed: {e}")
        _end_tracing(tracing_context, None, error=e)
        raise HTTPException(status_code=500, detail=str(e))

    _end_tracing(tracing_context, result)
    return AnalysisResponse(
        outcome=result.outcome,
        message=reply_text(result),
        history=conversation.to_openai(),
        completion_requests=result.completion_requests,
    )


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload, default=str)}\n\n"


def _generate_stream(
    request: AnalysisRequest,
    conversation: Conversation,
    execution_id: str,
) -> Generator[str, None, None]:
    """
    Run the agent in a worker thread and relay its narration as SSE events.

    Each progress line becomes ``{"step": text}``; the last event carries
    the reply, the outcome and the updated history, or an error message.

    The whole trace (root span included) is opened and closed on the worker
    thread, which runs in a copy of the request context so observations
    nest under the root span. The trace is closed even if the client
    disconnects before the final event.
    """
    events: queue.Queue = queue.Queue()
    state: dict = {}

    def worker() -> None:
        tracing_context = _start_tracing(execution_id, request, stream=True)
        agent = None
        try:
            agent = SchemaDiscoveryAgent(
                execution_id=execution_id, tracing_context=tracing_context
            )
            state["result"] = agent.run(
                request.message, conversation, reporter=CallbackReporter(events.put)
            )
        except Exception as e:
            logger.exception(f"[{execution_id}] Streaming analysis failed: {e}")
            state["error"] = e
        finally:
            if agent is not None:
                agent.close()
            _end_tracing(tracing_context, state.get("result"), error=state.get("error"))
            events.put(_STREAM_DONE)

    context = contextvars.copy_context()
    thread = threading.Thread(
        target=context.run, args=(worker,), name=f"analysis-{execution_id}", daemon=True
    )
    thread.start()

    try:
        while True:
            item = events.get()
            if item is _STREAM_DONE:
                break
            yield _sse({"step": item})
    except GeneratorExit:
        logger.info(f"[{execution_id}] Client disconnected; agent run continues in background")
        raise
    thread.join()

    if "error" in state:
        yield _sse({"message": STREAM_ERROR_MESSAGE, "outcome": "error"})
        return

    result: OrchestrationResult = state["result"]
    yield _sse(
        {
            "message": reply_text(result),
            "outcome": result.outcome,
            "history": conversation.to_openai(),
        }
    )


@router.post(
    "/v1/analysis/stream",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request or history"},
    },
    summary="Run schema discovery with streamed progress",
    description=(
        "Same as /v1/analysis, but streams progress narration as Server-Sent "
        "Events. The final event carries the reply, outcome and history."
    ),
)
def stream_analysis(request: AnalysisRequest) -> StreamingResponse:
    conversation = build_conversation(request)
    execution_id = f"exec-{uuid.uuid4().hex[:8]}"
    logger.info(f"[{execution_id}] Streaming analysis request: {request.message[:100]}")
    return StreamingResponse(
        _generate_stream(request, conversation, execution_id),
        media_type="text/event-stream",
    )


def _flush_tracing() -> None:
    """Flush tracing client if available."""
    client = get_tracing_client()
    if client:
        client.flush()
