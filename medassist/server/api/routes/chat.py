"""
Chat API route.

``POST /api/chat`` runs the RAG pipeline and relays the upstream
completion stream byte for byte as ``text/event-stream``. Failures before
the stream opens become ``{"error": ...}`` responses with status 429, 402
or 500.
"""

from typing import AsyncIterator, Optional

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from medassist.llm.exceptions import UpstreamError
from medassist.rag import PipelineRun
from medassist.utils.logging import log_event, log_operation_error, new_correlation_id

from ..dependencies import get_container
from ..error_formatting import error_response

router = APIRouter(prefix="/api", tags=["chat"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class ChatRequest(BaseModel):
    """Request body sent by the chat client."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, max_length=8000, description="User question")
    conversation_id: Optional[str] = Field(
        None,
        alias="conversationId",
        description=(
            "Conversation UUID to continue; null disables history and persistence. "
            "Ids that are not UUIDs still stream but are not persisted"
        ),
    )

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message cannot be blank")
        return value


async def relay_stream(run: PipelineRun) -> AsyncIterator[bytes]:
    """
    Forward the pipeline's raw bytes to the client.

    Once the response has started the status code can no longer change,
    so a mid-stream upstream failure ends the body early and is logged.
    """
    stream = run.stream()
    try:
        async for chunk in stream:
            yield chunk
    except UpstreamError as e:
        log_operation_error(
            "chat_stream_relay",
            e,
            conversation_id=run.conversation_id,
            deltas_forwarded=run.delta_count,
        )
    finally:
        await stream.aclose()


@router.post("/chat")
async def chat(request: ChatRequest):
    """
    Answer a question with retrieved medical context, streamed.

    Returns the upstream server-sent event stream unchanged.
    """
    correlation_id = new_correlation_id()

    try:
        pipeline = get_container().rag_pipeline
        if pipeline is None:
            raise RuntimeError("Chat pipeline not available")

        run = await pipeline.start(
            message=request.message,
            conversation_id=request.conversation_id,
        )
    except Exception as e:
        return error_response(e, event="chat_request_failed")

    log_event(
        "chat_stream_started",
        {
            "conversation_id": request.conversation_id,
            "matches": len(run.matches),
        },
    )

    headers = {**STREAM_HEADERS, "X-Correlation-Id": correlation_id}
    if request.conversation_id:
        headers["X-Conversation-Id"] = request.conversation_id

    return StreamingResponse(
        relay_stream(run),
        media_type="text/event-stream",
        headers=headers,
    )
