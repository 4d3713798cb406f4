"""
Conversation API routes.

Provides REST endpoints the chat client uses around ``/api/chat``:
- Create a conversation before the first message
- Read back recent messages of a conversation
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..dependencies import get_container

router = APIRouter(prefix="/api", tags=["conversations"])


class CreateConversationRequest(BaseModel):
    """Request model for creating a conversation."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(
        None, alias="userId", description="Owner ID issued by the auth provider"
    )
    title: Optional[str] = Field(None, description="Conversation title")


def _conversation_services():
    try:
        container = get_container()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Services not available") from None

    if not container.conversation_service or not container.message_service:
        raise HTTPException(
            status_code=503, detail="Conversation service not available"
        )
    return container.conversation_service, container.message_service


@router.post("/conversations")
async def create_conversation(request: Optional[CreateConversationRequest] = None):
    """
    Create a new conversation.

    Returns the created conversation with ID.
    """
    request = request or CreateConversationRequest()
    conversation_service, _ = _conversation_services()

    result = await conversation_service.create_conversation(
        user_id=request.user_id,
        title=request.title,
    )

    if result.is_failure():
        return JSONResponse(content=result.to_dict(), status_code=result.status_code)

    return {"success": True, "conversation": result.unwrap()}


@router.get("/conversations/{conversation_id}/messages")
async def get_conversation_messages(
    conversation_id: str,
    limit: int = Query(default=50, ge=1, le=200),
):
    """Most recent messages of a conversation, oldest first."""
    conversation_service, message_service = _conversation_services()

    conv_result = await conversation_service.get_conversation(conversation_id)
    if conv_result.is_failure():
        return JSONResponse(
            content=conv_result.to_dict(), status_code=conv_result.status_code
        )

    msg_result = await message_service.get_recent_turns(
        conversation_id=conversation_id, limit=limit
    )
    if msg_result.is_failure():
        return JSONResponse(
            content=msg_result.to_dict(), status_code=msg_result.status_code
        )

    turns = msg_result.unwrap()
    return {
        "success": True,
        "conversation_id": conversation_id,
        "messages": [turn.model_dump(mode="json") for turn in turns],
        "total": len(turns),
    }
