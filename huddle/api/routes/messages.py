"""Message routes: send a message to the assistant and read history."""

import logging

from fastapi import APIRouter, Query, status

from huddle.api.deps import HistoryServiceDep, RoutingEngineDep
from huddle.models.messages import MessageExchange, MessagePage, SendMessageRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MessageExchange)
async def send_message(request: SendMessageRequest, engine: RoutingEngineDep) -> MessageExchange:
    """Route one inbound message and return the assistant's reply.

    Share messages are stored as highlights and acknowledged; requests are
    answered with a digest of other users' recent highlights.
    """
    return await engine.handle_message(
        sender_id=request.sender_id,
        participant_id=request.participant_id,
        text=request.text,
    )


@router.get("", response_model=MessagePage)
async def list_messages(
    history: HistoryServiceDep,
    user_id: str = Query("", alias="userId"),
    participant_id: str | None = Query(None, alias="participantId"),
    page: int = Query(1),
    limit: int = Query(10),
) -> MessagePage:
    """Page through a user's message history, newest first."""
    return await history.list_messages(
        user_id=user_id,
        participant_id=participant_id,
        page=page,
        limit=limit,
    )
