"""Message and highlight models."""

from pydantic import Field

from huddle.models.identity import CamelModel


class Message(CamelModel):
    """One side of an exchange; ``id`` is assigned by the store on insert."""

    id: str | None = None
    author_id: str
    participant_id: str
    text: str
    is_from_user: bool
    sent_at: int


class Highlight(CamelModel):
    """A personal update shared by a user. Never updated once written."""

    id: str | None = None
    author_id: str
    target_id: str | None = None
    text: str
    sent_at: int


class SendMessageRequest(CamelModel):
    """Request body for POST /messages.

    Emptiness is checked by the routing engine so every entry point
    reports it the same way.
    """

    sender_id: str = ""
    participant_id: str = ""
    text: str = ""


class MessageExchange(CamelModel):
    """Result of a handled exchange."""

    participant_id: str
    input_message_id: str
    response_message_id: str
    message: str | None
    is_from_user: bool = False
    sent_at: int


class MessagePage(CamelModel):
    """A page of message history."""

    total: int
    page: int
    limit: int
    total_pages: int
    data: list[Message] = Field(default_factory=list)
