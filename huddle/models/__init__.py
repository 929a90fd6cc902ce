"""Pydantic models and intent variants."""

from huddle.models.identity import (
    DEFAULT_GROUP_NAMES,
    CreateGroupRequest,
    CreateUserRequest,
    Group,
    GroupRef,
    RefreshToken,
    User,
)
from huddle.models.intent import (
    ClassificationPayload,
    GeneralRequestIntent,
    Intent,
    RequestIntent,
    ShareIntent,
    SummaryPayload,
    UnrecognizedIntent,
)
from huddle.models.messages import (
    Highlight,
    Message,
    MessageExchange,
    MessagePage,
    SendMessageRequest,
)

__all__ = [
    "DEFAULT_GROUP_NAMES",
    "ClassificationPayload",
    "CreateGroupRequest",
    "CreateUserRequest",
    "GeneralRequestIntent",
    "Group",
    "GroupRef",
    "Highlight",
    "Intent",
    "Message",
    "MessageExchange",
    "MessagePage",
    "RefreshToken",
    "RequestIntent",
    "SendMessageRequest",
    "ShareIntent",
    "SummaryPayload",
    "UnrecognizedIntent",
    "User",
]
