"""Paged message history for a user."""

import math

from huddle.core.exceptions import InvalidInputError
from huddle.db.store import Store
from huddle.models.messages import MessagePage

MAX_PAGE_SIZE = 100


class MessageHistoryService:
    """Reads a user's stored exchanges, newest first."""

    def __init__(self, store: Store) -> None:
        self._store = store

    async def list_messages(
        self,
        user_id: str,
        participant_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> MessagePage:
        """Return one page of messages written by or for ``user_id``.

        Raises:
            InvalidInputError: If ``user_id`` is blank or paging is out of range.
        """
        if not user_id.strip():
            raise InvalidInputError("userId is required", field="userId")
        if page < 1:
            raise InvalidInputError("page must be at least 1", field="page")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidInputError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")

        messages, total = await self._store.find_messages(
            user_id.strip(),
            participant_id or None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return MessagePage(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
            data=messages,
        )
