"""Store protocol consumed by the identity cache, resolver and routing engine.

The authoritative copies of users, groups, messages and highlights live
behind this interface. Implementations raise ``DatabaseError`` on failure
and return ``None`` for a lookup that finds nothing.
"""

from typing import Protocol

from huddle.models.identity import Group, User
from huddle.models.messages import Highlight, Message


class Store(Protocol):
    """Query shapes used by the service."""

    async def find_user(self, user_id: str) -> User | None: ...

    async def find_user_by_phone(self, phone_number: str) -> User | None: ...

    async def insert_user(self, user: User) -> User: ...

    async def update_user(self, user: User) -> User: ...

    async def find_group(self, group_id: str) -> Group | None: ...

    async def insert_groups(self, groups: list[Group]) -> list[Group]: ...

    async def find_all_users(self) -> list[User]: ...

    async def find_all_groups(self) -> list[Group]: ...

    async def insert_highlight(self, highlight: Highlight) -> Highlight: ...

    async def find_highlights(
        self, author_ids: list[str] | None, sent_at_gte: int
    ) -> list[Highlight]:
        """Highlights at or after ``sent_at_gte``, oldest first.

        ``author_ids=None`` means every author.
        """
        ...

    async def insert_messages(self, messages: list[Message]) -> list[Message]:
        """Write all rows in one batch and return them with ids, in order."""
        ...

    async def find_messages(
        self,
        user_id: str,
        participant_id: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Message], int]:
        """A page of messages authored by or addressed to ``user_id``, newest first.

        With ``participant_id`` only the conversation between the two is
        returned. The second element is the total match count.
        """
        ...
