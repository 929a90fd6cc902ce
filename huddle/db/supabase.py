"""Supabase-backed implementation of the store."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from huddle.core.circuit_breaker import CircuitBreakerOpen, get_circuit_breaker
from huddle.core.config import settings
from huddle.core.exceptions import DatabaseError
from huddle.models.identity import Group, User
from huddle.models.messages import Highlight, Message
from supabase import Client, create_client

logger = logging.getLogger(__name__)

T = TypeVar("T")

USERS_TABLE = "users"
GROUPS_TABLE = "groups"
MESSAGES_TABLE = "messages"
HIGHLIGHTS_TABLE = "highlights"

# PostgREST caps a single select; bulk loads page through with this size
PAGE_SIZE = 1000

_store_circuit_breaker = get_circuit_breaker("store")


class SupabaseClient:
    """Singleton Supabase client for backend operations."""

    _client: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """Get or create the Supabase client singleton.

        Raises:
            DatabaseError: If client initialization fails.
        """
        if cls._client is None:
            try:
                cls._client = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                logger.exception("Failed to initialize Supabase client")
                raise DatabaseError(f"Failed to initialize database connection: {e}") from e
        return cls._client

    @classmethod
    def reset_client(cls) -> None:
        """Reset the client singleton (useful for testing)."""
        cls._client = None


def get_supabase_client() -> Client:
    """Get Supabase client for dependency injection."""
    return SupabaseClient.get_client()


def _user_row(user: User) -> dict[str, Any]:
    return user.model_dump(mode="json")


def _message_row(message: Message) -> dict[str, Any]:
    return message.model_dump(mode="json", exclude={"id"})


def _quote(value: str) -> str:
    """Quote a value for a PostgREST logical filter."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class SupabaseStore:
    """Store backed by four Supabase tables: users, groups, messages, highlights."""

    def __init__(self, client: Client | None = None) -> None:
        """Initialize the store.

        Args:
            client: Supabase client; the process singleton is used if omitted.
        """
        self._client = client

    @property
    def db(self) -> Client:
        if self._client is None:
            self._client = SupabaseClient.get_client()
        return self._client

    async def _run(self, action: str, query: Callable[[Client], T], **log_extra: Any) -> T:
        """Execute a query off the event loop through the store circuit breaker.

        supabase-py is synchronous, so each query runs in a worker thread and
        only the awaiting request waits on the round-trip.

        Raises:
            DatabaseError: On any client failure or while the circuit is open.
        """
        try:
            _store_circuit_breaker.check()
        except CircuitBreakerOpen as e:
            raise DatabaseError(f"Failed to {action}: store unavailable") from e
        try:
            result = await asyncio.to_thread(query, self.db)
        except Exception as e:
            _store_circuit_breaker.record_failure()
            logger.exception("Error trying to %s", action, extra=log_extra)
            raise DatabaseError(f"Failed to {action}: {e}") from e
        _store_circuit_breaker.record_success()
        return result

    def _fetch_all(self, table: str) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            response = (
                self.db.table(table)
                .select("*")
                .order("id")
                .range(start, start + PAGE_SIZE - 1)
                .execute()
            )
            batch = response.data or []
            rows.extend(batch)
            if len(batch) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def find_user(self, user_id: str) -> User | None:
        response = await self._run(
            "fetch user",
            lambda db: db.table(USERS_TABLE).select("*").eq("id", user_id).limit(1).execute(),
            user_id=user_id,
        )
        return User.model_validate(response.data[0]) if response.data else None

    async def find_user_by_phone(self, phone_number: str) -> User | None:
        response = await self._run(
            "fetch user by phone",
            lambda db: db.table(USERS_TABLE)
            .select("*")
            .eq("phone_number", phone_number)
            .limit(1)
            .execute(),
        )
        return User.model_validate(response.data[0]) if response.data else None

    async def insert_user(self, user: User) -> User:
        response = await self._run(
            "create user",
            lambda db: db.table(USERS_TABLE).insert(_user_row(user)).execute(),
            user_id=user.id,
        )
        if not response.data:
            raise DatabaseError("Failed to create user")
        return User.model_validate(response.data[0])

    async def update_user(self, user: User) -> User:
        row = _user_row(user)
        row.pop("id")
        response = await self._run(
            "update user",
            lambda db: db.table(USERS_TABLE).update(row).eq("id", user.id).execute(),
            user_id=user.id,
        )
        if not response.data:
            raise DatabaseError("Failed to update user")
        return User.model_validate(response.data[0])

    async def find_all_users(self) -> list[User]:
        rows = await self._run("load users", lambda _db: self._fetch_all(USERS_TABLE))
        return [User.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def find_group(self, group_id: str) -> Group | None:
        response = await self._run(
            "fetch group",
            lambda db: db.table(GROUPS_TABLE).select("*").eq("id", group_id).limit(1).execute(),
            group_id=group_id,
        )
        return Group.model_validate(response.data[0]) if response.data else None

    async def insert_groups(self, groups: list[Group]) -> list[Group]:
        if not groups:
            return []
        rows = [group.model_dump(mode="json") for group in groups]
        response = await self._run(
            "create groups",
            lambda db: db.table(GROUPS_TABLE).insert(rows).execute(),
        )
        if not response.data or len(response.data) != len(groups):
            raise DatabaseError("Failed to create groups")
        return [Group.model_validate(row) for row in response.data]

    async def find_all_groups(self) -> list[Group]:
        rows = await self._run("load groups", lambda _db: self._fetch_all(GROUPS_TABLE))
        return [Group.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Highlights
    # ------------------------------------------------------------------

    async def insert_highlight(self, highlight: Highlight) -> Highlight:
        row = highlight.model_dump(mode="json", exclude={"id"})
        response = await self._run(
            "create highlight",
            lambda db: db.table(HIGHLIGHTS_TABLE).insert(row).execute(),
            author_id=highlight.author_id,
        )
        if not response.data:
            raise DatabaseError("Failed to create highlight")
        return Highlight.model_validate(response.data[0])

    async def find_highlights(
        self, author_ids: list[str] | None, sent_at_gte: int
    ) -> list[Highlight]:
        if author_ids is not None and not author_ids:
            return []

        def query(db: Client) -> Any:
            builder = db.table(HIGHLIGHTS_TABLE).select("*").gte("sent_at", sent_at_gte)
            if author_ids is not None:
                builder = builder.in_("author_id", author_ids)
            return builder.order("sent_at").execute()

        response = await self._run("fetch highlights", query)
        return [Highlight.model_validate(row) for row in response.data or []]

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def insert_messages(self, messages: list[Message]) -> list[Message]:
        rows = [_message_row(message) for message in messages]
        # One insert call is one statement, so the rows land together or not at all
        response = await self._run(
            "store messages",
            lambda db: db.table(MESSAGES_TABLE).insert(rows).execute(),
        )
        if not response.data or len(response.data) != len(messages):
            raise DatabaseError("Failed to store messages")
        return [Message.model_validate(row) for row in response.data]

    async def find_messages(
        self,
        user_id: str,
        participant_id: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Message], int]:
        def query(db: Client) -> Any:
            user = _quote(user_id)
            if participant_id:
                other = _quote(participant_id)
                conversation = (
                    f"and(author_id.eq.{user},participant_id.eq.{other}),"
                    f"and(author_id.eq.{other},participant_id.eq.{user})"
                )
            else:
                conversation = f"author_id.eq.{user},participant_id.eq.{user}"
            return (
                db.table(MESSAGES_TABLE)
                .select("*", count="exact")
                .or_(conversation)
                .order("sent_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )

        response = await self._run("fetch messages", query, user_id=user_id)
        messages = [Message.model_validate(row) for row in response.data or []]
        return messages, response.count or 0
