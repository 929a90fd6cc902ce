"""Shared fixtures: environment, in-memory store, scripted model, fixed clock."""

import os

# Settings are validated at import time; give them test values first.
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-key")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")

import json
import uuid
from collections import Counter
from collections.abc import Generator
from typing import Any

import pytest

from huddle.api.deps import Services, build_services
from huddle.core.exceptions import DatabaseError
from huddle.core.identity_cache import IdentityCache
from huddle.models.identity import Group, GroupRef, User
from huddle.models.messages import Highlight, Message

NOW = 1_760_000_000
DAY = 86400


class InMemoryStore:
    """Store fake keeping rows in dicts and lists.

    ``calls`` counts invocations per method; adding a method name to
    ``fail`` makes that method raise ``DatabaseError`` before writing.
    """

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.groups: dict[str, Group] = {}
        self.highlights: list[Highlight] = []
        self.messages: list[Message] = []
        self.calls: Counter[str] = Counter()
        self.fail: set[str] = set()

    def _enter(self, name: str) -> None:
        self.calls[name] += 1
        if name in self.fail:
            raise DatabaseError(f"Failed to {name}: simulated outage")

    async def find_user(self, user_id: str) -> User | None:
        self._enter("find_user")
        return self.users.get(user_id)

    async def find_user_by_phone(self, phone_number: str) -> User | None:
        self._enter("find_user_by_phone")
        return next((u for u in self.users.values() if u.phone_number == phone_number), None)

    async def insert_user(self, user: User) -> User:
        self._enter("insert_user")
        self.users[user.id] = user
        return user

    async def update_user(self, user: User) -> User:
        self._enter("update_user")
        if user.id not in self.users:
            raise DatabaseError("Failed to update user")
        self.users[user.id] = user
        return user

    async def find_group(self, group_id: str) -> Group | None:
        self._enter("find_group")
        return self.groups.get(group_id)

    async def insert_groups(self, groups: list[Group]) -> list[Group]:
        self._enter("insert_groups")
        for group in groups:
            self.groups[group.id] = group
        return list(groups)

    async def find_all_users(self) -> list[User]:
        self._enter("find_all_users")
        return list(self.users.values())

    async def find_all_groups(self) -> list[Group]:
        self._enter("find_all_groups")
        return list(self.groups.values())

    async def insert_highlight(self, highlight: Highlight) -> Highlight:
        self._enter("insert_highlight")
        stored = highlight.model_copy(update={"id": uuid.uuid4().hex})
        self.highlights.append(stored)
        return stored

    async def find_highlights(
        self, author_ids: list[str] | None, sent_at_gte: int
    ) -> list[Highlight]:
        self._enter("find_highlights")
        rows = [
            h
            for h in self.highlights
            if h.sent_at >= sent_at_gte and (author_ids is None or h.author_id in author_ids)
        ]
        return sorted(rows, key=lambda h: h.sent_at)

    async def insert_messages(self, messages: list[Message]) -> list[Message]:
        self._enter("insert_messages")
        stored = [m.model_copy(update={"id": uuid.uuid4().hex}) for m in messages]
        self.messages.extend(stored)
        return stored

    async def find_messages(
        self,
        user_id: str,
        participant_id: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Message], int]:
        self._enter("find_messages")
        if participant_id:
            pairs = {(user_id, participant_id), (participant_id, user_id)}
            rows = [m for m in self.messages if (m.author_id, m.participant_id) in pairs]
        else:
            rows = [m for m in self.messages if user_id in (m.author_id, m.participant_id)]
        rows = list(reversed(rows))
        rows.sort(key=lambda m: m.sent_at, reverse=True)
        return rows[offset : offset + limit], len(rows)

    def add_user(self, user_id: str, display_name: str, group_names: tuple[str, ...] = ()) -> User:
        """Insert a user and owned groups directly, bypassing call counters."""
        refs = []
        for name in group_names:
            group = Group(
                id=f"{user_id}_{name.lower()}_group",
                name=name,
                created_by=user_id,
                created_at=NOW - 30 * DAY,
            )
            self.groups[group.id] = group
            refs.append(GroupRef(group_id=group.id, group_name=group.name))
        user = User(
            id=user_id,
            display_name=display_name,
            phone_number=f"+1555{len(self.users):07d}",
            created_at=NOW - 30 * DAY,
            modified_at=NOW - 30 * DAY,
            groups=refs,
        )
        self.users[user.id] = user
        return user

    def add_highlight(self, author_id: str, text: str, sent_at: int) -> Highlight:
        highlight = Highlight(
            id=uuid.uuid4().hex, author_id=author_id, target_id=None, text=text, sent_at=sent_at
        )
        self.highlights.append(highlight)
        return highlight


class ScriptedLLM:
    """Model fake answering classification and digest prompts separately.

    Each reply is a string, a dict (sent as JSON), or an exception to raise.
    """

    def __init__(
        self,
        classification: Any = None,
        summary: Any = None,
    ) -> None:
        self.classification = classification if classification is not None else {"label": "share"}
        self.summary = summary if summary is not None else {"summary": "Everyone is doing well."}
        self.prompts: list[str] = []

    async def complete(self, prompt: str, expect_json: bool = False) -> str:
        self.prompts.append(prompt)
        reply = self.classification if prompt.startswith("Classify the message") else self.summary
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return str(reply)

    @property
    def digest_prompts(self) -> list[str]:
        return [p for p in self.prompts if not p.startswith("Classify the message")]


@pytest.fixture
def store() -> InMemoryStore:
    """Store with users U1 (Alice) and U2 (Bob), each owning the default groups."""
    store = InMemoryStore()
    store.add_user("U1", "Alice Walker", ("Everyone", "Family", "Friends", "Followers"))
    store.add_user("U2", "Bob Stone", ("Everyone", "Family", "Friends", "Followers"))
    return store


@pytest.fixture
def cache() -> IdentityCache:
    return IdentityCache()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def services(store: InMemoryStore, cache: IdentityCache, llm: ScriptedLLM) -> Services:
    return build_services(
        store=store,
        llm=llm,
        default_lookback_days=7,
        cache=cache,
        clock=lambda: float(NOW),
    )


@pytest.fixture
def test_client(services: Services) -> Generator[Any, None, None]:
    """TestClient with the service graph replaced by in-memory fakes."""
    from fastapi.testclient import TestClient

    from huddle.api.deps import get_services
    from huddle.main import app

    app.dependency_overrides[get_services] = lambda: services
    client = TestClient(app, raise_server_exceptions=False)
    yield client
    app.dependency_overrides.clear()
