"""Process-wide identity cache.

Maps user and group ids to the last snapshot this process has seen. The
store remains the system of record:

- ``warm()`` bulk-loads every user and group once at startup.
- Read misses are filled by the participant resolver after a store lookup.
- Write paths put the new value only after the store write succeeded.

Entries never expire and are never evicted; a stale entry is corrected
only by a later ``put`` or a restart. Concurrent puts to one id are
last-write-wins. The lock guards the mapping only and is never held
across a store round-trip.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import TYPE_CHECKING, Any

from cachetools import Cache

from huddle.models.identity import Group, User

if TYPE_CHECKING:
    from huddle.db.store import Store

logger = logging.getLogger(__name__)

Entity = User | Group


class IdentityCache:
    """Read-through snapshot cache of users and groups."""

    def __init__(self) -> None:
        # Unbounded: cachetools never evicts below an infinite maxsize
        self._entries: Cache[str, Entity] = Cache(maxsize=math.inf)
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, entity_id: object) -> bool:
        with self._lock:
            return entity_id in self._entries

    def get(self, entity_id: str) -> Entity | None:
        """Return the cached snapshot for ``entity_id``, or None on a miss."""
        with self._lock:
            entity = self._entries.get(entity_id)
            if entity is None:
                self._misses += 1
            else:
                self._hits += 1
            return entity

    def put(self, entity_id: str, entity: Entity) -> None:
        """Insert or replace the snapshot for ``entity_id``."""
        with self._lock:
            self._entries[entity_id] = entity

    def users(self) -> list[User]:
        """Snapshot of every cached user."""
        with self._lock:
            return [entity for entity in self._entries.values() if isinstance(entity, User)]

    async def warm(self, store: Store) -> int:
        """Load every user and group from the store.

        Calling it again reloads the same ids over the existing entries, so
        the cache never holds duplicates.

        Returns:
            Number of entities loaded.

        Raises:
            DatabaseError: If either bulk load fails. Nothing is cached then.
        """
        users = await store.find_all_users()
        groups = await store.find_all_groups()

        with self._lock:
            for user in users:
                self._entries[user.id] = user
            for group in groups:
                self._entries[group.id] = group

        count = len(users) + len(groups)
        logger.info(
            "Identity cache warmed with %d users and %d groups", len(users), len(groups)
        )
        return count

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> dict[str, Any]:
        """Entry counts and hit/miss statistics."""
        with self._lock:
            users = sum(1 for entity in self._entries.values() if isinstance(entity, User))
            size = len(self._entries)
        lookups = self._hits + self._misses
        return {
            "size": size,
            "users": users,
            "groups": size - users,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups > 0 else 0.0,
        }
