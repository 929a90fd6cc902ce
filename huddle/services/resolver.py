"""Participant resolution: is an id a user, a group, or nothing?"""

import logging
from dataclasses import dataclass
from enum import Enum

from huddle.core.exceptions import UnauthorizedError, UnknownParticipantError
from huddle.core.identity_cache import IdentityCache
from huddle.db.store import Store
from huddle.models.identity import Group, User

logger = logging.getLogger(__name__)


class ParticipantKind(str, Enum):
    """What an id refers to."""

    USER = "user"
    GROUP = "group"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Participant:
    """Resolution result; ``entity`` is None only for UNKNOWN."""

    kind: ParticipantKind
    entity: User | Group | None = None

    @property
    def user(self) -> User:
        if not isinstance(self.entity, User):
            raise TypeError(f"participant is a {self.kind.value}, not a user")
        return self.entity


UNKNOWN_PARTICIPANT = Participant(ParticipantKind.UNKNOWN)


def _participant_for(entity: User | Group) -> Participant:
    kind = ParticipantKind.USER if isinstance(entity, User) else ParticipantKind.GROUP
    return Participant(kind, entity)


class ParticipantResolver:
    """Resolves ids through the identity cache, falling back to the store."""

    def __init__(self, store: Store, cache: IdentityCache) -> None:
        self._store = store
        self._cache = cache

    async def resolve(self, entity_id: str) -> Participant:
        """Resolve ``entity_id`` to a user or group.

        A cache hit costs no store call. On a miss the user table is tried
        first, then the group table; a hit in either is cached before
        returning. Store failures propagate as ``DatabaseError``.
        """
        cached = self._cache.get(entity_id)
        if cached is not None:
            return _participant_for(cached)

        user = await self._store.find_user(entity_id)
        if user is not None:
            self._cache.put(user.id, user)
            return _participant_for(user)

        group = await self._store.find_group(entity_id)
        if group is not None:
            self._cache.put(group.id, group)
            return _participant_for(group)

        logger.debug("Id %s resolved to no user or group", entity_id)
        return UNKNOWN_PARTICIPANT

    async def resolve_target(self, sender: User, participant_id: str) -> Participant:
        """Resolve a message target and check the sender may address it.

        Groups are private audiences: a sender may only address groups
        listed in their own ``groups``.

        Raises:
            UnknownParticipantError: If the id names nothing.
            UnauthorizedError: If it names a group the sender does not own.
        """
        participant = await self.resolve(participant_id)
        if participant.kind is ParticipantKind.UNKNOWN:
            raise UnknownParticipantError(participant_id)
        if participant.kind is ParticipantKind.GROUP and not sender.owns_group(participant_id):
            logger.warning(
                "Sender %s tried to message group %s they do not own",
                sender.id,
                participant_id,
            )
            raise UnauthorizedError(sender.id, participant_id)
        return participant
