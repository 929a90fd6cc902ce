"""Identity write paths: users and their private groups.

Every write goes to the store first; the identity cache is updated only
after the store accepted it.
"""

import logging
import time
import uuid
from collections.abc import Callable

from huddle.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from huddle.core.identity_cache import IdentityCache
from huddle.db.store import Store
from huddle.models.identity import (
    DEFAULT_GROUP_NAMES,
    GROUP_ID_PREFIX,
    USER_ID_PREFIX,
    Group,
    GroupRef,
    User,
)
from huddle.services.resolver import ParticipantKind, ParticipantResolver

logger = logging.getLogger(__name__)


def new_id(prefix: str) -> str:
    """Prefixed 24-hex-character id; the prefix tells users and groups apart."""
    return prefix + uuid.uuid4().hex[:24]


class IdentityService:
    """Creates users and groups and keeps the identity cache in step."""

    def __init__(
        self,
        store: Store,
        cache: IdentityCache,
        resolver: ParticipantResolver,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._cache = cache
        self._resolver = resolver
        self._clock = clock

    async def get_user(self, user_id: str) -> User:
        """Fetch a user by id.

        Raises:
            NotFoundError: If ``user_id`` does not name a user.
        """
        participant = await self._resolver.resolve(user_id)
        if participant.kind is not ParticipantKind.USER:
            raise NotFoundError("User", user_id)
        return participant.user

    async def create_user(self, display_name: str, phone_number: str) -> User:
        """Create a user together with the default private groups.

        Raises:
            InvalidInputError: If a field is blank.
            ConflictError: If the phone number is already registered.
            DatabaseError: If a store write fails.
        """
        display_name = display_name.strip()
        phone_number = phone_number.strip()
        if not display_name:
            raise InvalidInputError("displayName is required", field="displayName")
        if not phone_number:
            raise InvalidInputError("phoneNumber is required", field="phoneNumber")

        if await self._store.find_user_by_phone(phone_number) is not None:
            raise ConflictError("Phone number already registered", resource="User")

        now = int(self._clock())
        user = await self._store.insert_user(
            User(
                id=new_id(USER_ID_PREFIX),
                display_name=display_name,
                phone_number=phone_number,
                created_at=now,
                modified_at=now,
            )
        )
        groups = await self._store.insert_groups(
            [
                Group(id=new_id(GROUP_ID_PREFIX), name=name, created_by=user.id, created_at=now)
                for name in DEFAULT_GROUP_NAMES
            ]
        )
        user = await self._store.update_user(
            user.model_copy(
                update={
                    "groups": [GroupRef(group_id=g.id, group_name=g.name) for g in groups],
                }
            )
        )

        for group in groups:
            self._cache.put(group.id, group)
        self._cache.put(user.id, user)
        logger.info("Created user %s with %d groups", user.id, len(groups))
        return user

    async def create_group(self, owner_id: str, name: str) -> Group:
        """Add a private group to a user.

        Raises:
            InvalidInputError: If ``name`` is blank.
            NotFoundError: If ``owner_id`` is not a user.
            DatabaseError: If a store write fails.
        """
        name = name.strip()
        if not name:
            raise InvalidInputError("name is required", field="name")
        owner = await self.get_user(owner_id)

        now = int(self._clock())
        [group] = await self._store.insert_groups(
            [Group(id=new_id(GROUP_ID_PREFIX), name=name, created_by=owner.id, created_at=now)]
        )
        owner = await self._store.update_user(
            owner.model_copy(
                update={
                    "groups": [*owner.groups, GroupRef(group_id=group.id, group_name=group.name)],
                    "modified_at": now,
                }
            )
        )

        self._cache.put(group.id, group)
        self._cache.put(owner.id, owner)
        logger.info("Created group %s for user %s", group.id, owner.id)
        return group
