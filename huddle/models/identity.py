"""User and Group models.

Field names are snake_case, which is also the column naming in the store.
API payloads use the camelCase aliases.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

USER_ID_PREFIX = "U"
GROUP_ID_PREFIX = "G"

DEFAULT_GROUP_NAMES: tuple[str, ...] = ("Everyone", "Family", "Friends", "Followers")


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GroupRef(CamelModel):
    """Denormalized membership record stored on a user."""

    group_id: str
    group_name: str


class RefreshToken(CamelModel):
    """Refresh token issued to a user (issuance lives outside this service)."""

    token: str
    expires_at: int


class User(CamelModel):
    """A person using the service."""

    id: str
    display_name: str
    phone_number: str
    created_at: int
    modified_at: int
    groups: list[GroupRef] = Field(default_factory=list)
    refresh_token: RefreshToken | None = None

    def owns_group(self, group_id: str) -> bool:
        """Whether ``group_id`` is one of this user's private groups."""
        return any(ref.group_id == group_id for ref in self.groups)


class Group(CamelModel):
    """A private audience owned by exactly one user."""

    id: str
    name: str
    created_by: str
    created_at: int


class CreateUserRequest(CamelModel):
    """Request body for creating a user."""

    display_name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=3, max_length=32)


class CreateGroupRequest(CamelModel):
    """Request body for adding a group to a user."""

    name: str = Field(..., min_length=1, max_length=100)
