"""User routes: registration, lookup, and private groups."""

import logging

from fastapi import APIRouter, status

from huddle.api.deps import IdentityServiceDep
from huddle.models.identity import CreateGroupRequest, CreateUserRequest, Group, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=User,
    response_model_exclude={"refresh_token"},
)
async def create_user(request: CreateUserRequest, identity: IdentityServiceDep) -> User:
    """Register a user; the four default groups are created with it."""
    return await identity.create_user(request.display_name, request.phone_number)


@router.get("/{user_id}", response_model=User, response_model_exclude={"refresh_token"})
async def get_user(user_id: str, identity: IdentityServiceDep) -> User:
    """Fetch a user by id."""
    return await identity.get_user(user_id)


@router.post("/{user_id}/groups", status_code=status.HTTP_201_CREATED, response_model=Group)
async def create_group(
    user_id: str, request: CreateGroupRequest, identity: IdentityServiceDep
) -> Group:
    """Add a private group to a user."""
    return await identity.create_group(user_id, request.name)
