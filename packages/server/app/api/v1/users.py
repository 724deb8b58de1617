"""
User API endpoints.

GET    /api/v1/users                          — List users (optional ?role=)
GET    /api/v1/users/me                       — Current user
PATCH  /api/v1/users/me                       — Update own profile
POST   /api/v1/users/me/subscription/{tier}   — Change subscription tier
GET    /api/v1/users/{userId}                 — Get a user
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user
from app.core.database import get_session
from app.core.errors import NotFoundError
from app.services import subscriptions as subscription_service
from app.services import users as user_service
from rosterhub_shared.schemas.common import APIResponse
from rosterhub_shared.schemas.subscriptions import Tier
from rosterhub_shared.schemas.users import UserResponse, UserUpdateRequest

router = APIRouter()


@router.get("", response_model=APIResponse, response_model_exclude_none=True, tags=["Users"])
async def list_users(
    role: Optional[Tier] = None,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    users = await user_service.list_users(role, session)
    return APIResponse(
        data=[UserResponse.model_validate(u) for u in users], count=len(users)
    )


@router.get("/me", response_model=APIResponse, response_model_exclude_none=True, tags=["Users"])
async def get_me(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
):
    """Return the authenticated user."""
    return APIResponse(data=UserResponse.model_validate(auth.user))


@router.patch("/me", response_model=APIResponse, response_model_exclude_none=True, tags=["Users"])
async def update_me(
    body: UserUpdateRequest,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Update profile fields of the authenticated user."""
    user = await user_service.update_profile(auth.user_id, body, session)
    if not user:
        raise NotFoundError("User not found")
    return APIResponse(data=UserResponse.model_validate(user))


@router.post(
    "/me/subscription/{tier}",
    response_model=APIResponse,
    response_model_exclude_none=True,
    tags=["Users"],
)
async def change_subscription(
    tier: str,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    """Move the authenticated user to another paid tier."""
    user = await subscription_service.change_subscription(auth.user_id, tier, session)
    if not user:
        raise NotFoundError("User not found")
    return APIResponse(
        message=f"Subscription updated to {tier} successfully",
        data=UserResponse.model_validate(user),
    )


@router.get("/{userId}", response_model=APIResponse, response_model_exclude_none=True, tags=["Users"])
async def get_user(
    userId: str,
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.get_user(userId, session)
    if not user:
        raise NotFoundError("User not found")
    return APIResponse(data=UserResponse.model_validate(user))
