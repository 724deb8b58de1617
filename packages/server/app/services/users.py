"""
User service: creation with tier-derived subscription defaults, profile reads
and updates, and member listings for an org.
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import BadRequestError, NotFoundError, parse_id
from app.models.user import User
from app.services import store
from rosterhub_shared.schemas.organizations import KIND_CONFIG, OrgKind
from rosterhub_shared.schemas.subscriptions import SubscriptionRecord, Tier
from rosterhub_shared.schemas.users import UserCreateRequest, UserUpdateRequest

log = structlog.get_logger()


async def create_user(req: UserCreateRequest, session: AsyncSession) -> User:
    """Create a user; subscription limits come from the tier policy."""
    existing = await session.execute(select(User).where(User.email == req.email))
    if existing.scalar_one_or_none():
        raise BadRequestError("Email already exists")

    user = User(
        email=req.email,
        first_name=req.first_name,
        last_name=req.last_name,
        sport_category=req.sport_category.value,
        positions=list(req.positions),
        avg_skill_rating=req.avg_skill_rating,
        role=req.role.value,
        subscription=SubscriptionRecord.for_tier(req.role).to_document(),
        organizations_joined=[],
        pending_join_requests=[],
    )
    try:
        await store.save(session, user)
    except IntegrityError:
        raise BadRequestError("Email already exists")

    log.info("user.created", user_id=str(user.id), role=user.role)
    return user


async def get_user(user_id: uuid.UUID | str, session: AsyncSession) -> Optional[User]:
    return await store.get_user(session, parse_id(user_id, "user ID"))


async def update_profile(
    user_id: uuid.UUID | str, req: UserUpdateRequest, session: AsyncSession
) -> Optional[User]:
    """Update profile fields. Role and subscription are not part of the request schema."""
    user = await store.get_user(session, parse_id(user_id, "user ID"), for_update=True)
    if not user:
        return None

    patch = req.model_dump(exclude_unset=True)
    for key, value in patch.items():
        if value is not None:
            setattr(user, key, value)
    await store.save(session, user)

    log.info("user.updated", user_id=str(user.id), fields=sorted(patch))
    return user


async def list_org_member_users(
    kind: OrgKind, org_id: uuid.UUID | str, session: AsyncSession
) -> Sequence[User]:
    noun = KIND_CONFIG[OrgKind(kind)].noun
    oid = parse_id(org_id, f"{noun.lower()} ID")
    org = await store.get_org(session, oid, kind=OrgKind(kind).value)
    if not org:
        raise NotFoundError(f"{noun} not found")

    return await store.users_by_ids(session, [m["user_id"] for m in org.members])


async def list_users(role: Optional[Tier], session: AsyncSession) -> Sequence[User]:
    """All users, oldest first, optionally narrowed to one tier."""
    stmt = select(User).order_by(User.created_at, User.id)
    if role is not None:
        stmt = stmt.where(User.role == Tier(role).value)
    result = await session.execute(stmt)
    return result.scalars().all()
