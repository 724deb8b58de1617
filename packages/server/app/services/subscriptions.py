"""
Subscription transition service: tier changes and their effect on owned orgs.

A change is validated in full before anything is written. Downgrades are
refused outright when the user owns too many orgs or any owned org has more
members than the new ceiling; nothing is deleted or trimmed automatically.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import has_subscription_tier
from app.core.errors import BadRequestError, parse_id
from app.models.user import User
from app.services import store
from app.services.organizations import sync_capacity_status
from rosterhub_shared.schemas.subscriptions import (
    SUBSCRIPTION_PERIOD_DAYS,
    Capability,
    SubscriptionRecord,
    Tier,
    limits_for,
    tiers_with,
)

log = structlog.get_logger()


def _parse_tier(value: Tier | str) -> Tier:
    try:
        tier = Tier(value)
    except ValueError:
        raise BadRequestError("Invalid subscription type")
    if not has_subscription_tier(tier.value, tiers_with(Capability.SUBSCRIBE)):
        raise BadRequestError("Invalid subscription type")
    return tier


async def change_subscription(
    user_id: uuid.UUID | str,
    new_tier: Tier | str,
    session: AsyncSession,
) -> Optional[User]:
    """Move a user to a paid tier, re-applying member ceilings to every org they administer.

    Returns the updated user, or None if the user does not exist.
    """
    uid = parse_id(user_id, "user ID")
    tier = _parse_tier(new_tier)

    # Organizations are locked before the user row, as in every membership operation.
    orgs = await store.orgs_administered_by(session, uid, for_update=True)
    user = await store.get_user(session, uid, for_update=True)
    if not user:
        return None

    if user.role == tier.value:
        return user

    limits = limits_for(tier)
    current = SubscriptionRecord.model_validate(user.subscription or {})
    owned_count = len(current.owned_org_ids)

    if limits.max_orgs < current.max_orgs and owned_count > limits.max_orgs:
        log.info(
            "subscription.downgrade_blocked",
            user_id=str(uid),
            reason="org_count",
            owned=owned_count,
            allowed=limits.max_orgs,
        )
        raise BadRequestError(
            f"Cannot downgrade: You have {owned_count} organizations, "
            f"but the new plan allows only {limits.max_orgs}"
        )

    if limits.max_members < current.max_members:
        for org in orgs:
            if len(org.members) > limits.max_members:
                log.info(
                    "subscription.downgrade_blocked",
                    user_id=str(uid),
                    reason="member_count",
                    org_id=str(org.id),
                    members=len(org.members),
                    allowed=limits.max_members,
                )
                raise BadRequestError(
                    f'Cannot downgrade: Your organization "{org.name}" has '
                    f"{len(org.members)} members, but the new plan allows only "
                    f"{limits.max_members}"
                )

    for org in orgs:
        org.max_players = limits.max_members
        sync_capacity_status(org)
    await session.flush()

    now = datetime.now(timezone.utc)
    previous_role = user.role
    updated = current.model_copy(
        update={
            "max_orgs": limits.max_orgs,
            "max_members": limits.max_members,
            "cost": limits.cost,
            "start_date": now,
            "end_date": now + timedelta(days=SUBSCRIPTION_PERIOD_DAYS),
            "active": True,
        }
    )
    user.role = tier.value
    user.subscription = updated.to_document()
    await store.save(session, user)

    log.info(
        "subscription.changed",
        user_id=str(uid),
        previous=previous_role,
        new=tier.value,
        orgs_updated=len(orgs),
    )
    return user
