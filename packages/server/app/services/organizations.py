"""
Organization service: membership engine for clubs and groups.

Both kinds share this code path; `kind` only scopes lookups and names things
in messages. Every operation that touches both sides of a relationship writes
the organization first and the user second, each as its own flush, inside the
caller's session transaction.

Outcome convention:
- "already in that state", "no such request", "not authorized" -> False / None
- malformed IDs, missing required entities, capacity or quota breaches -> raised
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import has_subscription_tier, is_admin, is_captain, is_member
from app.core.errors import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    QuotaExceededError,
    parse_id,
)
from app.models.organization import Organization
from app.models.user import User
from app.services import store
from rosterhub_shared.schemas.organizations import (
    KIND_CONFIG,
    MemberRecord,
    MemberRole,
    OrgCreateRequest,
    OrgKind,
    OrgStatus,
    OrgUpdateRequest,
    PendingRequestRecord,
)
from rosterhub_shared.schemas.subscriptions import (
    DEFAULT_MAX_MEMBERS,
    Capability,
    SubscriptionRecord,
    tiers_with,
)

log = structlog.get_logger()

MIN_MAX_PLAYERS = 2

# Fields a captain may not change; silently dropped from captain patches.
CAPTAIN_RESTRICTED_FIELDS = frozenset({"max_players", "status"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _noun(kind: OrgKind | str) -> str:
    return KIND_CONFIG[OrgKind(kind)].noun


def _member_from_profile(user: User) -> dict:
    """Seed a member record from the user's profile; match counters start at zero."""
    return MemberRecord(
        user_id=user.id,
        skill_rating=user.avg_skill_rating or 0,
        positions=list(user.positions or []),
    ).model_dump(mode="json")


def _is_full(org: Organization) -> bool:
    return org.status == OrgStatus.FULL.value or len(org.members) >= org.max_players


def sync_capacity_status(org: Organization) -> None:
    """Keep `status == full` in step with the member count, in both directions."""
    if len(org.members) >= org.max_players:
        org.status = OrgStatus.FULL.value
    elif org.status == OrgStatus.FULL.value:
        org.status = OrgStatus.ACTIVE.value


def _member_ceiling(owner: User) -> int:
    sub = SubscriptionRecord.model_validate(owner.subscription or {})
    return sub.max_members or DEFAULT_MAX_MEMBERS


def _clamp_max_players(requested: Optional[int], ceiling: int) -> int:
    if requested is None or requested <= 0 or requested > ceiling:
        return ceiling
    return requested


async def _load(
    session: AsyncSession, kind: OrgKind, org_id: uuid.UUID | str, label: str = "ID"
) -> Optional[Organization]:
    oid = parse_id(org_id, f"{_noun(kind).lower()} {label}")
    return await store.get_org(session, oid, kind=OrgKind(kind).value, for_update=True)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_orgs(kind: OrgKind, session: AsyncSession) -> Sequence[Organization]:
    return await store.list_orgs(session, OrgKind(kind).value)


async def get_org(
    kind: OrgKind, org_id: uuid.UUID | str, session: AsyncSession
) -> Optional[Organization]:
    oid = parse_id(org_id, f"{_noun(kind).lower()} ID")
    return await store.get_org(session, oid, kind=OrgKind(kind).value)


# ---------------------------------------------------------------------------
# Create / update / delete
# ---------------------------------------------------------------------------

async def create_org(
    kind: OrgKind,
    req: OrgCreateRequest,
    owner_id: uuid.UUID,
    owner_tier: str,
    session: AsyncSession,
) -> Organization:
    """Create an org with the owner as admin and first member."""
    noun = _noun(kind)
    if not has_subscription_tier(owner_tier, tiers_with(Capability.CREATE_ORG)):
        raise ForbiddenError(f"Only users with subscription plans can create {noun.lower()}s")

    owner = await store.get_user(session, owner_id, for_update=True)
    if not owner:
        raise NotFoundError("User not found")

    sub = SubscriptionRecord.model_validate(owner.subscription or {})
    # A limit of 0 means unlimited.
    if sub.max_orgs > 0 and len(sub.owned_org_ids) >= sub.max_orgs:
        raise QuotaExceededError(
            f"You have reached the maximum limit of {sub.max_orgs} organizations for your subscription"
        )

    max_players = _clamp_max_players(req.max_players, _member_ceiling(owner))
    if max_players < MIN_MAX_PLAYERS:
        raise BadRequestError(f"{noun} must allow at least {MIN_MAX_PLAYERS} players")

    org = Organization(
        kind=OrgKind(kind).value,
        name=req.name,
        description=req.description,
        sport_category=req.sport_category.value,
        location=req.location.model_dump(mode="json", exclude_none=True),
        admin_id=owner.id,
        captains=[],
        members=[_member_from_profile(owner)],
        pending_requests=[],
        max_players=max_players,
        status=OrgStatus.ACTIVE.value,
    )
    if req.image:
        org.image = req.image
    sync_capacity_status(org)
    await store.save(session, org)

    # Two separate write-backs to the owner: subscription record, then joined set.
    sub.owned_org_ids = store.add_to_set(sub.owned_org_ids, org.id)
    owner.subscription = sub.to_document()
    await store.save(session, owner)

    owner.organizations_joined = store.add_to_set(owner.organizations_joined, org.id)
    await store.save(session, owner)

    log.info(
        "org.created",
        org_id=str(org.id),
        kind=org.kind,
        owner_id=str(owner.id),
        max_players=max_players,
    )
    return org


async def update_org(
    kind: OrgKind,
    org_id: uuid.UUID | str,
    req: OrgUpdateRequest,
    actor_id: uuid.UUID,
    session: AsyncSession,
) -> Optional[Organization]:
    """Apply a partial update. Returns None if absent or the actor is not admin/captain."""
    org = await _load(session, kind, org_id)
    if not org:
        return None

    actor_is_admin = is_admin(org, actor_id)
    if not actor_is_admin and not is_captain(org, actor_id):
        return None

    patch = req.model_dump(exclude_unset=True, mode="json")
    if not actor_is_admin:
        patch = {k: v for k, v in patch.items() if k not in CAPTAIN_RESTRICTED_FIELDS}

    if patch.get("max_players") is not None:
        owner = await store.get_user(session, org.admin_id)
        ceiling = _member_ceiling(owner) if owner else DEFAULT_MAX_MEMBERS
        if patch["max_players"] > ceiling:
            raise BadRequestError(f"Your subscription allows at most {ceiling} players")
        if patch["max_players"] < len(org.members):
            raise BadRequestError(
                f"{_noun(kind)} already has {len(org.members)} members"
            )

    for key, value in patch.items():
        if value is not None:
            setattr(org, key, value)

    sync_capacity_status(org)
    await store.save(session, org)

    log.info("org.updated", org_id=str(org.id), actor_id=str(actor_id), fields=sorted(patch))
    return org


async def delete_org(
    kind: OrgKind, org_id: uuid.UUID | str, actor_id: uuid.UUID, session: AsyncSession
) -> bool:
    """Delete an org (admin only), cleaning back-references before the org row goes."""
    org = await _load(session, kind, org_id)
    if not org or not is_admin(org, actor_id):
        return False

    member_ids = [m["user_id"] for m in org.members]
    pending_ids = [r["user_id"] for r in org.pending_requests]
    affected = await store.users_by_ids(
        session, [*member_ids, *pending_ids, org.admin_id], for_update=True
    )
    users = {str(u.id): u for u in affected}

    for uid in member_ids:
        if uid in users:
            users[uid].organizations_joined = store.pull(users[uid].organizations_joined, org.id)
    await session.flush()

    for uid in pending_ids:
        if uid in users:
            users[uid].pending_join_requests = store.pull(users[uid].pending_join_requests, org.id)
    await session.flush()

    admin = users.get(str(org.admin_id))
    if admin:
        sub = SubscriptionRecord.model_validate(admin.subscription or {})
        sub.owned_org_ids = store.pull(sub.owned_org_ids, org.id)
        admin.subscription = sub.to_document()
        await store.save(session, admin)

    await store.delete(session, org)
    log.info(
        "org.deleted",
        org_id=str(org.id),
        kind=org.kind,
        members_cleaned=len(member_ids),
        requests_cleaned=len(pending_ids),
    )
    return True


# ---------------------------------------------------------------------------
# Membership transitions
# ---------------------------------------------------------------------------

async def leave_org(
    kind: OrgKind, org_id: uuid.UUID | str, user_id: uuid.UUID, session: AsyncSession
) -> bool:
    org = await _load(session, kind, org_id)
    if not org:
        return False

    noun = _noun(kind)
    if is_admin(org, user_id):
        raise BadRequestError(
            f"{noun} admin cannot leave the {noun.lower()}. "
            f"Transfer ownership or delete the {noun.lower()} instead."
        )
    if not is_member(org, user_id):
        return False

    org.members = store.pull_by_user(org.members, user_id)
    org.captains = store.pull(org.captains, user_id)
    sync_capacity_status(org)
    await store.save(session, org)

    user = await store.get_user(session, user_id, for_update=True)
    if user:
        user.organizations_joined = store.pull(user.organizations_joined, org.id)
        await store.save(session, user)

    log.info("org.member_left", org_id=str(org.id), user_id=str(user_id), status=org.status)
    return True


async def request_join(
    kind: OrgKind,
    org_id: uuid.UUID | str,
    user_id: uuid.UUID,
    requested_role: MemberRole | str,
    session: AsyncSession,
) -> bool:
    """Queue a join request. False if already a member or already pending."""
    try:
        role = MemberRole(requested_role)
    except ValueError:
        raise BadRequestError("Invalid role")

    noun = _noun(kind)
    org = await _load(session, kind, org_id)
    if not org:
        raise NotFoundError(f"{noun} not found")
    if _is_full(org):
        raise BadRequestError(f"{noun} is full")

    if is_member(org, user_id):
        return False
    if store.find_by_user(org.pending_requests, user_id) is not None:
        return False

    user = await store.get_user(session, user_id, for_update=True)
    if not user:
        raise NotFoundError("User not found")

    entry = PendingRequestRecord(user_id=user_id, role=role)
    org.pending_requests = [*org.pending_requests, entry.model_dump(mode="json")]
    await store.save(session, org)

    user.pending_join_requests = store.add_to_set(user.pending_join_requests, org.id)
    await store.save(session, user)

    log.info(
        "org.join_requested",
        org_id=str(org.id),
        user_id=str(user_id),
        role=entry.role.value,
    )
    return True


async def cancel_join(
    kind: OrgKind, org_id: uuid.UUID | str, user_id: uuid.UUID, session: AsyncSession
) -> bool:
    org = await _load(session, kind, org_id)
    if not org or store.find_by_user(org.pending_requests, user_id) is None:
        return False

    await _drop_pending(session, org, user_id)
    log.info("org.join_cancelled", org_id=str(org.id), user_id=str(user_id))
    return True


async def accept_join(
    kind: OrgKind,
    org_id: uuid.UUID | str,
    requester_id: uuid.UUID | str,
    actor_id: uuid.UUID,
    session: AsyncSession,
) -> bool:
    """Admit a pending requester (admin or captain).

    The capacity check and the member insertion run against the same locked
    row, so two accepts racing for the last slot cannot both succeed.
    """
    oid = parse_id(org_id, "ID format")
    rid = parse_id(requester_id, "ID format")

    org = await store.get_org(session, oid, kind=OrgKind(kind).value, for_update=True)
    if not org:
        return False

    actor_is_admin = is_admin(org, actor_id)
    if not actor_is_admin and not is_captain(org, actor_id):
        return False

    request = store.find_by_user(org.pending_requests, rid)
    if request is None:
        return False

    requester = await store.get_user(session, rid, for_update=True)
    if not requester:
        return False

    if _is_full(org):
        raise BadRequestError(f"{_noun(kind)} is full")

    org.pending_requests = store.pull_by_user(org.pending_requests, rid)
    org.members = [*org.members, _member_from_profile(requester)]
    # Only the admin can grant the captain role.
    promoted = request.get("role") == MemberRole.CAPTAIN.value and actor_is_admin
    if promoted:
        org.captains = store.add_to_set(org.captains, rid)
    sync_capacity_status(org)
    await store.save(session, org)

    requester.pending_join_requests = store.pull(requester.pending_join_requests, org.id)
    requester.organizations_joined = store.add_to_set(requester.organizations_joined, org.id)
    await store.save(session, requester)

    log.info(
        "org.join_accepted",
        org_id=str(org.id),
        user_id=str(rid),
        actor_id=str(actor_id),
        captain=promoted,
        status=org.status,
    )
    return True


async def reject_join(
    kind: OrgKind,
    org_id: uuid.UUID | str,
    requester_id: uuid.UUID | str,
    actor_id: uuid.UUID,
    session: AsyncSession,
) -> bool:
    oid = parse_id(org_id, "ID format")
    rid = parse_id(requester_id, "ID format")

    org = await store.get_org(session, oid, kind=OrgKind(kind).value, for_update=True)
    if not org:
        return False
    if not is_admin(org, actor_id) and not is_captain(org, actor_id):
        return False
    if store.find_by_user(org.pending_requests, rid) is None:
        return False

    await _drop_pending(session, org, rid)
    log.info("org.join_rejected", org_id=str(org.id), user_id=str(rid), actor_id=str(actor_id))
    return True


async def _drop_pending(session: AsyncSession, org: Organization, user_id: uuid.UUID) -> None:
    """Remove a pending request from the org, then from the user's mirror."""
    org.pending_requests = store.pull_by_user(org.pending_requests, user_id)
    await store.save(session, org)

    user = await store.get_user(session, user_id, for_update=True)
    if user:
        user.pending_join_requests = store.pull(user.pending_join_requests, org.id)
        await store.save(session, user)
