"""
Authentication and Authorization for RosterHub.

- Bearer JWT verification resolves the acting user (token issuance lives
  elsewhere; `create_jwt` exists for local tooling and tests)
- Capability checks against organizations (admin / captain)
- Subscription-tier gating through the capability table
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import ForbiddenError, UnauthorizedError
from app.models.organization import Organization
from app.models.user import User
from app.services import store
from rosterhub_shared.schemas.subscriptions import Capability, Tier, tiers_with

log = structlog.get_logger()
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT for a user."""
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": exp,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Capability checks
# ---------------------------------------------------------------------------

def is_admin(org: Organization, user_id: uuid.UUID | str) -> bool:
    return str(org.admin_id) == str(user_id)


def is_captain(org: Organization, user_id: uuid.UUID | str) -> bool:
    return str(user_id) in org.captains


def is_member(org: Organization, user_id: uuid.UUID | str) -> bool:
    return store.find_by_user(org.members, user_id) is not None


def has_subscription_tier(user_or_role: User | str, tiers: Iterable[Tier]) -> bool:
    """True if the user's tier is one of `tiers`. No implied hierarchy."""
    role = user_or_role.role if isinstance(user_or_role, User) else user_or_role
    try:
        return Tier(role) in set(tiers)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for the acting user resolved from the request."""

    def __init__(self, user: User):
        self.user = user
        self.user_id = user.id
        self.role = user.role


async def get_authenticated_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency: Bearer JWT -> stored user."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authorized, no token")

    try:
        payload = decode_jwt(credentials.credentials)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise UnauthorizedError("Not authorized, token failed")

    user = await store.get_user(session, user_id)
    if not user:
        raise UnauthorizedError("User not found")

    return AuthenticatedUser(user=user)


def require_capability(capability: Capability):
    """Build a dependency that admits only tiers listed for `capability`."""
    allowed = tiers_with(capability)

    async def _check(
        auth: AuthenticatedUser = Depends(get_authenticated_user),
    ) -> AuthenticatedUser:
        if not has_subscription_tier(auth.role, allowed):
            log.info("auth.tier_denied", user_id=str(auth.user_id), role=auth.role, capability=capability.value)
            raise ForbiddenError(f"Role {auth.role} is not authorized to access this resource")
        return auth

    return _check
