"""
Subscription tiers and the policy table that maps each tier to its limits.

The policy is pure data: no I/O, no state. Route gating and the services
look capabilities up here instead of repeating tier lists at each call site.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Tier(str, Enum):
    USER = "user"
    SILVER = "silver"
    GOLD = "gold"
    PREMIUM = "premium"
    SUPER_ADMIN = "super_admin"


class Capability(str, Enum):
    CREATE_ORG = "create_org"
    SUBSCRIBE = "subscribe"


class TierLimits(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_orgs: int = Field(ge=0, description="Organizations the user may administer")
    max_members: int = Field(ge=0, description="Member ceiling per organization")
    cost: float = Field(ge=0, description="Recorded monthly cost (never charged)")


# Super admins get a large sentinel instead of a true "unlimited".
SUBSCRIPTION_PLANS: dict[Tier, TierLimits] = {
    Tier.USER: TierLimits(max_orgs=0, max_members=0, cost=0),
    Tier.SILVER: TierLimits(max_orgs=1, max_members=25, cost=15),
    Tier.GOLD: TierLimits(max_orgs=3, max_members=30, cost=25),
    Tier.PREMIUM: TierLimits(max_orgs=5, max_members=500, cost=40),
    Tier.SUPER_ADMIN: TierLimits(max_orgs=1000, max_members=1000, cost=0),
}

PAID_TIERS: frozenset[Tier] = frozenset({Tier.SILVER, Tier.GOLD, Tier.PREMIUM})

# Explicit per-operation tier sets; there is no implied hierarchy.
TIER_CAPABILITIES: dict[Capability, frozenset[Tier]] = {
    Capability.CREATE_ORG: PAID_TIERS | {Tier.SUPER_ADMIN},
    Capability.SUBSCRIBE: PAID_TIERS,
}

SUBSCRIPTION_PERIOD_DAYS = 30
DEFAULT_MAX_MEMBERS = 25


def limits_for(tier: Tier | str) -> TierLimits:
    """Return the limits for a tier. Raises ValueError for unknown tiers."""
    return SUBSCRIPTION_PLANS[Tier(tier)]


def tiers_with(capability: Capability) -> frozenset[Tier]:
    return TIER_CAPABILITIES[capability]


# ---------------------------------------------------------------------------
# Persisted sub-document
# ---------------------------------------------------------------------------

class SubscriptionRecord(BaseModel):
    """The `subscription` sub-document stored on every user."""

    owned_org_ids: list[str] = Field(default_factory=list)
    max_orgs: int = 0
    max_members: int = 0
    cost: float = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    active: bool = True

    @classmethod
    def for_tier(cls, tier: Tier | str, **overrides) -> "SubscriptionRecord":
        limits = limits_for(tier)
        values = {
            "max_orgs": limits.max_orgs,
            "max_members": limits.max_members,
            "cost": limits.cost,
        }
        values.update(overrides)
        return cls(**values)

    def to_document(self) -> dict:
        return self.model_dump(mode="json")
