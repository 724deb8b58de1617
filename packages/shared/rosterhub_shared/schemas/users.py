"""User schemas: creation, profile updates, responses."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .organizations import SportCategory
from .subscriptions import SubscriptionRecord, Tier


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class UserCreateRequest(BaseModel):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=12)
    last_name: str = Field(min_length=1, max_length=12)
    sport_category: SportCategory
    positions: list[str] = Field(default_factory=list)
    avg_skill_rating: float = Field(default=0, ge=0, le=10)
    role: Tier = Tier.USER


class UserUpdateRequest(BaseModel):
    """Profile fields only; role and subscription change through their own paths."""
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=12)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=12)
    image: Optional[str] = None
    positions: Optional[list[str]] = None
    avg_skill_rating: Optional[float] = Field(default=None, ge=0, le=10)
    city: Optional[str] = Field(default=None, max_length=30)
    region: Optional[str] = Field(default=None, max_length=30)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    id: uuid.UUID
    email: Optional[str] = None
    first_name: str
    last_name: str
    image: str
    sport_category: SportCategory
    positions: list[str]
    avg_skill_rating: float
    city: Optional[str] = None
    region: Optional[str] = None
    role: Tier
    subscription: SubscriptionRecord
    organizations_joined: list[uuid.UUID]
    pending_join_requests: list[uuid.UUID]
    created_at: datetime

    model_config = {"from_attributes": True}
