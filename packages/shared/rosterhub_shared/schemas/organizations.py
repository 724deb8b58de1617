"""
Organization-related Pydantic schemas shared between server and clients.

Covers: org kinds (club / group), status, embedded member and pending-request
records, and the create/update/response payloads.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class OrgKind(str, Enum):
    CLUB = "club"
    GROUP = "group"


class OrgStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    FULL = "full"


class SportCategory(str, Enum):
    FOOTBALL = "football"
    BASKETBALL = "basketball"


class MemberRole(str, Enum):
    """Role a requester asks for when joining."""
    USER = "user"
    CAPTAIN = "captain"


class KindConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    noun: str
    path: str


# The two production variants differ only in naming.
KIND_CONFIG: dict[OrgKind, KindConfig] = {
    OrgKind.CLUB: KindConfig(noun="Club", path="clubs"),
    OrgKind.GROUP: KindConfig(noun="Group", path="groups"),
}


# ---------------------------------------------------------------------------
# Embedded records
# ---------------------------------------------------------------------------

class MemberRecord(BaseModel):
    user_id: uuid.UUID
    skill_rating: float = 0
    positions: list[str] = Field(default_factory=list)
    goals: int = 0
    assists: int = 0
    points: int = 0
    matches_count: int = 0


class PendingRequestRecord(BaseModel):
    user_id: uuid.UUID
    role: MemberRole = MemberRole.USER


class Location(BaseModel):
    country: Optional[str] = Field(None, max_length=60)
    region: Optional[str] = Field(None, max_length=60)
    city: Optional[str] = Field(None, max_length=60)
    address: Optional[str] = Field(None, max_length=200)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=30)
    description: str = Field(..., min_length=1, max_length=500)
    sport_category: SportCategory
    image: Optional[str] = None
    location: Location = Field(default_factory=Location)
    max_players: Optional[int] = Field(
        None,
        description="Requested capacity; clamped to the owner's tier ceiling",
    )


class OrgUpdateRequest(BaseModel):
    """Partial update. Membership fields are never patchable."""

    name: Optional[str] = Field(None, min_length=1, max_length=30)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    sport_category: Optional[SportCategory] = None
    image: Optional[str] = None
    location: Optional[Location] = None
    max_players: Optional[int] = Field(None, ge=2)
    status: Optional[OrgStatus] = None


class JoinRequestBody(BaseModel):
    role: MemberRole = MemberRole.USER


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(BaseModel):
    id: uuid.UUID
    kind: OrgKind
    name: str
    description: str
    sport_category: SportCategory
    image: str
    location: Location
    admin_id: uuid.UUID
    captains: list[uuid.UUID]
    members: list[MemberRecord]
    pending_requests: list[PendingRequestRecord]
    max_players: int
    status: OrgStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrgListItem(BaseModel):
    id: uuid.UUID
    kind: OrgKind
    name: str
    sport_category: SportCategory
    status: OrgStatus
    member_count: int
    max_players: int
