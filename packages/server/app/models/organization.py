"""Organization model: one table for clubs and groups, told apart by `kind`.

Membership is stored document-style: `members`, `pending_requests` and
`captains` are embedded JSON lists holding user IDs as strings.
"""

import uuid

from sqlmodel import Field, SQLModel

from .base import JSONDocument, TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    kind: str = Field(nullable=False, index=True)  # club | group
    name: str = Field(nullable=False, index=True)
    description: str = Field(nullable=False)
    sport_category: str = Field(nullable=False)
    image: str = Field(default="default-org.jpg", nullable=False)
    location: dict = Field(default_factory=dict, sa_type=JSONDocument, nullable=False)
    admin_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    captains: list = Field(default_factory=list, sa_type=JSONDocument, nullable=False)
    members: list = Field(default_factory=list, sa_type=JSONDocument, nullable=False)
    pending_requests: list = Field(default_factory=list, sa_type=JSONDocument, nullable=False)
    max_players: int = Field(nullable=False)
    status: str = Field(default="active", nullable=False)
