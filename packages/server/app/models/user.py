"""User model. Only the subscription and membership fields are mutated by the core."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONDocument, UUIDMixin


class User(UUIDMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: Optional[str] = Field(default=None, unique=True, index=True)
    first_name: str = Field(nullable=False)
    last_name: str = Field(nullable=False)
    image: str = Field(default="default-profile.jpg", nullable=False)
    sport_category: str = Field(nullable=False)
    positions: list = Field(default_factory=list, sa_type=JSONDocument, nullable=False)
    avg_skill_rating: float = Field(default=0, nullable=False)
    city: Optional[str] = None
    region: Optional[str] = None
    role: str = Field(default="user", nullable=False)  # user | silver | gold | premium | super_admin
    subscription: dict = Field(default_factory=dict, sa_type=JSONDocument, nullable=False)
    organizations_joined: list = Field(default_factory=list, sa_type=JSONDocument, nullable=False)
    pending_join_requests: list = Field(default_factory=list, sa_type=JSONDocument, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(),
        nullable=False,
        sa_column_kwargs={
            "server_default": sa.func.now(),
        },
        sa_type=sa.DateTime(timezone=True),
    )
