"""
Entity store: document-style access to users and organizations.

Every read that precedes a write goes through `for_update=True`, which takes
a row lock on PostgreSQL so each read-modify-write is atomic per document.

Lock order: organization rows before user rows, in every operation. When
several rows of one table are needed they are locked in one ordered
statement, never one query per subset.

Embedded ID collections are replaced, never mutated in place, so SQLAlchemy
always sees the change.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.organization import Organization
from app.models.user import User


# ---------------------------------------------------------------------------
# Set-semantics helpers for embedded collections
# ---------------------------------------------------------------------------

def add_to_set(values: Iterable[str], item: uuid.UUID | str) -> list[str]:
    """Return a new list with `item` appended unless already present."""
    items = list(values)
    key = str(item)
    if key not in items:
        items.append(key)
    return items


def pull(values: Iterable[str], item: uuid.UUID | str) -> list[str]:
    key = str(item)
    return [v for v in values if v != key]


def pull_by_user(records: Iterable[dict], user_id: uuid.UUID | str) -> list[dict]:
    """Remove embedded {user_id: ...} records for one user."""
    key = str(user_id)
    return [r for r in records if r.get("user_id") != key]


def find_by_user(records: Iterable[dict], user_id: uuid.UUID | str) -> Optional[dict]:
    key = str(user_id)
    return next((r for r in records if r.get("user_id") == key), None)


# ---------------------------------------------------------------------------
# Loads
# ---------------------------------------------------------------------------

async def get_user(
    session: AsyncSession, user_id: uuid.UUID, *, for_update: bool = False
) -> Optional[User]:
    stmt = select(User).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_org(
    session: AsyncSession,
    org_id: uuid.UUID,
    *,
    kind: Optional[str] = None,
    for_update: bool = False,
) -> Optional[Organization]:
    stmt = select(Organization).where(Organization.id == org_id)
    if kind is not None:
        stmt = stmt.where(Organization.kind == kind)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_orgs(session: AsyncSession, kind: str) -> Sequence[Organization]:
    result = await session.execute(
        select(Organization)
        .where(Organization.kind == kind)
        .order_by(Organization.created_at)
    )
    return result.scalars().all()


async def orgs_administered_by(
    session: AsyncSession, user_id: uuid.UUID, *, for_update: bool = False
) -> Sequence[Organization]:
    stmt = (
        select(Organization)
        .where(Organization.admin_id == user_id)
        .order_by(Organization.created_at, Organization.id)
    )
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalars().all()


async def users_by_ids(
    session: AsyncSession, user_ids: Iterable[uuid.UUID | str], *, for_update: bool = False
) -> Sequence[User]:
    ids = [uuid.UUID(str(u)) for u in user_ids]
    if not ids:
        return []
    stmt = select(User).where(User.id.in_(ids)).order_by(User.id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalars().all()


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def save(session: AsyncSession, *docs) -> None:
    """Stage and flush documents (one write-back)."""
    for doc in docs:
        session.add(doc)
    await session.flush()


async def delete(session: AsyncSession, doc) -> None:
    await session.delete(doc)
    await session.flush()
