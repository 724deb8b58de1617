"""
Shared fixtures: a fresh in-memory SQLite store per test, user/org factories,
and an ASGI client wired to the same store.
"""

from __future__ import annotations

import os

os.environ.setdefault("RH_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.auth import create_jwt
from app.core.database import build_engine, build_session_factory, get_session, init_db
from app.main import app
from app.services import organizations as org_service
from app.services import users as user_service
from rosterhub_shared.schemas.organizations import OrgCreateRequest, OrgKind, SportCategory
from rosterhub_shared.schemas.subscriptions import Tier
from rosterhub_shared.schemas.users import UserCreateRequest


@pytest.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    factory = build_session_factory(engine)

    async def _override_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _override_session
    yield factory
    app.dependency_overrides.pop(get_session, None)
    await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def make_user(session):
    """Factory: create a user of a given tier."""
    counter = {"n": 0}

    async def _make(tier: Tier = Tier.USER, *, skill: float = 5.0, positions=None):
        counter["n"] += 1
        n = counter["n"]
        req = UserCreateRequest(
            email=f"player{n}@example.com",
            first_name=f"Player{n}",
            last_name="Test",
            sport_category=SportCategory.FOOTBALL,
            positions=positions if positions is not None else ["cm"],
            avg_skill_rating=skill,
            role=tier,
        )
        return await user_service.create_user(req, session)

    return _make


@pytest.fixture
def make_org(session):
    """Factory: create an org owned by `owner`."""

    async def _make(owner, *, kind: OrgKind = OrgKind.CLUB, max_players=None, name="Sunday League"):
        req = OrgCreateRequest(
            name=name,
            description="Weekly five-a-side",
            sport_category=SportCategory.FOOTBALL,
            max_players=max_players,
        )
        return await org_service.create_org(kind, req, owner.id, owner.role, session)

    return _make


@pytest.fixture
async def client(session_factory):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    """Bearer headers for a stored user."""

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_jwt(user.id, user.role)}"}

    return _headers
