"""
HTTP-level tests: envelopes, status codes and route wiring for clubs, groups
and users.
"""

from __future__ import annotations

import json
import uuid

import pytest
from starlette.requests import Request

from app.core.errors import unhandled_error_handler
from rosterhub_shared.schemas.common import ErrorResponse
from rosterhub_shared.schemas.subscriptions import Tier


@pytest.fixture
async def players(make_user, session):
    """An owner on the gold tier plus two plain players, committed."""
    owner = await make_user(Tier.GOLD)
    alice = await make_user()
    bob = await make_user()
    await session.commit()
    return owner, alice, bob


async def create_club(client, headers, **overrides) -> dict:
    body = {"name": "Friday Five", "description": "Indoor", "sport_category": "football"}
    body.update(overrides)
    resp = await client.post("/api/v1/clubs", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------

class TestOrgRoutes:
    async def test_create_returns_envelope(self, client, players, auth_headers):
        owner, _, _ = players
        resp = await client.post(
            "/api/v1/clubs",
            json={"name": "Friday Five", "description": "Indoor", "sport_category": "football"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        data = body["data"]
        assert data["kind"] == "club"
        assert data["admin_id"] == str(owner.id)
        assert data["max_players"] == 30
        assert data["status"] == "active"
        assert [m["user_id"] for m in data["members"]] == [str(owner.id)]

    async def test_list_counts(self, client, players, auth_headers):
        owner, alice, _ = players
        await create_club(client, auth_headers(owner))
        resp = await client.get("/api/v1/clubs", headers=auth_headers(alice))
        body = resp.json()
        assert body["count"] == 1
        assert body["data"][0]["member_count"] == 1

        resp = await client.get("/api/v1/groups", headers=auth_headers(alice))
        assert resp.json()["count"] == 0

    async def test_club_is_not_a_group(self, client, players, auth_headers):
        owner, _, _ = players
        club = await create_club(client, auth_headers(owner))
        resp = await client.get(f"/api/v1/groups/{club['id']}", headers=auth_headers(owner))
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "status": "fail", "message": "Group not found"}

    async def test_malformed_id(self, client, players, auth_headers):
        owner, _, _ = players
        resp = await client.get("/api/v1/clubs/not-a-uuid", headers=auth_headers(owner))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid club ID"

    async def test_validation_error_is_400(self, client, players, auth_headers):
        owner, _, _ = players
        resp = await client.post(
            "/api/v1/clubs",
            json={"name": "x" * 31, "description": "Indoor", "sport_category": "football"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["status"] == "fail"
        assert "name" in body["message"]

    async def test_quota_exceeded_is_400(self, client, make_user, session, auth_headers):
        owner = await make_user(Tier.SILVER)
        await session.commit()
        await create_club(client, auth_headers(owner))
        resp = await client.post(
            "/api/v1/groups",
            json={"name": "Second", "description": "x", "sport_category": "basketball"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 400
        assert "maximum limit of 1" in resp.json()["message"]

    async def test_update_by_outsider_is_404(self, client, players, auth_headers):
        owner, alice, _ = players
        club = await create_club(client, auth_headers(owner))
        resp = await client.put(
            f"/api/v1/clubs/{club['id']}", json={"name": "Mine"}, headers=auth_headers(alice)
        )
        assert resp.status_code == 404

    async def test_update_by_admin(self, client, players, auth_headers):
        owner, _, _ = players
        club = await create_club(client, auth_headers(owner))
        resp = await client.put(
            f"/api/v1/clubs/{club['id']}",
            json={"description": "Outdoor now", "max_players": 12},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["description"] == "Outdoor now"
        assert data["max_players"] == 12

    async def test_delete(self, client, players, auth_headers):
        owner, alice, _ = players
        club = await create_club(client, auth_headers(owner))
        url = f"/api/v1/clubs/{club['id']}"

        resp = await client.delete(url, headers=auth_headers(alice))
        assert resp.status_code == 404

        resp = await client.delete(url, headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Club deleted successfully"}

        resp = await client.get(url, headers=auth_headers(owner))
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Join-request flow
# ---------------------------------------------------------------------------

class TestJoinFlow:
    async def test_full_lifecycle(self, client, players, auth_headers, session):
        owner, alice, bob = players
        club = await create_club(client, auth_headers(owner), max_players=2)
        base = f"/api/v1/clubs/{club['id']}"

        resp = await client.post(f"{base}/join-requests", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["message"] == "Join request sent successfully"

        resp = await client.post(f"{base}/join-requests", headers=auth_headers(alice))
        assert resp.status_code == 409

        resp = await client.post(
            f"{base}/join-requests/{alice.id}/accept", headers=auth_headers(owner)
        )
        assert resp.status_code == 200

        resp = await client.get(base, headers=auth_headers(owner))
        data = resp.json()["data"]
        assert data["status"] == "full"
        assert len(data["members"]) == 2
        assert data["pending_requests"] == []

        resp = await client.post(f"{base}/join-requests", headers=auth_headers(bob))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Club is full"

        resp = await client.get(f"{base}/members", headers=auth_headers(bob))
        assert resp.json()["count"] == 2

        resp = await client.post(f"{base}/leave", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["message"] == "Successfully left the club"

        resp = await client.get(base, headers=auth_headers(owner))
        assert resp.json()["data"]["status"] == "active"

        await session.refresh(alice)
        assert alice.organizations_joined == []
        assert alice.pending_join_requests == []

    async def test_captain_role_request(self, client, players, auth_headers):
        owner, alice, _ = players
        club = await create_club(client, auth_headers(owner))
        base = f"/api/v1/clubs/{club['id']}"

        await client.post(f"{base}/join-requests", json={"role": "captain"}, headers=auth_headers(alice))
        await client.post(f"{base}/join-requests/{alice.id}/accept", headers=auth_headers(owner))

        resp = await client.get(base, headers=auth_headers(owner))
        assert resp.json()["data"]["captains"] == [str(alice.id)]

    async def test_cancel_and_reject(self, client, players, auth_headers):
        owner, alice, bob = players
        club = await create_club(client, auth_headers(owner))
        base = f"/api/v1/clubs/{club['id']}"

        await client.post(f"{base}/join-requests", headers=auth_headers(alice))
        resp = await client.delete(f"{base}/join-requests", headers=auth_headers(alice))
        assert resp.status_code == 200
        resp = await client.delete(f"{base}/join-requests", headers=auth_headers(alice))
        assert resp.status_code == 404

        await client.post(f"{base}/join-requests", headers=auth_headers(bob))
        resp = await client.post(f"{base}/join-requests/{bob.id}/reject", headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["message"] == "Join request rejected successfully"

    async def test_accept_bad_requester_id(self, client, players, auth_headers):
        owner, _, _ = players
        club = await create_club(client, auth_headers(owner))
        resp = await client.post(
            f"/api/v1/clubs/{club['id']}/join-requests/xyz/accept", headers=auth_headers(owner)
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid ID format"

    async def test_admin_cannot_leave(self, client, players, auth_headers):
        owner, _, _ = players
        club = await create_club(client, auth_headers(owner))
        resp = await client.post(f"/api/v1/clubs/{club['id']}/leave", headers=auth_headers(owner))
        assert resp.status_code == 400

    async def test_join_unknown_club(self, client, players, auth_headers):
        _, alice, _ = players
        resp = await client.post(
            f"/api/v1/clubs/{uuid.uuid4()}/join-requests", headers=auth_headers(alice)
        )
        assert resp.status_code == 404
        assert resp.json()["message"] == "Club not found"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class TestUserRoutes:
    async def test_patch_me(self, client, players, auth_headers):
        _, alice, _ = players
        resp = await client.patch(
            "/api/v1/users/me", json={"city": "Braga", "role": "gold"}, headers=auth_headers(alice)
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["city"] == "Braga"
        assert data["role"] == "user"

    async def test_change_subscription(self, client, players, auth_headers):
        _, alice, _ = players
        resp = await client.post("/api/v1/users/me/subscription/silver", headers=auth_headers(alice))
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Subscription updated to silver successfully"
        assert body["data"]["role"] == "silver"
        assert body["data"]["subscription"]["max_orgs"] == 1

    async def test_change_subscription_invalid(self, client, players, auth_headers):
        _, alice, _ = players
        resp = await client.post(
            "/api/v1/users/me/subscription/super_admin", headers=auth_headers(alice)
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid subscription type"

    async def test_get_other_user(self, client, players, auth_headers):
        owner, alice, _ = players
        resp = await client.get(f"/api/v1/users/{owner.id}", headers=auth_headers(alice))
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == owner.email

        resp = await client.get(f"/api/v1/users/{uuid.uuid4()}", headers=auth_headers(alice))
        assert resp.status_code == 404

    async def test_list_users(self, client, players, auth_headers):
        owner, alice, bob = players
        resp = await client.get("/api/v1/users", headers=auth_headers(alice))
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 3
        assert {u["id"] for u in body["data"]} == {str(owner.id), str(alice.id), str(bob.id)}

        resp = await client.get("/api/v1/users", params={"role": "gold"}, headers=auth_headers(alice))
        assert [u["id"] for u in resp.json()["data"]] == [str(owner.id)]

    async def test_list_users_unknown_role(self, client, players, auth_headers):
        _, alice, _ = players
        resp = await client.get("/api/v1/users", params={"role": "platinum"}, headers=auth_headers(alice))
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

class TestErrorEnvelope:
    async def test_client_errors_match_schema(self, client, players, auth_headers):
        owner, _, _ = players
        resp = await client.get(f"/api/v1/clubs/{uuid.uuid4()}", headers=auth_headers(owner))
        envelope = ErrorResponse.model_validate(resp.json())
        assert envelope.success is False
        assert envelope.status == "fail"
        assert envelope.message == "Club not found"

    async def test_unhandled_error_is_500_error_envelope(self):
        request = Request(
            {
                "type": "http",
                "method": "GET",
                "scheme": "http",
                "server": ("test", 80),
                "path": "/api/v1/clubs",
                "query_string": b"",
                "headers": [],
            }
        )
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            response = await unhandled_error_handler(request, exc)

        assert response.status_code == 500
        envelope = ErrorResponse.model_validate(json.loads(response.body))
        assert envelope.status == "error"
        assert envelope.message == "Something went wrong"
