"""
Organization API endpoints, built once per kind (clubs, groups).

GET    /api/v1/{kind}                                       — List orgs
POST   /api/v1/{kind}                                       — Create (paid tiers / super admin)
GET    /api/v1/{kind}/{orgId}                               — Get org details
PUT    /api/v1/{kind}/{orgId}                               — Update (admin / captain)
DELETE /api/v1/{kind}/{orgId}                               — Delete (admin)
GET    /api/v1/{kind}/{orgId}/members                       — Member user profiles
POST   /api/v1/{kind}/{orgId}/leave                         — Leave
POST   /api/v1/{kind}/{orgId}/join-requests                 — Request to join
DELETE /api/v1/{kind}/{orgId}/join-requests                 — Cancel own request
POST   /api/v1/{kind}/{orgId}/join-requests/{userId}/accept — Accept (admin / captain)
POST   /api/v1/{kind}/{orgId}/join-requests/{userId}/reject — Reject (admin / captain)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_authenticated_user, require_capability
from app.core.database import get_session
from app.core.errors import ConflictError, NotFoundError
from app.models.organization import Organization
from app.services import organizations as org_service
from app.services import users as user_service
from rosterhub_shared.schemas.common import APIResponse
from rosterhub_shared.schemas.organizations import (
    KIND_CONFIG,
    JoinRequestBody,
    OrgCreateRequest,
    OrgKind,
    OrgListItem,
    OrgResponse,
    OrgUpdateRequest,
)
from rosterhub_shared.schemas.subscriptions import Capability
from rosterhub_shared.schemas.users import UserResponse


def _list_item(org: Organization) -> OrgListItem:
    return OrgListItem(
        id=org.id,
        kind=org.kind,
        name=org.name,
        sport_category=org.sport_category,
        status=org.status,
        member_count=len(org.members),
        max_players=org.max_players,
    )


def build_org_router(kind: OrgKind) -> APIRouter:
    """Build the router for one org kind; both kinds share every handler."""
    noun = KIND_CONFIG[kind].noun
    lower = noun.lower()
    router = APIRouter()

    @router.get("", response_model=APIResponse, response_model_exclude_none=True)
    async def list_orgs(
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        orgs = await org_service.list_orgs(kind, session)
        return APIResponse(data=[_list_item(o) for o in orgs], count=len(orgs))

    @router.post("", response_model=APIResponse, status_code=201, response_model_exclude_none=True)
    async def create_org(
        body: OrgCreateRequest,
        auth: AuthenticatedUser = Depends(require_capability(Capability.CREATE_ORG)),
        session: AsyncSession = Depends(get_session),
    ):
        org = await org_service.create_org(kind, body, auth.user_id, auth.role, session)
        return APIResponse(data=OrgResponse.model_validate(org))

    @router.get("/{orgId}", response_model=APIResponse, response_model_exclude_none=True)
    async def get_org(
        orgId: str,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        org = await org_service.get_org(kind, orgId, session)
        if not org:
            raise NotFoundError(f"{noun} not found")
        return APIResponse(data=OrgResponse.model_validate(org))

    @router.put("/{orgId}", response_model=APIResponse, response_model_exclude_none=True)
    async def update_org(
        orgId: str,
        body: OrgUpdateRequest,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        org = await org_service.update_org(kind, orgId, body, auth.user_id, session)
        if not org:
            raise NotFoundError(
                f"{noun} not found or you are not authorized to update this {lower}"
            )
        return APIResponse(data=OrgResponse.model_validate(org))

    @router.delete("/{orgId}", response_model=APIResponse, response_model_exclude_none=True)
    async def delete_org(
        orgId: str,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        if not await org_service.delete_org(kind, orgId, auth.user_id, session):
            raise NotFoundError(
                f"{noun} not found or you are not authorized to delete this {lower}"
            )
        return APIResponse(message=f"{noun} deleted successfully")

    @router.get("/{orgId}/members", response_model=APIResponse, response_model_exclude_none=True)
    async def list_members(
        orgId: str,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        users = await user_service.list_org_member_users(kind, orgId, session)
        return APIResponse(
            data=[UserResponse.model_validate(u) for u in users], count=len(users)
        )

    @router.post("/{orgId}/leave", response_model=APIResponse, response_model_exclude_none=True)
    async def leave_org(
        orgId: str,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        if not await org_service.leave_org(kind, orgId, auth.user_id, session):
            raise NotFoundError(f"{noun} not found or you are not a member of this {lower}")
        return APIResponse(message=f"Successfully left the {lower}")

    @router.post("/{orgId}/join-requests", response_model=APIResponse, response_model_exclude_none=True)
    async def request_join(
        orgId: str,
        body: JoinRequestBody | None = None,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        role = (body or JoinRequestBody()).role
        if not await org_service.request_join(kind, orgId, auth.user_id, role, session):
            raise ConflictError(
                "Unable to send join request. You may already be a member or have a pending request"
            )
        return APIResponse(message="Join request sent successfully")

    @router.delete("/{orgId}/join-requests", response_model=APIResponse, response_model_exclude_none=True)
    async def cancel_join(
        orgId: str,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        if not await org_service.cancel_join(kind, orgId, auth.user_id, session):
            raise NotFoundError(f"{noun} not found or no pending request exists")
        return APIResponse(message="Join request cancelled successfully")

    @router.post(
        "/{orgId}/join-requests/{userId}/accept",
        response_model=APIResponse,
        response_model_exclude_none=True,
    )
    async def accept_join(
        orgId: str,
        userId: str,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        if not await org_service.accept_join(kind, orgId, userId, auth.user_id, session):
            raise NotFoundError(
                f"{noun} not found, no pending request exists, or you are not authorized"
            )
        return APIResponse(message="Join request accepted successfully")

    @router.post(
        "/{orgId}/join-requests/{userId}/reject",
        response_model=APIResponse,
        response_model_exclude_none=True,
    )
    async def reject_join(
        orgId: str,
        userId: str,
        auth: AuthenticatedUser = Depends(get_authenticated_user),
        session: AsyncSession = Depends(get_session),
    ):
        if not await org_service.reject_join(kind, orgId, userId, auth.user_id, session):
            raise NotFoundError(
                f"{noun} not found, no pending request exists, or you are not authorized"
            )
        return APIResponse(message="Join request rejected successfully")

    return router
