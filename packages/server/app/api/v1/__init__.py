"""
API v1 Router

Clubs and groups are served by the same router factory, one mount per kind.
"""

from fastapi import APIRouter

from rosterhub_shared.schemas.organizations import KIND_CONFIG, OrgKind

from . import users
from .organizations import build_org_router

router = APIRouter()

for _kind in OrgKind:
    _config = KIND_CONFIG[_kind]
    router.include_router(
        build_org_router(_kind),
        prefix=f"/{_config.path}",
        tags=[f"{_config.noun}s"],
    )

router.include_router(users.router, prefix="/users", tags=["Users"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            *(f"/{KIND_CONFIG[k].path}" for k in OrgKind),
            "/users",
        ],
    }
