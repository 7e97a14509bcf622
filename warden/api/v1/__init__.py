"""API v1 routes."""

from fastapi import APIRouter, Depends

from warden.api.v1 import admin, auth, health, users
from warden.api.v1.auth import require_admin

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/users", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)
