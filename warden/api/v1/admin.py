"""Admin-only routes: role and status transitions and filtered account listings."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from warden.api.v1.auth import get_account_service
from warden.api.v1.errors import to_http_exception
from warden.core.config import settings
from warden.core.errors import WardenError
from warden.models import AccountStatus, Role, User
from warden.schemas.user import AccountEmailRequest, UserResponse, UsersListResponse
from warden.services.accounts import AccountService

router = APIRouter()

Limit = Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)]
Offset = Annotated[int, Query(ge=0)]
Service = Annotated[AccountService, Depends(get_account_service)]


def _apply(operation: Callable[[str], User], email: str) -> UserResponse:
    try:
        user = operation(email)
    except WardenError as e:
        raise to_http_exception(e) from e
    return UserResponse.model_validate(user)


def _page(
    fetch: Callable[[], list[User]], limit: int, offset: int
) -> UsersListResponse:
    try:
        users = fetch()
    except WardenError as e:
        raise to_http_exception(e) from e
    return UsersListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        limit=limit,
        offset=offset,
    )


@router.put("/promote-admin", response_model=UserResponse)
def promote_admin(body: AccountEmailRequest, service: Service) -> UserResponse:
    return _apply(service.promote_to_admin, body.email)


@router.put("/promote-super-admin", response_model=UserResponse)
def promote_super_admin(body: AccountEmailRequest, service: Service) -> UserResponse:
    return _apply(service.promote_to_superadmin, body.email)


@router.put("/demote-super-admin-to-admin", response_model=UserResponse)
def demote_super_admin_to_admin(body: AccountEmailRequest, service: Service) -> UserResponse:
    return _apply(service.demote_superadmin_to_admin, body.email)


@router.put("/demote-super-admin-to-user", response_model=UserResponse)
def demote_super_admin_to_user(body: AccountEmailRequest, service: Service) -> UserResponse:
    return _apply(service.demote_superadmin_to_user, body.email)


@router.put("/demote-admin-to-user", response_model=UserResponse)
def demote_admin_to_user(body: AccountEmailRequest, service: Service) -> UserResponse:
    return _apply(service.demote_admin_to_user, body.email)


@router.put("/suspend-user", response_model=UserResponse)
def suspend_user(body: AccountEmailRequest, service: Service) -> UserResponse:
    return _apply(service.suspend, body.email)


@router.put("/recover-user", response_model=UserResponse)
def recover_user(body: AccountEmailRequest, service: Service) -> UserResponse:
    return _apply(service.recover, body.email)


@router.delete("/delete-user", response_model=UserResponse)
def delete_user(body: AccountEmailRequest, service: Service) -> UserResponse:
    """Soft delete: the account stays stored with status 'deleted'."""
    return _apply(service.delete, body.email)


@router.get("/all-users", response_model=UsersListResponse)
def all_users(
    service: Service, limit: Limit = settings.DEFAULT_PAGE_SIZE, offset: Offset = 0
) -> UsersListResponse:
    return _page(lambda: service.list_users(limit, offset), limit, offset)


@router.get("/admin-users", response_model=UsersListResponse)
def admin_users(
    service: Service, limit: Limit = settings.DEFAULT_PAGE_SIZE, offset: Offset = 0
) -> UsersListResponse:
    return _page(lambda: service.list_by_role(Role.ADMIN, limit, offset), limit, offset)


@router.get("/super-admin-users", response_model=UsersListResponse)
def super_admin_users(
    service: Service, limit: Limit = settings.DEFAULT_PAGE_SIZE, offset: Offset = 0
) -> UsersListResponse:
    return _page(lambda: service.list_by_role(Role.SUPERADMIN, limit, offset), limit, offset)


@router.get("/active-users", response_model=UsersListResponse)
def active_users(
    service: Service, limit: Limit = settings.DEFAULT_PAGE_SIZE, offset: Offset = 0
) -> UsersListResponse:
    return _page(
        lambda: service.list_by_status(AccountStatus.ACTIVE, limit, offset), limit, offset
    )


@router.get("/inactive-users", response_model=UsersListResponse)
def inactive_users(
    service: Service, limit: Limit = settings.DEFAULT_PAGE_SIZE, offset: Offset = 0
) -> UsersListResponse:
    """Accounts whose status is anything other than active."""
    return _page(lambda: service.list_inactive(limit, offset), limit, offset)


@router.get("/suspended-users", response_model=UsersListResponse)
def suspended_users(
    service: Service, limit: Limit = settings.DEFAULT_PAGE_SIZE, offset: Offset = 0
) -> UsersListResponse:
    return _page(
        lambda: service.list_by_status(AccountStatus.SUSPENDED, limit, offset), limit, offset
    )


@router.get("/deleted-users", response_model=UsersListResponse)
def deleted_users(
    service: Service, limit: Limit = settings.DEFAULT_PAGE_SIZE, offset: Offset = 0
) -> UsersListResponse:
    return _page(
        lambda: service.list_by_status(AccountStatus.DELETED, limit, offset), limit, offset
    )
