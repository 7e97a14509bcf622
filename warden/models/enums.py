"""Closed enumerations for account role and lifecycle status."""

from enum import StrEnum


class Role(StrEnum):
    """Privilege ladder: user < admin < superadmin."""

    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.SUPERADMIN)


class AccountStatus(StrEnum):
    """Lifecycle flag, independent of role. 'deleted' is a soft delete."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"
