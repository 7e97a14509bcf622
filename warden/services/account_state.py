"""
Role and status transition rules for user accounts.

Role ladder: user -> admin -> superadmin. Status: active <-> suspended, active/suspended -> deleted.
A transition whose precondition does not hold raises InvalidTransition; no-op transitions are
errors, not silent successes. 'deleted' is terminal: nothing moves a deleted account.
"""

from dataclasses import dataclass
from enum import StrEnum

from warden.core.errors import InvalidTransition
from warden.models.enums import AccountStatus, Role


class Transition(StrEnum):
    PROMOTE_TO_ADMIN = "promote_to_admin"
    PROMOTE_TO_SUPERADMIN = "promote_to_superadmin"
    DEMOTE_SUPERADMIN_TO_ADMIN = "demote_superadmin_to_admin"
    DEMOTE_SUPERADMIN_TO_USER = "demote_superadmin_to_user"
    DEMOTE_ADMIN_TO_USER = "demote_admin_to_user"
    SUSPEND = "suspend"
    RECOVER = "recover"
    DELETE = "delete"


@dataclass(frozen=True)
class AccountState:
    role: Role
    status: AccountStatus


@dataclass(frozen=True)
class _RoleRule:
    target: Role
    # Either the role must equal `required`, or it must differ from `target`.
    required: Role | None
    refusal: str


@dataclass(frozen=True)
class _StatusRule:
    target: AccountStatus
    refusal: str


_ROLE_RULES: dict[Transition, _RoleRule] = {
    Transition.PROMOTE_TO_ADMIN: _RoleRule(Role.ADMIN, None, "User already an admin"),
    Transition.PROMOTE_TO_SUPERADMIN: _RoleRule(
        Role.SUPERADMIN, None, "User already a super admin"
    ),
    Transition.DEMOTE_SUPERADMIN_TO_ADMIN: _RoleRule(
        Role.ADMIN, Role.SUPERADMIN, "User is not a super administrator"
    ),
    Transition.DEMOTE_SUPERADMIN_TO_USER: _RoleRule(
        Role.USER, Role.SUPERADMIN, "User is not a super administrator"
    ),
    Transition.DEMOTE_ADMIN_TO_USER: _RoleRule(
        Role.USER, Role.ADMIN, "User is not an administrator"
    ),
}

_STATUS_RULES: dict[Transition, _StatusRule] = {
    Transition.SUSPEND: _StatusRule(AccountStatus.SUSPENDED, "User is already suspended"),
    Transition.RECOVER: _StatusRule(AccountStatus.ACTIVE, "User account is already recovered"),
    Transition.DELETE: _StatusRule(AccountStatus.DELETED, "User account is already deleted"),
}


def apply_transition(state: AccountState, transition: Transition) -> AccountState:
    """Return the state after `transition`, or raise InvalidTransition. Changes a single field."""
    if state.status == AccountStatus.DELETED:
        attempted = (
            _ROLE_RULES[transition].target
            if transition in _ROLE_RULES
            else _STATUS_RULES[transition].target
        )
        raise InvalidTransition(
            state.status, attempted, "User account is deleted and cannot be changed"
        )

    role_rule = _ROLE_RULES.get(transition)
    if role_rule is not None:
        if role_rule.required is not None:
            allowed = state.role == role_rule.required
        else:
            allowed = state.role != role_rule.target
        if not allowed:
            raise InvalidTransition(state.role, role_rule.target, role_rule.refusal)
        return AccountState(role=role_rule.target, status=state.status)

    status_rule = _STATUS_RULES[transition]
    if state.status == status_rule.target:
        raise InvalidTransition(state.status, status_rule.target, status_rule.refusal)
    return AccountState(role=state.role, status=status_rule.target)


def is_role_transition(transition: Transition) -> bool:
    return transition in _ROLE_RULES
