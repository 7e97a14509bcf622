"""Unit tests for role and status transition rules."""

import unittest

from warden.core.errors import InvalidTransition
from warden.models.enums import AccountStatus, Role
from warden.services.account_state import (
    AccountState,
    Transition,
    apply_transition,
    is_role_transition,
)

ACTIVE_USER = AccountState(Role.USER, AccountStatus.ACTIVE)
ACTIVE_ADMIN = AccountState(Role.ADMIN, AccountStatus.ACTIVE)
ACTIVE_SUPERADMIN = AccountState(Role.SUPERADMIN, AccountStatus.ACTIVE)


class TestRoleTransitions(unittest.TestCase):
    def test_allowed_role_changes(self) -> None:
        cases = [
            (ACTIVE_USER, Transition.PROMOTE_TO_ADMIN, Role.ADMIN),
            (ACTIVE_USER, Transition.PROMOTE_TO_SUPERADMIN, Role.SUPERADMIN),
            (ACTIVE_ADMIN, Transition.PROMOTE_TO_SUPERADMIN, Role.SUPERADMIN),
            (ACTIVE_SUPERADMIN, Transition.PROMOTE_TO_ADMIN, Role.ADMIN),
            (ACTIVE_SUPERADMIN, Transition.DEMOTE_SUPERADMIN_TO_ADMIN, Role.ADMIN),
            (ACTIVE_SUPERADMIN, Transition.DEMOTE_SUPERADMIN_TO_USER, Role.USER),
            (ACTIVE_ADMIN, Transition.DEMOTE_ADMIN_TO_USER, Role.USER),
        ]
        for state, transition, expected_role in cases:
            with self.subTest(state=state, transition=transition):
                result = apply_transition(state, transition)
                self.assertEqual(result.role, expected_role)
                self.assertEqual(result.status, state.status)

    def test_refused_role_changes(self) -> None:
        cases = [
            (ACTIVE_ADMIN, Transition.PROMOTE_TO_ADMIN, "User already an admin"),
            (ACTIVE_SUPERADMIN, Transition.PROMOTE_TO_SUPERADMIN, "User already a super admin"),
            (ACTIVE_ADMIN, Transition.DEMOTE_SUPERADMIN_TO_ADMIN, "User is not a super administrator"),
            (ACTIVE_USER, Transition.DEMOTE_SUPERADMIN_TO_USER, "User is not a super administrator"),
            (ACTIVE_USER, Transition.DEMOTE_ADMIN_TO_USER, "User is not an administrator"),
            (ACTIVE_SUPERADMIN, Transition.DEMOTE_ADMIN_TO_USER, "User is not an administrator"),
        ]
        for state, transition, message in cases:
            with self.subTest(state=state, transition=transition):
                with self.assertRaises(InvalidTransition) as ctx:
                    apply_transition(state, transition)
                self.assertEqual(ctx.exception.message, message)
                self.assertEqual(ctx.exception.current, state.role)

    def test_role_change_keeps_suspended_status(self) -> None:
        state = AccountState(Role.USER, AccountStatus.SUSPENDED)
        result = apply_transition(state, Transition.PROMOTE_TO_ADMIN)
        self.assertEqual(result, AccountState(Role.ADMIN, AccountStatus.SUSPENDED))


class TestStatusTransitions(unittest.TestCase):
    def test_suspend_and_recover(self) -> None:
        suspended = apply_transition(ACTIVE_ADMIN, Transition.SUSPEND)
        self.assertEqual(suspended, AccountState(Role.ADMIN, AccountStatus.SUSPENDED))
        self.assertEqual(apply_transition(suspended, Transition.RECOVER), ACTIVE_ADMIN)

    def test_no_op_status_changes_are_refused(self) -> None:
        suspended = AccountState(Role.USER, AccountStatus.SUSPENDED)
        with self.assertRaises(InvalidTransition):
            apply_transition(suspended, Transition.SUSPEND)
        with self.assertRaises(InvalidTransition) as ctx:
            apply_transition(ACTIVE_USER, Transition.RECOVER)
        self.assertEqual(ctx.exception.attempted, AccountStatus.ACTIVE)

    def test_delete_from_active_and_suspended(self) -> None:
        for state in (ACTIVE_USER, AccountState(Role.USER, AccountStatus.SUSPENDED)):
            with self.subTest(state=state):
                result = apply_transition(state, Transition.DELETE)
                self.assertEqual(result.status, AccountStatus.DELETED)
                self.assertEqual(result.role, Role.USER)


class TestDeletedIsTerminal(unittest.TestCase):
    def test_every_transition_refused(self) -> None:
        deleted = AccountState(Role.ADMIN, AccountStatus.DELETED)
        for transition in Transition:
            with self.subTest(transition=transition):
                with self.assertRaises(InvalidTransition) as ctx:
                    apply_transition(deleted, transition)
                self.assertEqual(ctx.exception.current, AccountStatus.DELETED)


class TestClassification(unittest.TestCase):
    def test_is_role_transition(self) -> None:
        self.assertTrue(is_role_transition(Transition.PROMOTE_TO_ADMIN))
        self.assertTrue(is_role_transition(Transition.DEMOTE_ADMIN_TO_USER))
        self.assertFalse(is_role_transition(Transition.SUSPEND))
        self.assertFalse(is_role_transition(Transition.DELETE))


if __name__ == "__main__":
    unittest.main()
