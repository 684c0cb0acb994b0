"""Tests for decision authorization."""

import pytest

from dns_change_svc.auth.authorizer import Authorizer
from dns_change_svc.changes.errors import ForbiddenError, StorageError
from dns_change_svc.changes.types import ActionType, DomainChange, Role


class StaticRoles:
    """RoleLookup backed by a dict of (user_id, domain_id) -> Role."""

    def __init__(self, bindings):
        self.bindings = bindings

    def has_role_at_least(self, user_id, domain_id, role):
        bound = self.bindings.get((user_id, domain_id))
        return bound is not None and bound >= role


class BrokenRoles:
    def has_role_at_least(self, user_id, domain_id, role):
        raise StorageError("database is locked")


def _change(user_id=2, domain_id=10):
    return DomainChange(id=1, domain_id=domain_id, user_id=user_id,
                        action_type=ActionType.SUBMIT, operation="{}")


ROLES = StaticRoles({
    (1, 10): Role.OWNER,
    (2, 10): Role.WRITER,
    (3, 10): Role.READER,
    (1, 20): Role.READER,
})


class TestIsOwner:

    @pytest.mark.parametrize("user_id, domain_id, expected", [
        (1, 10, True),
        (2, 10, False),
        (3, 10, False),
        (1, 20, False),
        (9, 10, False),
    ])
    def test_is_owner(self, user_id, domain_id, expected):
        assert Authorizer(ROLES).is_owner(user_id, domain_id) is expected

    def test_store_failure_propagates(self):
        with pytest.raises(StorageError):
            Authorizer(BrokenRoles()).is_owner(1, 10)


class TestCheckDecision:

    def test_owner_may_decide(self):
        Authorizer(ROLES).check_decision(1, _change())

    @pytest.mark.parametrize("caller", [2, 3, 9])
    def test_non_owner_forbidden(self, caller):
        with pytest.raises(ForbiddenError, match="Permission denied"):
            Authorizer(ROLES).check_decision(caller, _change())

    def test_owner_of_other_domain_forbidden(self):
        with pytest.raises(ForbiddenError):
            Authorizer(ROLES).check_decision(1, _change(domain_id=20))

    def test_self_approval_allowed_by_default(self):
        Authorizer(ROLES).check_decision(1, _change(user_id=1))

    def test_self_approval_disabled(self):
        authorizer = Authorizer(ROLES, allow_self_approval=False)

        with pytest.raises(ForbiddenError, match="own changes"):
            authorizer.check_decision(1, _change(user_id=1))
        authorizer.check_decision(1, _change(user_id=2))
