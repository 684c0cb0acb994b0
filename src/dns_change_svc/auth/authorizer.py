"""Ownership checks for deciding on change requests."""

from __future__ import annotations

from typing import Protocol

from ..changes.errors import ForbiddenError
from ..changes.types import DomainChange, Role


class RoleLookup(Protocol):
    def has_role_at_least(self, user_id: int, domain_id: int, role: Role) -> bool: ...


class Authorizer:
    """
    Decides whether a caller may accept or reject a change request.

    The only role that may decide is OWNER on the request's domain.
    Self-approval (caller is also the requester) is permitted unless
    ``allow_self_approval`` is turned off.
    """

    def __init__(self, roles: RoleLookup, allow_self_approval: bool = True):
        self._roles = roles
        self.allow_self_approval = allow_self_approval

    def is_owner(self, user_id: int, domain_id: int) -> bool:
        """True if the user holds OWNER (or higher) on the domain.

        A missing binding is a negative answer. Store failures propagate as
        StorageError.
        """
        return self._roles.has_role_at_least(user_id, domain_id, Role.OWNER)

    def check_decision(self, caller: int, change: DomainChange) -> None:
        """Raise ForbiddenError unless ``caller`` may decide on ``change``."""
        if not self.is_owner(caller, change.domain_id):
            raise ForbiddenError("Permission denied")
        if not self.allow_self_approval and caller == change.user_id:
            raise ForbiddenError("Permission denied: requesters may not decide their own changes")
