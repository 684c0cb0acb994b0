"""Domain change types - entities for the DNS change approval workflow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class Role(IntEnum):
    """Role of a user on a domain. Ranks are ordered; higher grants more."""
    READER = 1
    WRITER = 2
    OWNER = 3


class ActionType(str, Enum):
    """Kind of DNS mutation a change request carries."""
    SUBMIT = "submit"        # create a new record
    EDIT_DNS = "edit_dns"    # update an existing record


class ActionStatus(str, Enum):
    """Status of a change request. PENDING is initial, the others are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ActionStatus.PENDING


class Decision(str, Enum):
    """An owner's decision on a pending change request."""
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True, slots=True)
class User:
    """A caller of the service."""
    id: int
    username: str
    email: str = ""
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class Domain:
    """A DNS zone managed by the service."""
    id: int
    name: str                        # zone name, e.g. "example.com"
    provider_zone_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True, slots=True)
class UserDomainRole:
    """Binding of a user to a domain with a role."""
    user_id: int
    domain_id: int
    role: Role


@dataclass(slots=True)
class DomainChange:
    """
    A proposed DNS mutation awaiting an owner's decision.

    ``operation`` holds the serialized mutation and is never rewritten once
    the row exists. ``domain`` and ``user`` are populated when the row is
    loaded through one of the listing queries or a decision.
    ``claim_token`` is set while an accept is being applied at the provider.
    """
    id: int
    domain_id: int
    user_id: int
    action_type: ActionType
    operation: str
    action_status: ActionStatus = ActionStatus.PENDING

    domain: Domain | None = None
    user: User | None = None

    created_at: str | None = None
    updated_at: str | None = None

    claim_token: str | None = None
    claimed_at: str | None = None
