"""
Domain Change Approval Workflow

A change request proposes to create or update a DNS record on a domain.
An owner of that domain accepts or rejects it; accepting replays the stored
mutation against the DNS provider exactly once.
"""

from .codec import MutationCodec
from .errors import (
    BadRequestError,
    ChangeError,
    ConflictError,
    DecodeError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ProviderError,
    RestoreError,
    ServiceUnavailableError,
    StorageError,
    UnauthenticatedError,
)
from .mutation import DnsRecord, Mutation
from .service import ChangeService
from .types import (
    ActionStatus,
    ActionType,
    Decision,
    Domain,
    DomainChange,
    Role,
    User,
    UserDomainRole,
)

__all__ = [
    "ActionStatus",
    "ActionType",
    "Decision",
    "Domain",
    "DomainChange",
    "Role",
    "User",
    "UserDomainRole",
    "DnsRecord",
    "Mutation",
    "MutationCodec",
    "ChangeService",
    "ChangeError",
    "BadRequestError",
    "UnauthenticatedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ServiceUnavailableError",
    "DecodeError",
    "RestoreError",
    "ProviderError",
    "StorageError",
    "InternalError",
]
