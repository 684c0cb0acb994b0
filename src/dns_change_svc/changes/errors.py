"""Error kinds raised by the change approval workflow.

Each kind carries the HTTP status the transport layer reports for it.
Server-side kinds all map to 500 but stay distinct so logs can tell a
broken payload from a provider outage from a storage failure.
"""

from __future__ import annotations


class ChangeError(Exception):
    """Base exception for domain change errors."""
    status_code: int = 500
    kind: str = "internal_error"


class BadRequestError(ChangeError):
    """Raised when the decision is neither accept nor reject."""
    status_code = 400
    kind = "bad_request"


class UnauthenticatedError(ChangeError):
    """Raised when no caller identity was attached to the request."""
    status_code = 401
    kind = "unauthenticated"


class ForbiddenError(ChangeError):
    """Raised when the caller is not allowed to decide on the request."""
    status_code = 403
    kind = "forbidden"


class NotFoundError(ChangeError):
    """Raised when the change request does not exist."""
    status_code = 404
    kind = "not_found"


class ConflictError(ChangeError):
    """Raised when the change request is no longer pending."""
    status_code = 409
    kind = "conflict"


class ServiceUnavailableError(ChangeError):
    """Raised when the change module has not been configured yet."""
    status_code = 503
    kind = "unavailable"


class DecodeError(ChangeError):
    """Raised when the stored operation payload cannot be parsed."""
    kind = "decode_error"


class RestoreError(ChangeError):
    """Raised when a decoded mutation cannot be tied back to its domain."""
    kind = "restore_error"


class ProviderError(ChangeError):
    """Raised when the DNS provider call fails."""
    kind = "provider_error"


class StorageError(ChangeError):
    """Raised when a store read or write fails."""
    kind = "storage_error"


class InternalError(ChangeError):
    """Raised on states the workflow has no handling for."""
    kind = "internal_error"
