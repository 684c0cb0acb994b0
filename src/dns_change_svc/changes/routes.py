"""FastAPI routes for the domain change approval workflow."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .errors import ChangeError, NotFoundError, ServiceUnavailableError, UnauthenticatedError
from .models import ChangeEnvelope, ChangeListEnvelope, Envelope, change_to_model
from .service import ChangeService

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/v1/domain/change", tags=["Domain Changes"])

# Configuration - set during app startup
_service: ChangeService | None = None


def configure(service: ChangeService | None) -> None:
    """Configure the change routes with the service (None to detach)."""
    global _service
    _service = service


def _get_service() -> ChangeService:
    """Get the service, raising if not configured."""
    if _service is None:
        raise ServiceUnavailableError("Domain change module not initialized")
    return _service


def _get_caller(request: Request) -> int:
    """The authenticated user id placed on the request by SubjectMiddleware."""
    sub = getattr(request.state, "sub", None)
    if sub is None:
        raise UnauthenticatedError("Missing caller identity")
    return sub


async def change_error_handler(request: Request, exc: ChangeError) -> JSONResponse:
    """Render a ChangeError as a ``{status, errors}`` envelope."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed [{exc.kind}]: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected [{exc.kind}]: {exc}")
    body = Envelope(status=exc.status_code, errors=str(exc))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


# =============================================================================
# List Requests
# =============================================================================

@router.get("/myapply", response_model=ChangeListEnvelope, response_model_exclude_none=True)
async def list_my_apply(request: Request):
    """List all domain change requests submitted by the caller."""
    service = _get_service()
    caller = _get_caller(request)

    changes = await run_in_threadpool(service.list_mine, caller)
    return ChangeListEnvelope(status=200, data=[change_to_model(c) for c in changes])


@router.get("/myapprove", response_model=ChangeListEnvelope, response_model_exclude_none=True)
async def list_my_approve(request: Request):
    """List all domain change requests the caller can approve."""
    service = _get_service()
    caller = _get_caller(request)

    changes = await run_in_threadpool(service.list_approvable, caller)
    return ChangeListEnvelope(status=200, data=[change_to_model(c) for c in changes])


# =============================================================================
# Accept / Reject
# =============================================================================

@router.put("/{change_id}", response_model=ChangeEnvelope, response_model_exclude_none=True)
async def decide_change(request: Request, change_id: str, opt: str = ""):
    """
    Accept or reject a domain change request.

    ``opt=accept`` applies the stored mutation at the DNS provider and marks
    the request approved; ``opt=reject`` marks it rejected. Only owners of
    the request's domain may decide, and only while it is pending.

    The decision runs in a worker thread. If the client disconnects, the
    thread still runs to completion, so a provider call that succeeded is
    always followed by its save.
    """
    service = _get_service()
    caller = _get_caller(request)

    try:
        request_id = int(change_id)
    except ValueError:
        raise NotFoundError(f"Domain change not found: {change_id}") from None

    change = await run_in_threadpool(service.decide, caller, request_id, opt)
    return ChangeEnvelope(status=200, data=change_to_model(change))
