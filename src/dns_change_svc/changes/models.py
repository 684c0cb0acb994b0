"""Pydantic models for the domain change API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from .types import Domain, DomainChange, User


# =============================================================================
# Response Models
# =============================================================================

class DomainModel(BaseModel):
    """A managed DNS zone."""
    id: int
    name: str
    provider_zone_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class UserModel(BaseModel):
    """The requesting user."""
    id: int
    username: str
    email: str = ""
    created_at: str | None = None
    updated_at: str | None = None


class DomainChangeModel(BaseModel):
    """Full representation of a domain change request."""
    id: int
    domain_id: int
    user_id: int
    action_type: str
    action_status: str = "pending"
    operation: str
    domain: DomainModel | None = None
    user: UserModel | None = None
    created_at: str | None = None
    updated_at: str | None = None


class Envelope(BaseModel):
    """Response wrapper; ``status`` mirrors the HTTP status code."""
    status: int
    data: Any = None
    errors: str | None = None


class ChangeListEnvelope(Envelope):
    data: list[DomainChangeModel] = []


class ChangeEnvelope(Envelope):
    data: DomainChangeModel | None = None


# =============================================================================
# Conversion
# =============================================================================

def domain_to_model(domain: Domain) -> DomainModel:
    return DomainModel(
        id=domain.id,
        name=domain.name,
        provider_zone_id=domain.provider_zone_id,
        created_at=domain.created_at,
        updated_at=domain.updated_at,
    )


def user_to_model(user: User) -> UserModel:
    return UserModel(
        id=user.id,
        username=user.username,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def change_to_model(change: DomainChange) -> DomainChangeModel:
    """Convert a DomainChange to its Pydantic response model."""
    return DomainChangeModel(
        id=change.id,
        domain_id=change.domain_id,
        user_id=change.user_id,
        action_type=change.action_type.value,
        action_status=change.action_status.value,
        operation=change.operation,
        domain=domain_to_model(change.domain) if change.domain else None,
        user=user_to_model(change.user) if change.user else None,
        created_at=change.created_at,
        updated_at=change.updated_at,
    )
