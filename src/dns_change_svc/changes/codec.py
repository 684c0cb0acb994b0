"""Mutation codec - JSON encoding of the operation stored on a change request.

The payload is a JSON object tagged by ``kind``, readable by operators
inspecting the ``domain_changes`` table::

    {"kind": "submit", "domain_id": 3,
     "record": {"zone": "example.com", "name": "x", "type": "A",
                "value": "1.2.3.4", "ttl": 600}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Callable, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from .errors import DecodeError, RestoreError
from .mutation import DnsRecord, Mutation
from .types import ActionType, Domain, DomainChange

if TYPE_CHECKING:
    from ..dns.client import DnsClient


# =============================================================================
# Payload Schema
# =============================================================================

class RecordPayload(BaseModel):
    """Serialized DNS record descriptor."""
    zone: str = Field(min_length=1)
    name: str
    type: str = Field(min_length=1)
    value: str = Field(min_length=1)
    ttl: int = Field(default=600, gt=0)
    record_id: str | None = None
    provider_zone_id: str | None = None

    @field_validator("type")
    @classmethod
    def _upper_type(cls, v: str) -> str:
        return v.upper()


class SubmitPayload(BaseModel):
    """Create a new record."""
    kind: Literal["submit"]
    domain_id: int
    record: RecordPayload


class EditDnsPayload(BaseModel):
    """Update an existing record."""
    kind: Literal["edit_dns"]
    domain_id: int
    record: RecordPayload


MutationPayload = Annotated[Union[SubmitPayload, EditDnsPayload], Field(discriminator="kind")]

_payload_adapter: TypeAdapter[SubmitPayload | EditDnsPayload] = TypeAdapter(MutationPayload)

_PAYLOAD_TYPES = {
    ActionType.SUBMIT: SubmitPayload,
    ActionType.EDIT_DNS: EditDnsPayload,
}


def _normalize_zone(name: str) -> str:
    return name.strip().rstrip(".").lower()


# =============================================================================
# Codec
# =============================================================================

class MutationCodec:
    """
    Encodes and decodes mutation payloads.

    Decoded mutations are bound to the codec's DNS client so they can apply
    themselves once restored.
    """

    def __init__(self, client: DnsClient | None = None):
        self.client = client

    def encode(self, mutation: Mutation) -> str:
        """Serialize a mutation to its JSON payload."""
        payload_cls = _PAYLOAD_TYPES[mutation.action_type]
        record = mutation.record
        payload = payload_cls(
            kind=mutation.action_type.value,
            domain_id=mutation.domain_id,
            record=RecordPayload(
                zone=record.zone,
                name=record.name,
                type=record.type,
                value=record.value,
                ttl=record.ttl,
                record_id=record.record_id,
                provider_zone_id=record.provider_zone_id,
            ),
        )
        return payload.model_dump_json(exclude_none=True)

    def decode(self, operation: str, action_type: ActionType | None = None) -> Mutation:
        """Parse an operation payload into an unrestored mutation.

        Args:
            operation: The JSON payload stored on the change request.
            action_type: When given, the payload's ``kind`` must match it.

        Raises:
            DecodeError: If the payload is malformed or its kind mismatches.
        """
        try:
            payload = _payload_adapter.validate_json(operation)
        except ValidationError as e:
            raise DecodeError(f"Malformed operation payload: {e.error_count()} error(s): {e}") from e

        kind = ActionType(payload.kind)
        if action_type is not None and kind is not action_type:
            raise DecodeError(
                f"Operation payload kind '{kind.value}' does not match action type '{action_type.value}'"
            )

        r = payload.record
        return Mutation(
            action_type=kind,
            domain_id=payload.domain_id,
            record=DnsRecord(
                zone=r.zone,
                name=r.name,
                type=r.type,
                value=r.value,
                ttl=r.ttl,
                record_id=r.record_id,
                provider_zone_id=r.provider_zone_id,
            ),
            client=self.client,
        )

    def restore(
        self,
        mutation: Mutation,
        lookup_domain: Callable[[int], Domain | None],
        expected_domain_id: int | None = None,
    ) -> Mutation:
        """Attach the live domain to a decoded mutation.

        Args:
            mutation: A mutation returned by ``decode``.
            lookup_domain: Resolves a domain id to the stored domain.
            expected_domain_id: The domain the change request targets.

        Raises:
            RestoreError: If the domain is missing, differs from the request's
                domain, or does not contain the record's zone.
        """
        if expected_domain_id is not None and mutation.domain_id != expected_domain_id:
            raise RestoreError(
                f"Operation targets domain {mutation.domain_id}, "
                f"change request targets domain {expected_domain_id}"
            )

        domain = lookup_domain(mutation.domain_id)
        if domain is None:
            raise RestoreError(f"Domain {mutation.domain_id} no longer exists")

        record = mutation.record
        zone = _normalize_zone(record.zone)
        domain_zone = _normalize_zone(domain.name)
        if zone != domain_zone and not zone.endswith("." + domain_zone):
            raise RestoreError(f"Record zone '{record.zone}' is not within domain '{domain.name}'")

        record.domain = domain
        if record.provider_zone_id is None:
            record.provider_zone_id = domain.provider_zone_id
        return mutation

    def load(
        self,
        change: DomainChange,
        lookup_domain: Callable[[int], Domain | None],
    ) -> Mutation:
        """Decode and restore the mutation stored on a change request."""
        mutation = self.decode(change.operation, change.action_type)
        return self.restore(mutation, lookup_domain, expected_domain_id=change.domain_id)
