"""In-memory form of a change request's operation payload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import InternalError, RestoreError
from .types import ActionType, Domain

if TYPE_CHECKING:
    from ..dns.client import DnsClient


@dataclass(slots=True)
class DnsRecord:
    """
    Descriptor of a DNS record as the provider sees it.

    ``record_id`` is the provider's identifier for an existing record; when
    absent, updates address the record by name and type.
    ``domain`` is attached by the codec's restore step.
    """
    zone: str
    name: str
    type: str
    value: str
    ttl: int = 600
    record_id: str | None = None
    provider_zone_id: str | None = None
    domain: Domain | None = None

    @property
    def fqdn(self) -> str:
        """Fully qualified record name ("@" is the zone apex)."""
        if self.name in ("", "@"):
            return self.zone
        if self.name == self.zone or self.name.endswith("." + self.zone):
            return self.name
        return f"{self.name}.{self.zone}"


@dataclass(slots=True)
class Mutation:
    """A decoded DNS mutation that knows how to apply itself."""
    action_type: ActionType
    domain_id: int
    record: DnsRecord
    client: DnsClient | None = None

    @property
    def restored(self) -> bool:
        return self.record.domain is not None

    def _bound_client(self) -> DnsClient:
        if self.client is None:
            raise InternalError("Mutation has no DNS client bound")
        if not self.restored:
            raise RestoreError(f"Mutation for domain {self.domain_id} was not restored")
        return self.client

    def create(self) -> None:
        """Create the record at the provider."""
        self._bound_client().create_record(self.record)

    def update(self) -> None:
        """Update the existing record at the provider."""
        self._bound_client().update_record(self.record)

    def apply(self) -> None:
        """Run the provider call matching the action type."""
        if self.action_type is ActionType.SUBMIT:
            self.create()
        elif self.action_type is ActionType.EDIT_DNS:
            self.update()
        else:
            raise InternalError(f"Unknown action type: {self.action_type}")
