"""DNS provider clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx

from ..changes.errors import ProviderError
from ..changes.mutation import DnsRecord

logger = logging.getLogger(__name__)


class DnsClient(ABC):
    """
    Abstract interface for applying record mutations at a DNS provider.

    Calls are not assumed idempotent at the provider; callers issue each one
    at most once per approval.
    """

    @abstractmethod
    def create_record(self, record: DnsRecord) -> None:
        """
        Create a DNS record.

        Raises:
            ProviderError: On any provider failure
        """
        ...

    @abstractmethod
    def update_record(self, record: DnsRecord) -> None:
        """
        Update an existing DNS record.

        Raises:
            ProviderError: On any provider failure
        """
        ...


class HttpDnsClient(DnsClient):
    """
    Client for a DNS provider exposing a JSON REST API.

    Endpoints:
        POST {base_url}/zones/{zone}/records
        PUT  {base_url}/zones/{zone}/records/{record_id}
        PUT  {base_url}/zones/{zone}/records/{fqdn}/{type}   (no record_id)

    ``zone`` is the record's provider zone id when known, else the zone name.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not base_url:
            raise ValueError("base_url is required for the HTTP DNS client")
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def create_record(self, record: DnsRecord) -> None:
        url = f"{self._zone_url(record)}/records"
        self._send("POST", url, record)

    def update_record(self, record: DnsRecord) -> None:
        if record.record_id:
            url = f"{self._zone_url(record)}/records/{quote(record.record_id, safe='')}"
        else:
            url = (
                f"{self._zone_url(record)}/records/"
                f"{quote(record.fqdn, safe='')}/{quote(record.type, safe='')}"
            )
        self._send("PUT", url, record)

    def _zone_url(self, record: DnsRecord) -> str:
        zone = record.provider_zone_id or record.zone
        return f"{self.base_url}/zones/{quote(zone, safe='')}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def _body(record: DnsRecord) -> dict[str, Any]:
        return {
            "name": record.fqdn,
            "type": record.type,
            "value": record.value,
            "ttl": record.ttl,
        }

    def _send(self, method: str, url: str, record: DnsRecord) -> None:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(
                    method, url, headers=self._headers(), json=self._body(record),
                )
        except httpx.TimeoutException as e:
            raise ProviderError(f"DNS provider timeout: {method} {url}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"DNS provider request failed: {method} {url}: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                f"DNS provider error: {response.status_code} - {response.text[:200]}"
            )

        logger.info(f"DNS provider {method} {record.type} {record.fqdn} -> {response.status_code}")


class DryRunDnsClient(DnsClient):
    """
    Client that logs mutations without contacting a provider.

    Applied calls are kept in ``calls`` as ``(operation, record)`` pairs.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, DnsRecord]] = []

    def create_record(self, record: DnsRecord) -> None:
        logger.info(f"[dry-run] create {record.type} {record.fqdn} -> {record.value} (ttl {record.ttl})")
        self.calls.append(("create", record))

    def update_record(self, record: DnsRecord) -> None:
        logger.info(f"[dry-run] update {record.type} {record.fqdn} -> {record.value} (ttl {record.ttl})")
        self.calls.append(("update", record))
