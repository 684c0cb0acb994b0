"""DNS provider clients."""

from .client import DnsClient, DryRunDnsClient, HttpDnsClient

__all__ = [
    "DnsClient",
    "DryRunDnsClient",
    "HttpDnsClient",
]
