"""Startup helpers shared by the app and tests: config loading and wiring."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .auth.authorizer import Authorizer
from .changes.codec import MutationCodec
from .changes.service import ChangeService
from .config import Config
from .dns.client import DnsClient, DryRunDnsClient, HttpDnsClient
from .store.repository import ChangeStore
from .store.seed import load_seed_from_yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DNS_CHANGE_CONFIG"
DEFAULT_CONFIG_FILE = "config.yaml"


def load_config(path: str | None = None) -> tuple[Config, Path | None]:
    """Load config from ``path``, ``$DNS_CHANGE_CONFIG`` or ./config.yaml.

    Falls back to defaults when no file is found.
    """
    candidate = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE
    config_path = Path(candidate)
    if not config_path.exists():
        if path or os.environ.get(CONFIG_ENV_VAR):
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.info("No config file found, using defaults")
        return Config(), None

    if config_path.suffix == ".json":
        config = Config.from_json(str(config_path))
    else:
        config = Config.from_yaml(str(config_path))
    logger.info(f"Loaded config from {config_path}")
    return config, config_path


def build_dns_client(config: Config) -> DnsClient:
    """Create the DNS client selected by ``dns.provider``."""
    provider = config.dns.provider
    if provider == "http":
        return HttpDnsClient(
            base_url=config.dns.base_url,
            token=config.dns.token,
            timeout=config.dns.timeout_seconds,
        )
    if provider == "dry_run":
        return DryRunDnsClient()
    raise ValueError(f"Unknown DNS provider: {provider}")


def build_store(config: Config) -> ChangeStore:
    """Open the change store, seeding it if the database is new."""
    is_new = not Path(config.store.db_path).exists()
    store = ChangeStore(config.store.db_path, config.store.busy_timeout_seconds)
    if is_new and config.store.seed_file:
        load_seed_from_yaml(config.store.seed_file, store)
    return store


def build_change_service(
    config: Config,
    store: ChangeStore | None = None,
    dns_client: DnsClient | None = None,
) -> ChangeService:
    """Wire the change service from config."""
    store = store or build_store(config)
    dns_client = dns_client or build_dns_client(config)
    return ChangeService(
        store=store,
        authorizer=Authorizer(store, allow_self_approval=config.approval.allow_self_approval),
        codec=MutationCodec(dns_client),
        claim_timeout=config.approval.claim_timeout_seconds,
    )
