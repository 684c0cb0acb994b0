"""Configuration for the DNS change service."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8060
    workers: int = 1
    reload: bool = False


@dataclass
class StoreConfig:
    """Change store configuration."""
    db_path: str = "domain_changes.db"
    busy_timeout_seconds: float = 30.0

    # YAML seed loaded when the database file is first created
    seed_file: str | None = None


@dataclass
class DnsConfig:
    """DNS provider configuration."""
    provider: str = "dry_run"  # dry_run | http
    base_url: str = ""
    token: str | None = None
    timeout_seconds: float = 30.0


@dataclass
class ApprovalConfig:
    """Approval policy."""
    # Owners may decide on requests they submitted themselves
    allow_self_approval: bool = True

    # Seconds before an accept that never finished (crash mid provider call)
    # may be taken over by another decision
    claim_timeout_seconds: float = 300.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Config:
    """Main configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    dns: DnsConfig = field(default_factory=DnsConfig)
    approval: ApprovalConfig = field(default_factory=ApprovalConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            server=ServerConfig(**data.get("server", {})),
            store=StoreConfig(**data.get("store", {})),
            dns=DnsConfig(**data.get("dns", {})),
            approval=ApprovalConfig(**data.get("approval", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
