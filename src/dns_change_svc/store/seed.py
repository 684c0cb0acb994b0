"""Seed data - load users, domains, roles and change requests from YAML.

Example::

    users:
      - username: alice
        email: alice@example.com
      - username: bob
    domains:
      - name: example.com
        provider_zone_id: Z0123
        roles:
          alice: owner
          bob: writer
    changes:
      - domain: example.com
        requester: bob
        action_type: submit
        record: {zone: example.com, name: www, type: A, value: 192.0.2.10}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..changes.codec import MutationCodec
from ..changes.mutation import DnsRecord, Mutation
from ..changes.types import ActionType, Role
from .repository import ChangeStore

logger = logging.getLogger(__name__)


def _parse_role(value: Any) -> Role:
    """Role by name ("owner") or rank (3). Ranks outside 1..3 are rejected."""
    try:
        if isinstance(value, int):
            return Role(value)
        return Role[str(value).strip().upper()]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown role: {value}") from None


def load_seed_from_yaml(path: str | Path, store: ChangeStore) -> dict[str, int]:
    """Load seed data into the store.

    Users and domains that already exist (by username / name) are reused,
    role bindings are upserted, change requests are always inserted.

    Returns:
        Counts of created users, domains, roles and changes.
    """
    path = Path(path)
    counts = {"users": 0, "domains": 0, "roles": 0, "changes": 0}
    if not path.exists():
        logger.info(f"Seed file not found: {path}")
        return counts

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    user_ids: dict[str, int] = {}
    for user_data in data.get("users", []):
        username = user_data["username"]
        user = store.get_user_by_username(username)
        if user is None:
            user = store.add_user(username, user_data.get("email", ""))
            counts["users"] += 1
        user_ids[username] = user.id

    domain_ids: dict[str, int] = {}
    for domain_data in data.get("domains", []):
        name = domain_data["name"]
        domain = store.get_domain_by_name(name)
        if domain is None:
            domain = store.add_domain(name, domain_data.get("provider_zone_id"))
            counts["domains"] += 1
        domain_ids[name] = domain.id

        for username, role in (domain_data.get("roles") or {}).items():
            if username not in user_ids:
                raise ValueError(f"Role for unknown user '{username}' on domain '{name}'")
            store.grant_role(user_ids[username], domain.id, _parse_role(role))
            counts["roles"] += 1

    codec = MutationCodec()
    for change_data in data.get("changes", []):
        domain_id = domain_ids[change_data["domain"]]
        user_id = user_ids[change_data["requester"]]
        action_type = ActionType(change_data.get("action_type", ActionType.SUBMIT.value))
        r = change_data["record"]
        mutation = Mutation(
            action_type=action_type,
            domain_id=domain_id,
            record=DnsRecord(
                zone=r.get("zone", change_data["domain"]),
                name=r["name"],
                type=r["type"],
                value=r["value"],
                ttl=r.get("ttl", 600),
                record_id=r.get("record_id"),
            ),
        )
        store.add_change(domain_id, user_id, action_type, codec.encode(mutation))
        counts["changes"] += 1

    logger.info(
        f"Loaded seed from {path}: {counts['users']} users, {counts['domains']} domains, "
        f"{counts['roles']} roles, {counts['changes']} changes"
    )
    return counts
