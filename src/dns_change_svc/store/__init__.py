"""Change store - SQLite persistence for domains, roles and change requests.

Tables:
- users, domains
- user_domains: (user, domain, role) bindings, role as an integer rank
- domain_changes: change requests with their serialized operation
"""

from .db import get_db, init_db
from .repository import ChangeStore, ChangeUnit
from .seed import load_seed_from_yaml

__all__ = [
    "get_db",
    "init_db",
    "ChangeStore",
    "ChangeUnit",
    "load_seed_from_yaml",
]
