"""Shared test fixtures for the DNS change service.

Every test gets its own file-backed SQLite store under ``tmp_path`` and a
recording DNS client, so provider calls can be counted.
"""

from types import SimpleNamespace

import pytest

from dns_change_svc.auth.authorizer import Authorizer
from dns_change_svc.changes.codec import MutationCodec
from dns_change_svc.changes.service import ChangeService
from dns_change_svc.changes.types import ActionType, Role
from dns_change_svc.store.repository import ChangeStore
from tests.mocks.dns import RecordingDnsClient
from tests.mocks.payloads import make_operation


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def store(tmp_path) -> ChangeStore:
    """Empty change store backed by a temporary database file."""
    return ChangeStore(tmp_path / "changes.db", busy_timeout=10.0)


@pytest.fixture
def world(store) -> SimpleNamespace:
    """Users, domains and role bindings shared by most tests.

    - owner: OWNER on example.com
    - requester: WRITER on example.com
    - outsider: no role on example.com, OWNER on example.org
    """
    owner = store.add_user("owner", "owner@example.com")
    requester = store.add_user("requester", "requester@example.com")
    outsider = store.add_user("outsider", "outsider@example.com")

    domain = store.add_domain("example.com", provider_zone_id="Z-COM")
    other_domain = store.add_domain("example.org")

    store.grant_role(owner.id, domain.id, Role.OWNER)
    store.grant_role(requester.id, domain.id, Role.WRITER)
    store.grant_role(outsider.id, other_domain.id, Role.OWNER)

    return SimpleNamespace(
        owner=owner,
        requester=requester,
        outsider=outsider,
        domain=domain,
        other_domain=other_domain,
    )


# =============================================================================
# Workflow Fixtures
# =============================================================================

@pytest.fixture
def dns_client() -> RecordingDnsClient:
    return RecordingDnsClient()


@pytest.fixture
def codec(dns_client) -> MutationCodec:
    return MutationCodec(dns_client)


@pytest.fixture
def service(store, codec) -> ChangeService:
    return ChangeService(store=store, authorizer=Authorizer(store), codec=codec)


@pytest.fixture
def submit_change(store, world):
    """Pending Submit: create A record x.example.com -> 1.2.3.4."""
    return store.add_change(
        world.domain.id,
        world.requester.id,
        ActionType.SUBMIT,
        make_operation(ActionType.SUBMIT, world.domain.id),
    )


@pytest.fixture
def edit_change(store, world):
    """Pending EditDNS: update record rec-1 (x.example.com) to 5.6.7.8."""
    return store.add_change(
        world.domain.id,
        world.requester.id,
        ActionType.EDIT_DNS,
        make_operation(ActionType.EDIT_DNS, world.domain.id, value="5.6.7.8", record_id="rec-1"),
    )
