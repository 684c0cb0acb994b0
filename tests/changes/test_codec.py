"""Tests for the mutation codec."""

import json

import pytest

from dns_change_svc.changes.codec import MutationCodec
from dns_change_svc.changes.errors import DecodeError, RestoreError
from dns_change_svc.changes.mutation import DnsRecord, Mutation
from dns_change_svc.changes.types import ActionType, Domain, DomainChange
from tests.mocks.dns import RecordingDnsClient

DOMAIN = Domain(id=3, name="example.com", provider_zone_id="Z-COM")


def _lookup(domain_id):
    return DOMAIN if domain_id == DOMAIN.id else None


def _payload(**overrides):
    data = {
        "kind": "submit",
        "domain_id": 3,
        "record": {"zone": "example.com", "name": "x", "type": "a", "value": "1.2.3.4"},
    }
    data.update(overrides)
    return json.dumps(data)


class TestDecode:
    """Decoding operation payloads."""

    def test_decode_submit(self):
        mutation = MutationCodec().decode(_payload(), ActionType.SUBMIT)

        assert mutation.action_type == ActionType.SUBMIT
        assert mutation.domain_id == 3
        assert mutation.record.type == "A"
        assert mutation.record.ttl == 600
        assert mutation.record.record_id is None
        assert mutation.restored is False

    def test_decode_edit_keeps_record_id(self):
        payload = _payload(kind="edit_dns", record={
            "zone": "example.com", "name": "x", "type": "A", "value": "5.6.7.8",
            "ttl": 120, "record_id": "rec-1",
        })
        mutation = MutationCodec().decode(payload, ActionType.EDIT_DNS)

        assert mutation.action_type == ActionType.EDIT_DNS
        assert mutation.record.record_id == "rec-1"
        assert mutation.record.ttl == 120

    @pytest.mark.parametrize("payload", [
        "",
        "not json",
        "[]",
        json.dumps({"kind": "delete", "domain_id": 3, "record": {}}),
        json.dumps({"domain_id": 3}),
        _payload(record={"zone": "example.com", "name": "x", "type": "A"}),
        _payload(record={"zone": "example.com", "name": "x", "type": "A", "value": "1.2.3.4", "ttl": 0}),
        _payload(domain_id="three"),
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(DecodeError):
            MutationCodec().decode(payload)

    def test_kind_must_match_action_type(self):
        with pytest.raises(DecodeError, match="does not match"):
            MutationCodec().decode(_payload(), ActionType.EDIT_DNS)


class TestRestore:
    """The restore step ties a mutation to its live domain."""

    def test_restore_attaches_domain(self):
        codec = MutationCodec()
        mutation = codec.restore(codec.decode(_payload()), _lookup, expected_domain_id=3)

        assert mutation.restored
        assert mutation.record.domain == DOMAIN
        assert mutation.record.provider_zone_id == "Z-COM"

    def test_restore_keeps_explicit_provider_zone(self):
        codec = MutationCodec()
        payload = _payload(record={
            "zone": "example.com", "name": "x", "type": "A", "value": "1.2.3.4",
            "provider_zone_id": "Z-OTHER",
        })
        mutation = codec.restore(codec.decode(payload), _lookup)
        assert mutation.record.provider_zone_id == "Z-OTHER"

    def test_subzone_is_within_domain(self):
        codec = MutationCodec()
        payload = _payload(record={"zone": "dev.Example.com.", "name": "x", "type": "A", "value": "1.2.3.4"})
        assert codec.restore(codec.decode(payload), _lookup).restored

    def test_missing_domain(self):
        codec = MutationCodec()
        with pytest.raises(RestoreError, match="no longer exists"):
            codec.restore(codec.decode(_payload(domain_id=99)), _lookup)

    def test_domain_mismatch_with_request(self):
        codec = MutationCodec()
        with pytest.raises(RestoreError):
            codec.restore(codec.decode(_payload()), _lookup, expected_domain_id=4)

    def test_zone_outside_domain(self):
        codec = MutationCodec()
        payload = _payload(record={"zone": "notexample.com", "name": "x", "type": "A", "value": "1.2.3.4"})
        with pytest.raises(RestoreError, match="not within"):
            codec.restore(codec.decode(payload), _lookup)

    def test_unrestored_mutation_cannot_apply(self):
        client = RecordingDnsClient()
        mutation = MutationCodec(client).decode(_payload())

        with pytest.raises(RestoreError):
            mutation.create()
        assert client.calls == []


class TestRoundTrip:
    """decode(encode(m)) produces the same provider call as m."""

    @pytest.mark.parametrize("action_type, op", [
        (ActionType.SUBMIT, "create"),
        (ActionType.EDIT_DNS, "update"),
    ])
    def test_round_trip_same_call(self, action_type, op):
        client = RecordingDnsClient()
        codec = MutationCodec(client)
        original = Mutation(
            action_type=action_type,
            domain_id=3,
            record=DnsRecord(zone="example.com", name="mail", type="MX",
                             value="10 mx1.example.com.", ttl=3600, record_id="rec-9"),
        )

        change = DomainChange(id=1, domain_id=3, user_id=9, action_type=action_type,
                              operation=codec.encode(original))
        codec.load(change, _lookup).apply()

        assert client.ops == [op]
        record = client.calls[0][1]
        assert (record.fqdn, record.type, record.value, record.ttl, record.record_id) == (
            "mail.example.com", "MX", "10 mx1.example.com.", 3600, "rec-9",
        )

    def test_encoded_payload_is_readable(self):
        mutation = Mutation(
            action_type=ActionType.SUBMIT,
            domain_id=3,
            record=DnsRecord(zone="example.com", name="x", type="A", value="1.2.3.4"),
        )
        data = json.loads(MutationCodec().encode(mutation))

        assert data["kind"] == "submit"
        assert data["record"] == {
            "zone": "example.com", "name": "x", "type": "A", "value": "1.2.3.4", "ttl": 600,
        }


class TestDnsRecord:

    @pytest.mark.parametrize("name, fqdn", [
        ("x", "x.example.com"),
        ("@", "example.com"),
        ("", "example.com"),
        ("x.example.com", "x.example.com"),
    ])
    def test_fqdn(self, name, fqdn):
        assert DnsRecord(zone="example.com", name=name, type="A", value="1.2.3.4").fqdn == fqdn
