"""
Local host tests: transactional invocation, directive application,
name registry, claim store paging, snapshot/restore.
"""

import json
import logging

import pytest

from conftest import ADMIN, CLAIM_TAG, CONTRACT_ADDRESS, LABEL, MEMBER, int_claim
from group_approval.contract.claims import ClaimValueKind, decode_int_value
from group_approval.contract.config import CONTRACT_KIND, BuildInfo, ConfigError
from group_approval.contract.context import Coin
from group_approval.contract.errors import (
    ClaimStoreError,
    DuplicateClaimError,
    FundsError,
    HostError,
    NamespaceTakenError,
    StorageError,
    VersionTooLowError,
)
from group_approval.contract.host import InMemoryClaimStore, LocalHost, NameRegistry
from group_approval.contract.msg import ApproveMembership, InstantiateMsg


def instantiate_msg(bind_namespace=False) -> InstantiateMsg:
    return InstantiateMsg(label=LABEL, claim_tag=CLAIM_TAG, bind_namespace=bind_namespace)


class TestLifecycle:
    """End-to-end through the local host."""

    def test_instantiate_then_query(self, host):
        host.instantiate(ADMIN, instantiate_msg())
        state = host.query_state()
        assert state["admin"] == ADMIN
        assert state["label"] == LABEL
        assert state["claim_tag"] == CLAIM_TAG
        assert state["contract_version"] == host.build.contract_version

    def test_query_before_instantiate(self, host):
        with pytest.raises(StorageError):
            host.query()

    def test_second_instantiate_rejected(self, instantiated_host):
        before = instantiated_host.snapshot()
        with pytest.raises(HostError):
            instantiated_host.instantiate("tp1intruder", InstantiateMsg("Other", "other.pb", False))
        assert instantiated_host.snapshot() == before

    def test_approve_writes_claim(self, instantiated_host):
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=1))

        claims = instantiated_host.claims.claims_for(MEMBER, CLAIM_TAG)
        assert len(claims) == 1
        assert claims[0].kind is ClaimValueKind.INT
        assert decode_int_value(claims[0].value) == 1

    def test_same_group_twice(self, instantiated_host):
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=1))
        with pytest.raises(DuplicateClaimError):
            instantiated_host.execute(MEMBER, ApproveMembership(group_id=1))
        assert len(instantiated_host.claims.claims_for(MEMBER, CLAIM_TAG)) == 1

    def test_distinct_groups(self, instantiated_host):
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=1))
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=2))
        values = [decode_int_value(c.value) for c in instantiated_host.claims.claims_for(MEMBER)]
        assert values == [1, 2]

    def test_wire_payload(self, instantiated_host):
        response = instantiated_host.execute(MEMBER, '{"approve_membership": {"group_id": "9"}}')
        assert response.attribute("group_id") == "9"

    def test_block_height_advances_on_commit_only(self, instantiated_host):
        height = instantiated_host.block_height
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=1))
        assert instantiated_host.block_height == height + 1
        with pytest.raises(FundsError):
            instantiated_host.execute(MEMBER, ApproveMembership(group_id=2), funds=[Coin("nhash", 5)])
        assert instantiated_host.block_height == height + 1


class TestAtomicity:
    """Failed invocations leave no trace."""

    def test_failed_instantiate_leaves_host_uninitialized(self, host):
        with pytest.raises(FundsError):
            host.instantiate(ADMIN, instantiate_msg(), funds=[Coin("nhash", 1)])
        assert not host.instantiated

    def test_bind_collision_reverts_instantiate(self, host):
        host.names.bind(CLAIM_TAG, "tp1squatter")
        with pytest.raises(NamespaceTakenError):
            host.instantiate(ADMIN, instantiate_msg(bind_namespace=True))
        assert not host.instantiated
        assert host.names.resolve(CLAIM_TAG).owner == "tp1squatter"

    def test_restricted_parent_reverts_instantiate(self, host):
        host.names.bind("pb", "tp1chain", restricted=True)
        with pytest.raises(HostError):
            host.instantiate(ADMIN, instantiate_msg(bind_namespace=True))
        assert not host.instantiated
        assert host.names.resolve(CLAIM_TAG) is None

    def test_bind_applied_on_success(self, host):
        host.names.bind("pb", "tp1chain", restricted=False)
        host.instantiate(ADMIN, instantiate_msg(bind_namespace=True))
        record = host.names.resolve(CLAIM_TAG)
        assert record.owner == CONTRACT_ADDRESS
        assert record.restricted is True

    def test_bad_page_bound_aborts_and_logs_error(self, instantiated_host, monkeypatch, caplog):
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=7))
        height = instantiated_host.block_height
        monkeypatch.setenv("GROUP_APPROVAL_CLAIMS_MAX_PAGES", "0")

        with caplog.at_level(logging.ERROR, logger="group_approval.host.local_host"):
            with pytest.raises(ConfigError):
                instantiated_host.execute(MEMBER, ApproveMembership(group_id=7))

        assert len(instantiated_host.claims.claims_for(MEMBER, CLAIM_TAG)) == 1
        assert instantiated_host.block_height == height
        assert any(
            r.levelno == logging.ERROR and "unexpected error" in r.getMessage()
            for r in caplog.records
        )

    def test_failed_migration_keeps_build_and_state(self, instantiated_host):
        build = instantiated_host.build
        with pytest.raises(VersionTooLowError):
            instantiated_host.migrate(BuildInfo(CONTRACT_KIND, "0.0.1"))
        assert instantiated_host.build == build
        assert instantiated_host.query_state()["contract_version"] == build.contract_version


class TestMigrationThroughHost:

    def test_upgrade_adopts_new_build(self):
        host = LocalHost(contract_address=CONTRACT_ADDRESS, build=BuildInfo(CONTRACT_KIND, "0.0.1"))
        host.instantiate(ADMIN, instantiate_msg())

        response = host.migrate(BuildInfo(CONTRACT_KIND, "1.0.0"))

        assert response.attribute("new_version") == "1.0.0"
        assert host.build.contract_version == "1.0.0"
        assert host.query_state()["contract_version"] == "1.0.0"

    def test_rerun_same_version_rejected(self):
        host = LocalHost(build=BuildInfo(CONTRACT_KIND, "0.0.1"))
        host.instantiate(ADMIN, instantiate_msg())
        host.migrate(BuildInfo(CONTRACT_KIND, "1.0.0"))
        with pytest.raises(VersionTooLowError):
            host.migrate()


class TestInMemoryClaimStore:

    def test_offset_pages(self, claim_store):
        for group_id in range(5):
            claim_store.add_claim(int_claim(MEMBER, CLAIM_TAG, group_id))

        first = claim_store.fetch_claims(MEMBER, CLAIM_TAG, limit=2)
        second = claim_store.fetch_claims(MEMBER, CLAIM_TAG, page_key=first.next_page_key, limit=2)
        third = claim_store.fetch_claims(MEMBER, CLAIM_TAG, page_key=second.next_page_key, limit=2)

        assert (first.next_page_key, second.next_page_key, third.next_page_key) == ("2", "4", None)
        assert len(third.claims) == 1

    def test_unknown_holder(self, claim_store):
        page = claim_store.fetch_claims("tp1nobody")
        assert page.claims == []
        assert page.next_page_key is None

    def test_invalid_page_key(self, claim_store):
        with pytest.raises(ClaimStoreError):
            claim_store.fetch_claims(MEMBER, page_key="abc")

    def test_invalid_limit(self, claim_store):
        with pytest.raises(ClaimStoreError):
            claim_store.fetch_claims(MEMBER, limit=0)

    def test_injected_failure(self):
        store = InMemoryClaimStore(fail_on_page=0)
        with pytest.raises(ClaimStoreError):
            store.fetch_claims(MEMBER)

    def test_copy_is_independent(self, claim_store):
        claim_store.add_claim(int_claim(MEMBER, CLAIM_TAG, 1))
        clone = claim_store.copy()
        clone.write_claim(MEMBER, CLAIM_TAG, b"2", ClaimValueKind.INT)
        assert len(claim_store.claims_for(MEMBER)) == 1
        assert len(clone.claims_for(MEMBER)) == 2


class TestNameRegistry:

    def test_bind_and_resolve(self):
        registry = NameRegistry()
        registry.bind("pb", "tp1chain", restricted=False)
        assert registry.resolve("pb").owner == "tp1chain"

    def test_taken(self):
        registry = NameRegistry()
        registry.bind("a.pb", "tp1one")
        with pytest.raises(NamespaceTakenError):
            registry.bind("a.pb", "tp1one")

    def test_restricted_parent_allows_owner(self):
        registry = NameRegistry()
        registry.bind("pb", "tp1chain", restricted=True)
        registry.bind("sub.pb", "tp1chain")
        assert registry.resolve("sub.pb") is not None

    def test_restriction_applies_to_direct_children_only(self):
        registry = NameRegistry()
        registry.bind("pb", "tp1chain", restricted=True)
        registry.bind("sub.pb", "tp1chain", restricted=False)
        registry.bind("leaf.sub.pb", "tp1other")
        assert registry.resolve("leaf.sub.pb").owner == "tp1other"


class TestSnapshot:

    def test_round_trip_through_json(self, instantiated_host):
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=1))
        instantiated_host.names.bind("pb", "tp1chain", restricted=False)

        data = json.loads(json.dumps(instantiated_host.snapshot()))
        restored = LocalHost.restore(data)

        assert restored.query_state() == instantiated_host.query_state()
        assert restored.snapshot() == instantiated_host.snapshot()
        with pytest.raises(DuplicateClaimError):
            restored.execute(MEMBER, ApproveMembership(group_id=1))

    def test_binary_claim_value_survives_round_trip(self, instantiated_host):
        raw = b"\xff\xfe\x00\x80"
        instantiated_host.claims.write_claim(MEMBER, "other.pb", raw, ClaimValueKind.BYTES)

        data = json.loads(json.dumps(instantiated_host.snapshot()))
        restored = LocalHost.restore(data)

        assert restored.claims.claims_for(MEMBER, "other.pb")[0].value == raw

    def test_invalid_claim_value_encoding(self, instantiated_host):
        instantiated_host.execute(MEMBER, ApproveMembership(group_id=1))
        data = json.loads(json.dumps(instantiated_host.snapshot()))
        data["claims"][MEMBER][0]["value"] = "not base64!"
        with pytest.raises(HostError):
            LocalHost.restore(data)

    def test_invalid_snapshot(self):
        with pytest.raises(HostError):
            LocalHost.restore({"storage": {}})
