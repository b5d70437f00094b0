"""
Migration handler tests.

Migration succeeds iff the stored kind equals the running kind and the running
version is strictly greater than the stored version.
"""

import json

import pytest

from conftest import ADMIN, CLAIM_TAG, LABEL
from group_approval.contract.config import CONTRACT_KIND, BuildInfo
from group_approval.contract.context import Deps
from group_approval.contract.errors import (
    KindMismatchError,
    MigrationError,
    StorageError,
    VersionParseError,
    VersionTooLowError,
)
from group_approval.contract.migration import contract_upgrade
from group_approval.contract.storage import (
    NAMESPACE_CONTRACT_STATE,
    ContractState,
    MemoryStorage,
    get_contract_state,
)


def deps_with(stored_version: str, running_version: str, claim_store,
              stored_kind: str = CONTRACT_KIND, running_kind: str = CONTRACT_KIND) -> Deps:
    # Written raw so that malformed stored versions can be set up.
    storage = MemoryStorage({NAMESPACE_CONTRACT_STATE.encode("utf-8"): ContractState(
        admin=ADMIN,
        claim_tag=CLAIM_TAG,
        label=LABEL,
        contract_kind=stored_kind,
        contract_version=stored_version,
    ).to_bytes()})
    build = BuildInfo(contract_kind=running_kind, contract_version=running_version)
    return Deps(storage=storage, claims=claim_store, build=build)


class TestMigrationSuccess:
    """Upgrades to a strictly newer build of the same kind."""

    def test_upgrade_from_0_0_1(self, claim_store):
        deps = deps_with("0.0.1", "1.0.0", claim_store)
        response = contract_upgrade(deps)

        assert response.attributes_dict() == {
            "action": "migrate_contract",
            "new_version": "1.0.0",
        }
        assert response.messages == []
        assert get_contract_state(deps.storage).contract_version == "1.0.0"

    def test_response_data_is_updated_state(self, claim_store):
        deps = deps_with("0.0.1", "1.0.0", claim_store)
        response = contract_upgrade(deps)

        assert response.data == get_contract_state(deps.storage).to_bytes()
        assert json.loads(response.data)["contract_version"] == "1.0.0"

    def test_other_fields_preserved(self, claim_store):
        deps = deps_with("0.0.1", "1.0.0", claim_store)
        before = get_contract_state(deps.storage)
        contract_upgrade(deps)
        after = get_contract_state(deps.storage)

        assert after.admin == before.admin
        assert after.claim_tag == before.claim_tag
        assert after.label == before.label
        assert after.contract_kind == before.contract_kind

    def test_release_after_prerelease(self, claim_store):
        deps = deps_with("1.0.0-rc.1", "1.0.0", claim_store)
        contract_upgrade(deps)
        assert get_contract_state(deps.storage).contract_version == "1.0.0"


class TestMigrationRejections:
    """Rejected migrations leave the stored record untouched."""

    def test_stored_version_too_high(self, claim_store):
        deps = deps_with("999.999.999", "1.0.0", claim_store)
        before = deps.storage.get(b"contract_state")

        with pytest.raises(VersionTooLowError) as exc_info:
            contract_upgrade(deps)

        assert str(exc_info.value) == (
            "target migration contract version [1.0.0] is too low to use. "
            "stored contract version is [999.999.999]"
        )
        assert isinstance(exc_info.value, MigrationError)
        assert deps.storage.get(b"contract_state") == before

    def test_same_version_rejected(self, claim_store):
        deps = deps_with("1.0.0", "1.0.0", claim_store)
        with pytest.raises(VersionTooLowError):
            contract_upgrade(deps)

    def test_build_metadata_only_change_rejected(self, claim_store):
        deps = deps_with("1.0.0+a", "1.0.0+b", claim_store)
        with pytest.raises(VersionTooLowError):
            contract_upgrade(deps)

    def test_kind_mismatch(self, claim_store):
        deps = deps_with("0.0.1", "2.0.0", claim_store, running_kind="some_other_contract")

        with pytest.raises(KindMismatchError) as exc_info:
            contract_upgrade(deps)

        assert str(exc_info.value) == (
            "target migration contract type [some_other_contract] does not match "
            f"stored contract type [{CONTRACT_KIND}]"
        )
        assert exc_info.value.to_dict()["kind"] == "migration"
        assert get_contract_state(deps.storage).contract_version == "0.0.1"

    def test_kind_checked_before_versions(self, claim_store):
        deps = deps_with("not-a-version", "also-not", claim_store, running_kind="other")
        with pytest.raises(KindMismatchError):
            contract_upgrade(deps)

    def test_malformed_stored_version(self, claim_store):
        deps = deps_with("not.a.version", "1.0.0", claim_store)
        with pytest.raises(VersionParseError) as exc_info:
            contract_upgrade(deps)
        assert exc_info.value.value == "not.a.version"

    def test_malformed_running_version(self, claim_store):
        deps = deps_with("0.0.1", "1.0", claim_store)
        with pytest.raises(MigrationError):
            contract_upgrade(deps)
        assert get_contract_state(deps.storage).contract_version == "0.0.1"

    @pytest.mark.parametrize("running", ["2.0.0\n", "2.0.0 ", " 2.0.0"])
    def test_running_version_with_surrounding_whitespace(self, claim_store, running):
        deps = deps_with("0.0.1", running, claim_store)
        with pytest.raises(VersionParseError):
            contract_upgrade(deps)
        assert get_contract_state(deps.storage).contract_version == "0.0.1"

    def test_not_instantiated(self, deps):
        with pytest.raises(StorageError):
            contract_upgrade(deps)
