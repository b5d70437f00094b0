"""
Entry point and query handler tests.

Entry points accept typed messages or raw JSON payloads and bind a
correlation id for the duration of the invocation.
"""

import json

import pytest

from conftest import ADMIN, CLAIM_TAG, LABEL, MEMBER
from group_approval.contract import entrypoints
from group_approval.contract.config import CONTRACT_KIND, CONTRACT_VERSION
from group_approval.contract.errors import StorageError, ValidationError
from group_approval.contract.msg import ApproveMembership, ContractStateQuery
from group_approval.contract.observability import correlation_id_var, set_correlation_id
from group_approval.contract.query import query_contract_state


class TestQueryContractState:
    """Read-only projection of the stored record."""

    def test_returns_stored_record(self, instantiated_deps):
        raw = query_contract_state(instantiated_deps)
        assert json.loads(raw) == {
            "admin": ADMIN,
            "claim_tag": CLAIM_TAG,
            "label": LABEL,
            "contract_kind": CONTRACT_KIND,
            "contract_version": CONTRACT_VERSION,
        }

    def test_does_not_mutate(self, instantiated_deps):
        before = dict(instantiated_deps.storage.items())
        query_contract_state(instantiated_deps)
        query_contract_state(instantiated_deps)
        assert dict(instantiated_deps.storage.items()) == before

    def test_not_instantiated(self, deps):
        with pytest.raises(StorageError):
            query_contract_state(deps)


class TestEntryPoints:
    """Dispatch from payloads to handlers."""

    def test_instantiate_from_json(self, deps, env, admin_info):
        payload = json.dumps({"label": LABEL, "claim_tag": CLAIM_TAG, "bind_namespace": False})
        response = entrypoints.instantiate(deps, env, admin_info, payload)
        assert response.attribute("action") == "instantiate"

    def test_instantiate_payload_with_empty_label(self, deps, env, admin_info):
        payload = {"label": "", "claim_tag": CLAIM_TAG, "bind_namespace": False}
        with pytest.raises(ValidationError) as exc_info:
            entrypoints.instantiate(deps, env, admin_info, payload)
        assert exc_info.value.field == "label"

    def test_execute_from_wire_payload(self, instantiated_deps, env, member_info):
        payload = b'{"approve_membership": {"group_id": "7"}}'
        response = entrypoints.execute(instantiated_deps, env, member_info, payload)
        assert response.attribute("group_id") == "7"
        assert response.messages[0].holder == MEMBER

    def test_execute_typed_message(self, instantiated_deps, env, member_info):
        response = entrypoints.execute(instantiated_deps, env, member_info, ApproveMembership(group_id=3))
        assert response.attribute("group_id") == "3"

    def test_query_from_payload(self, instantiated_deps, env):
        raw = entrypoints.query(instantiated_deps, env, '{"contract_state": {}}')
        assert json.loads(raw)["claim_tag"] == CLAIM_TAG

    def test_query_typed_message(self, instantiated_deps, env):
        raw = entrypoints.query(instantiated_deps, env, ContractStateQuery())
        assert json.loads(raw)["admin"] == ADMIN

    def test_migrate_rejects_unknown_variant(self, instantiated_deps, env):
        with pytest.raises(ValidationError):
            entrypoints.migrate(instantiated_deps, env, {"something_else": {}})

    def test_correlation_id_scoped_to_invocation(self, instantiated_deps, env):
        token = set_correlation_id("corr-outer")
        try:
            entrypoints.query(instantiated_deps, env, ContractStateQuery(), correlation_id="corr-inner")
            assert correlation_id_var.get() == "corr-outer"
        finally:
            correlation_id_var.reset(token)

    def test_correlation_id_restored_after_error(self, deps, env):
        token = set_correlation_id("corr-outer")
        try:
            with pytest.raises(StorageError):
                entrypoints.query(deps, env, ContractStateQuery())
            assert correlation_id_var.get() == "corr-outer"
        finally:
            correlation_id_var.reset(token)
