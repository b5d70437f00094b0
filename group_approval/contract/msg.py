"""
Contract Messages

Typed forms of the four message kinds the host delivers, with parsers from
their snake_case JSON payloads. Payload shape is checked against the bundled
JSON schemas; field contents (empty names, u64 range) are checked by the
handlers and validators so the error order of each route is preserved.

    InstantiateMsg     {"label": str, "claim_tag": str, "bind_namespace": bool}
    ExecuteMsg         {"approve_membership": {"group_id": "<u64>"}}
    QueryMsg           {"contract_state": {}}
    MigrateMsg         {"contract_upgrade": {}}

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Union

from group_approval.contract.errors import ValidationError
from group_approval.contract.hardening import Validators
from group_approval.schema import (
    EXECUTE_MSG_SCHEMA,
    INSTANTIATE_MSG_SCHEMA,
    MIGRATE_MSG_SCHEMA,
    QUERY_MSG_SCHEMA,
    validate_against_schema,
)


Payload = Union[str, bytes, Dict[str, Any]]


def _load_payload(payload: Payload, msg_type: str) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValidationError(msg_type, f"payload is not valid JSON: {e}") from e
    return payload


def _check_schema(obj: Any, schema_name: str, msg_type: str) -> None:
    errors = validate_against_schema(obj, schema_name)
    if errors:
        raise ValidationError(msg_type, errors[0], obj)


@dataclass(frozen=True)
class InstantiateMsg:
    """Creates the contract state for a new instance."""
    label: str
    claim_tag: str
    bind_namespace: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "claim_tag": self.claim_tag,
            "bind_namespace": self.bind_namespace,
        }


@dataclass(frozen=True)
class ApproveMembership:
    """The signer consents to membership in group ``group_id``."""
    group_id: int

    def to_dict(self) -> Dict[str, Any]:
        # u64 values travel as decimal strings on the wire
        return {"approve_membership": {"group_id": str(self.group_id)}}


@dataclass(frozen=True)
class ContractStateQuery:
    """Returns the persisted contract state."""

    def to_dict(self) -> Dict[str, Any]:
        return {"contract_state": {}}


@dataclass(frozen=True)
class ContractUpgrade:
    """Moves the stored contract version up to the running build's version."""

    def to_dict(self) -> Dict[str, Any]:
        return {"contract_upgrade": {}}


ExecuteMsg = ApproveMembership
QueryMsg = ContractStateQuery
MigrateMsg = ContractUpgrade


def parse_instantiate_msg(payload: Payload) -> InstantiateMsg:
    obj = _load_payload(payload, "instantiate_msg")
    _check_schema(obj, INSTANTIATE_MSG_SCHEMA, "instantiate_msg")
    return InstantiateMsg(
        label=obj["label"],
        claim_tag=obj["claim_tag"],
        bind_namespace=obj["bind_namespace"],
    )


def parse_execute_msg(payload: Payload) -> ExecuteMsg:
    obj = _load_payload(payload, "execute_msg")
    _check_schema(obj, EXECUTE_MSG_SCHEMA, "execute_msg")
    body = obj["approve_membership"]
    result = Validators.validate_uint64(body["group_id"], "group_id")
    result.raise_if_invalid()
    return ApproveMembership(group_id=result.sanitized_value)


def parse_query_msg(payload: Payload) -> QueryMsg:
    obj = _load_payload(payload, "query_msg")
    _check_schema(obj, QUERY_MSG_SCHEMA, "query_msg")
    return ContractStateQuery()


def parse_migrate_msg(payload: Payload) -> MigrateMsg:
    obj = _load_payload(payload, "migrate_msg")
    _check_schema(obj, MIGRATE_MSG_SCHEMA, "migrate_msg")
    return ContractUpgrade()
