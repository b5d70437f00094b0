"""
Contract Entry Points

One function per message kind the host can deliver. Each accepts either a
typed message or its raw JSON payload, assigns a correlation id to the
invocation, and dispatches to the matching handler.

    instantiate(deps, env, info, msg)   → Response
    execute(deps, env, info, msg)       → Response
    query(deps, env, msg)               → bytes
    migrate(deps, env, msg)             → Response

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from typing import Optional, Union

from group_approval.contract.approval import approve_group_membership
from group_approval.contract.context import Deps, Env, MessageInfo
from group_approval.contract.instantiate import instantiate_contract
from group_approval.contract.migration import contract_upgrade
from group_approval.contract.msg import (
    ApproveMembership,
    ContractStateQuery,
    ContractUpgrade,
    InstantiateMsg,
    Payload,
    parse_execute_msg,
    parse_instantiate_msg,
    parse_migrate_msg,
    parse_query_msg,
)
from group_approval.contract.observability import (
    correlation_id_var,
    generate_correlation_id,
)
from group_approval.contract.query import query_contract_state
from group_approval.contract.response import Response


class _Invocation:
    """Binds a correlation id for the duration of one invocation."""

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token = None

    def __enter__(self) -> str:
        self._token = correlation_id_var.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, *exc) -> None:
        correlation_id_var.reset(self._token)


def instantiate(
    deps: Deps,
    env: Env,
    info: MessageInfo,
    msg: Union[InstantiateMsg, Payload],
    correlation_id: Optional[str] = None,
) -> Response:
    with _Invocation(correlation_id):
        if not isinstance(msg, InstantiateMsg):
            msg = parse_instantiate_msg(msg)
        return instantiate_contract(deps, env, info, msg)


def execute(
    deps: Deps,
    env: Env,
    info: MessageInfo,
    msg: Union[ApproveMembership, Payload],
    correlation_id: Optional[str] = None,
) -> Response:
    with _Invocation(correlation_id):
        if not isinstance(msg, ApproveMembership):
            msg = parse_execute_msg(msg)
        return approve_group_membership(deps, info, msg.group_id)


def query(
    deps: Deps,
    env: Env,
    msg: Union[ContractStateQuery, Payload],
    correlation_id: Optional[str] = None,
) -> bytes:
    with _Invocation(correlation_id):
        if not isinstance(msg, ContractStateQuery):
            msg = parse_query_msg(msg)
        return query_contract_state(deps)


def migrate(
    deps: Deps,
    env: Env,
    msg: Union[ContractUpgrade, Payload],
    correlation_id: Optional[str] = None,
) -> Response:
    with _Invocation(correlation_id):
        if not isinstance(msg, ContractUpgrade):
            msg = parse_migrate_msg(msg)
        return contract_upgrade(deps)
