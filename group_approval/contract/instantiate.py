"""
Instantiation Handler

Uninitialized ──instantiate──▶ Active(v0)

Validates the instantiation inputs, persists the initial ContractState
stamped with the running build's kind and version, and optionally asks the
host to bind the claim tag as a restricted name owned by the contract.

A bind directive for a name someone else already holds fails at the host
and reverts the whole instantiation; that failure is not handled here.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from group_approval.contract.context import Deps, Env, MessageInfo
from group_approval.contract.hardening import Validators, check_funds_are_empty
from group_approval.contract.msg import InstantiateMsg
from group_approval.contract.names import bind_namespace
from group_approval.contract.observability import ContractLayer, get_logger, timed_operation
from group_approval.contract.response import Response
from group_approval.contract.storage import ContractState, set_contract_state

logger = get_logger("instantiate", ContractLayer.INSTANTIATE)


@timed_operation(logger, "instantiate")
def instantiate_contract(deps: Deps, env: Env, info: MessageInfo, msg: InstantiateMsg) -> Response:
    """Create the contract state for a new instance.

    Raises:
        FundsError: funds were attached.
        ValidationError: ``label`` or ``claim_tag`` is empty.
        FormatError: ``bind_namespace`` is set and ``claim_tag`` is not a
            well-formed name.
    """
    check_funds_are_empty(info)
    Validators.validate_string(msg.label, "label").raise_if_invalid()
    Validators.validate_string(msg.claim_tag, "claim_tag").raise_if_invalid()

    response = Response()
    if msg.bind_namespace:
        response.add_message(bind_namespace(msg.claim_tag, env.contract_address, restricted=True))

    state = ContractState.new(
        admin=info.sender,
        claim_tag=msg.claim_tag,
        label=msg.label,
        build=deps.build,
    )
    set_contract_state(deps.storage, state)

    logger.info(
        "Contract instantiated",
        admin=info.sender,
        label=msg.label,
        claim_tag=msg.claim_tag,
        contract_version=state.contract_version,
        bind_namespace=msg.bind_namespace,
    )

    return (
        response
        .add_attribute("action", "instantiate")
        .add_attribute("label", msg.label)
        .add_attribute("claim_tag", msg.claim_tag)
    )
