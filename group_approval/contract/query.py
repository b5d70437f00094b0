"""
Query Handler

Read-only access to the persisted contract state. Queries never change
anything and are always permitted once the contract is instantiated.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from group_approval.contract.context import Deps
from group_approval.contract.observability import ContractLayer, get_logger, timed_operation
from group_approval.contract.storage import get_contract_state

logger = get_logger("query", ContractLayer.QUERY)


@timed_operation(logger, "contract_state")
def query_contract_state(deps: Deps) -> bytes:
    """Return the stored ContractState serialized as canonical JSON.

    Raises:
        StorageError: the contract has not been instantiated.
    """
    state = get_contract_state(deps.storage)
    logger.debug("Contract state queried", contract_version=state.contract_version)
    return state.to_bytes()
