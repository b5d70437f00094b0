"""
Migration Handler

Active(v) ──contract_upgrade──▶ Active(v')   where v' > v

Upgrades the stored state to the running build. Two guards apply, in order:

    1. Kind      the running build's contract kind must equal the stored
                 kind, so a binary from another contract family cannot
                 take over this instance's state.
    2. Version   the running version must strictly exceed the stored one
                 under SemVer precedence. Re-running the same version and
                 downgrades are both rejected.

On success only ``contract_version`` changes; admin, label, claim tag and
kind are carried over untouched.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from group_approval.contract.context import Deps
from group_approval.contract.errors import KindMismatchError, VersionTooLowError
from group_approval.contract.observability import ContractLayer, get_logger, timed_operation
from group_approval.contract.response import Response
from group_approval.contract.semver import parse_version
from group_approval.contract.storage import get_contract_state, set_contract_state

logger = get_logger("migration", ContractLayer.MIGRATE)


@timed_operation(logger, "contract_upgrade")
def contract_upgrade(deps: Deps) -> Response:
    """Move the stored contract version up to the running build's version.

    The response data carries the updated state serialized as canonical JSON.

    Raises:
        StorageError: the contract has not been instantiated.
        KindMismatchError: the running build is a different contract kind.
        VersionParseError: either version is not a valid semantic version.
        VersionTooLowError: the running version does not exceed the stored one.
    """
    state = get_contract_state(deps.storage)
    build = deps.build

    if build.contract_kind != state.contract_kind:
        logger.warning(
            "Migration rejected: contract kind mismatch",
            error_code="migration",
            running_kind=build.contract_kind,
            stored_kind=state.contract_kind,
        )
        raise KindMismatchError(build.contract_kind, state.contract_kind)

    running = parse_version(build.contract_version)
    stored = parse_version(state.contract_version)
    if not running > stored:
        logger.warning(
            "Migration rejected: version too low",
            error_code="migration",
            running_version=build.contract_version,
            stored_version=state.contract_version,
        )
        raise VersionTooLowError(build.contract_version, state.contract_version)

    upgraded = state.with_version(build.contract_version)
    set_contract_state(deps.storage, upgraded)

    logger.info(
        "Contract migrated",
        from_version=state.contract_version,
        to_version=upgraded.contract_version,
    )

    return (
        Response()
        .add_attribute("action", "migrate_contract")
        .add_attribute("new_version", upgraded.contract_version)
        .set_data(upgraded.to_bytes())
    )
