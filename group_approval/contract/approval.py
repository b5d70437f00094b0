"""
Approval Handler

Active(v) ──approve_membership──▶ Active(v)

The signing account affirms membership in a group by receiving an integer
claim, tagged with the contract's claim tag, whose value is the group id.
Group membership itself cannot be checked from inside the contract; the
claim is a statement of consent that external consumers can audit.

Before requesting the write, the handler reads the sender's existing claims
for the tag and rejects a group id the sender has already claimed. The
check is scoped to sender and tag only and ignores claim expiration: an
expired claim for the same group still blocks re-approval.

No contract state is modified. The only effect is the WriteClaim directive.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from group_approval.contract.claims import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_SIZE,
    ClaimValueKind,
    encode_int_value,
    existing_group_ids,
)
from group_approval.contract.context import Deps, MessageInfo
from group_approval.contract.errors import DuplicateClaimError
from group_approval.contract.hardening import Validators, check_funds_are_empty
from group_approval.contract.observability import ContractLayer, get_logger, timed_operation
from group_approval.contract.response import Response, WriteClaim
from group_approval.contract.storage import get_contract_state

logger = get_logger("approval", ContractLayer.EXECUTE)


def _page_bounds(deps: Deps):
    if deps.settings is None:
        return DEFAULT_PAGE_SIZE, DEFAULT_MAX_PAGES
    return deps.settings.claims.page_size.get(), deps.settings.claims.max_pages.get()


@timed_operation(logger, "approve_group_membership")
def approve_group_membership(deps: Deps, info: MessageInfo, group_id: int) -> Response:
    """Request a membership claim for ``info.sender`` in ``group_id``.

    Raises:
        FundsError: funds were attached.
        ValidationError: ``group_id`` is not a u64.
        StorageError: the contract has not been instantiated.
        DuplicateClaimError: the sender already holds a claim for the group.
    """
    # The only charge for this route should be the claim write itself
    check_funds_are_empty(info)
    group_id = _require_uint64(group_id)
    claim_tag = get_contract_state(deps.storage).claim_tag

    page_size, max_pages = _page_bounds(deps)
    existing = existing_group_ids(
        deps.claims,
        info.sender,
        claim_tag,
        page_size=page_size,
        max_pages=max_pages,
    )
    if group_id in existing:
        logger.warning(
            "Duplicate membership approval rejected",
            error_code="duplicate_claim",
            sender=info.sender,
            group_id=group_id,
            claim_tag=claim_tag,
        )
        raise DuplicateClaimError(group_id=group_id, sender=info.sender)

    logger.info(
        "Membership approval accepted",
        sender=info.sender,
        group_id=group_id,
        claim_tag=claim_tag,
        existing_claims=len(existing),
    )

    return (
        Response()
        .add_message(WriteClaim(
            holder=info.sender,
            tag=claim_tag,
            value=encode_int_value(group_id),
            kind=ClaimValueKind.INT,
        ))
        .add_attribute("action", "approve_group_membership")
        .add_attribute("sender", info.sender)
        .add_attribute("claim_tag", claim_tag)
        .add_attribute("group_id", group_id)
    )


def _require_uint64(value: int) -> int:
    result = Validators.validate_uint64(value, "group_id")
    result.raise_if_invalid()
    return result.sanitized_value
