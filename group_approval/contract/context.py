"""
Invocation Context

The values the host hands to every handler: who sent the message and with
what funds (MessageInfo), where the contract lives (Env), and the injected
capabilities a handler may use (Deps).

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from group_approval.contract.claims import ClaimsPort
    from group_approval.contract.config import BuildInfo, ContractSettings
    from group_approval.contract.storage import Storage


@dataclass(frozen=True)
class Coin:
    """An amount of a single denomination."""
    denom: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"denom": self.denom, "amount": str(self.amount)}


@dataclass(frozen=True)
class MessageInfo:
    """Sender identity and funds attached to a message."""
    sender: str
    funds: List[Coin] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "funds": [c.to_dict() for c in self.funds],
        }


@dataclass(frozen=True)
class Env:
    """Execution environment for an invocation."""
    contract_address: str
    block_height: int = 0
    block_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_address": self.contract_address,
            "block_height": self.block_height,
            "block_time": self.block_time.isoformat(),
        }


@dataclass
class Deps:
    """
    Capabilities injected into a handler.

    ``claims`` is a read-only port onto the external claim store; writes are
    only ever requested through response directives.
    """
    storage: "Storage"
    claims: "ClaimsPort"
    build: "BuildInfo"
    settings: Optional["ContractSettings"] = None
