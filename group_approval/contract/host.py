"""
Local Host

An in-memory stand-in for the transactional environment the contract runs
in. It delivers one message at a time and applies the contract's outbound
directives itself, which makes the whole lifecycle testable and drivable from
the command line.

Each invocation is a transaction:

    stage ──▶ handler ──▶ apply directives ──▶ commit
      │          │                 │
      └──────────┴──── failure ────┴──▶ discard staged state

The handler sees staged copies of storage, claims and names. Nothing becomes
visible unless the handler and every directive it emitted succeed.

    InMemoryClaimStore   ClaimsPort backed by a dict, offset page keys
    NameRegistry         hierarchical names with restricted parents
    LocalHost            the transaction runner with snapshot/restore

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from group_approval.contract import entrypoints
from group_approval.contract.claims import (
    DEFAULT_PAGE_SIZE,
    ClaimPage,
    ClaimsPort,
    ClaimValueKind,
    ExternalClaim,
)
from group_approval.contract.config import BuildInfo, ContractSettings, get_settings
from group_approval.contract.context import Coin, Deps, Env, MessageInfo
from group_approval.contract.errors import ClaimStoreError, ContractError, HostError, NamespaceTakenError
from group_approval.contract.msg import ContractStateQuery, ContractUpgrade
from group_approval.contract.names import parent_names
from group_approval.contract.observability import ContractLayer, get_logger
from group_approval.contract.response import BindNamespace, Response, WriteClaim
from group_approval.contract.storage import MemoryStorage, has_contract_state

logger = get_logger("local_host", ContractLayer.HOST)

T = TypeVar("T")


# =============================================================================
# CLAIM STORE
# =============================================================================

class InMemoryClaimStore(ClaimsPort):
    """
    Append-only claim store keyed by holder.

    Page keys are decimal offsets into the holder's (optionally tag-filtered)
    claim list. ``fail_on_page`` makes the n-th fetch of every chain (0-based)
    raise ClaimStoreError, for exercising fail-open callers.
    """

    def __init__(self, fail_on_page: Optional[int] = None):
        self._claims: Dict[str, List[ExternalClaim]] = {}
        self.fail_on_page = fail_on_page
        self.fetch_count = 0

    def fetch_claims(
        self,
        holder: str,
        tag: Optional[str] = None,
        page_key: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ClaimPage:
        self.fetch_count += 1
        if limit < 1:
            raise ClaimStoreError(f"page limit must be positive, got {limit}")

        try:
            offset = int(page_key) if page_key else 0
        except ValueError as e:
            raise ClaimStoreError(f"invalid page key [{page_key}]") from e

        if self.fail_on_page is not None and offset // limit == self.fail_on_page:
            raise ClaimStoreError(f"claim store unavailable for holder [{holder}]")

        claims = self.claims_for(holder, tag)
        page = claims[offset:offset + limit]
        end = offset + len(page)
        next_key = str(end) if end < len(claims) else None
        return ClaimPage(claims=page, next_page_key=next_key)

    def claims_for(self, holder: str, tag: Optional[str] = None) -> List[ExternalClaim]:
        claims = self._claims.get(holder, [])
        if tag is None:
            return list(claims)
        return [c for c in claims if c.name == tag]

    def add_claim(self, claim: ExternalClaim) -> None:
        self._claims.setdefault(claim.holder, []).append(claim)

    def write_claim(
        self,
        holder: str,
        tag: str,
        value: bytes,
        kind: ClaimValueKind,
        expiration: Optional[datetime] = None,
    ) -> ExternalClaim:
        claim = ExternalClaim(holder=holder, name=tag, value=value, kind=kind, expiration=expiration)
        self.add_claim(claim)
        return claim

    def copy(self) -> "InMemoryClaimStore":
        clone = InMemoryClaimStore(fail_on_page=self.fail_on_page)
        clone._claims = {h: list(cs) for h, cs in self._claims.items()}
        return clone

    def to_dict(self) -> Dict[str, Any]:
        return {h: [c.to_dict() for c in cs] for h, cs in sorted(self._claims.items())}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryClaimStore":
        store = cls()
        for holder, claims in data.items():
            for c in claims:
                store.add_claim(ExternalClaim.from_dict(dict(c, holder=holder)))
        return store


# =============================================================================
# NAME REGISTRY
# =============================================================================

@dataclass(frozen=True)
class NameRecord:
    """A bound name."""
    name: str
    owner: str
    restricted: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": self.owner, "restricted": self.restricted}


class NameRegistry:
    """
    Hierarchical name bindings.

    A name can be bound once. Under a restricted parent only the parent's
    owner may bind direct children. Unbound parents impose no restriction.
    """

    def __init__(self):
        self._names: Dict[str, NameRecord] = {}

    def bind(self, name: str, owner: str, restricted: bool = True) -> NameRecord:
        existing = self._names.get(name)
        if existing is not None:
            raise NamespaceTakenError(name, existing.owner)

        parents = parent_names(name)
        parent = self._names.get(parents[0]) if parents else None
        if parent is not None and parent.restricted and parent.owner != owner:
            raise HostError(
                f"cannot bind [{name}]: parent [{parent.name}] is restricted to [{parent.owner}]"
            )

        record = NameRecord(name=name, owner=owner, restricted=restricted)
        self._names[name] = record
        return record

    def resolve(self, name: str) -> Optional[NameRecord]:
        return self._names.get(name)

    def copy(self) -> "NameRegistry":
        clone = NameRegistry()
        clone._names = dict(self._names)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        return {n: r.to_dict() for n, r in sorted(self._names.items())}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NameRegistry":
        registry = cls()
        for name, r in data.items():
            registry._names[name] = NameRecord(name=name, owner=r["owner"], restricted=r["restricted"])
        return registry


# =============================================================================
# LOCAL HOST
# =============================================================================

class LocalHost:
    """
    Runs contract invocations as atomic transactions over in-memory state.

    Usage:
        host = LocalHost()
        host.instantiate("admin", InstantiateMsg("Group", "approval.pb", False))
        host.execute("member", ApproveMembership(group_id=1))
        state = host.query_state()
    """

    def __init__(
        self,
        contract_address: str = "contract",
        build: Optional[BuildInfo] = None,
        settings: Optional[ContractSettings] = None,
        storage: Optional[MemoryStorage] = None,
        claims: Optional[InMemoryClaimStore] = None,
        names: Optional[NameRegistry] = None,
        block_height: int = 0,
    ):
        self.contract_address = contract_address
        self.build = build or BuildInfo.current()
        self.settings = settings or get_settings()
        self.storage = storage if storage is not None else MemoryStorage()
        self.claims = claims if claims is not None else InMemoryClaimStore()
        self.names = names if names is not None else NameRegistry()
        self.block_height = block_height

    @property
    def instantiated(self) -> bool:
        return has_contract_state(self.storage)

    def _env(self) -> Env:
        return Env(contract_address=self.contract_address, block_height=self.block_height + 1)

    def _apply(self, directive: Any, claims: InMemoryClaimStore, names: NameRegistry) -> None:
        if isinstance(directive, WriteClaim):
            claims.write_claim(directive.holder, directive.tag, directive.value, directive.kind)
        elif isinstance(directive, BindNamespace):
            names.bind(directive.name, directive.owner, directive.restricted)
        else:
            raise HostError(f"unsupported directive {type(directive).__name__}")

    def _transact(self, operation: str, run: Callable[[Deps, Env], T], build: Optional[BuildInfo] = None) -> T:
        """Run ``run`` against staged state and commit only on full success."""
        storage = self.storage.copy()
        claims = self.claims.copy()
        names = self.names.copy()
        deps = Deps(storage=storage, claims=claims, build=build or self.build, settings=self.settings)
        env = self._env()

        try:
            result = run(deps, env)
            if isinstance(result, Response):
                for directive in result.messages:
                    self._apply(directive, claims, names)
        except (ContractError, HostError) as e:
            logger.warning(
                f"Transaction {operation} reverted",
                error_code=e.kind.value if isinstance(e, ContractError) else "host",
                operation_name=operation,
                reason=str(e),
            )
            raise
        except Exception as e:
            logger.error(
                f"Transaction {operation} reverted by unexpected error",
                error_code="internal",
                exc_info=True,
                operation_name=operation,
                reason=str(e),
            )
            raise

        self.storage = storage
        self.claims = claims
        self.names = names
        self.block_height = env.block_height
        if build is not None:
            self.build = build
        logger.debug(f"Transaction {operation} committed", block_height=self.block_height)
        return result

    # -------------------------------------------------------------------------
    # Message delivery
    # -------------------------------------------------------------------------

    def instantiate(self, sender: str, msg: Any, funds: Iterable[Coin] = ()) -> Response:
        if self.instantiated:
            raise HostError(f"contract [{self.contract_address}] is already instantiated")
        info = MessageInfo(sender=sender, funds=list(funds))
        return self._transact(
            "instantiate",
            lambda deps, env: entrypoints.instantiate(deps, env, info, msg),
        )

    def execute(self, sender: str, msg: Any, funds: Iterable[Coin] = ()) -> Response:
        info = MessageInfo(sender=sender, funds=list(funds))
        return self._transact(
            "execute",
            lambda deps, env: entrypoints.execute(deps, env, info, msg),
        )

    def query(self, msg: Any = None) -> bytes:
        """Queries run against committed state and never commit anything."""
        deps = Deps(storage=self.storage, claims=self.claims, build=self.build, settings=self.settings)
        return entrypoints.query(deps, self._env(), msg if msg is not None else ContractStateQuery())

    def query_state(self) -> Dict[str, Any]:
        return json.loads(self.query().decode("utf-8"))

    def migrate(self, build: Optional[BuildInfo] = None, msg: Any = None) -> Response:
        """Migrate to ``build`` (the new code). The host keeps it on success."""
        msg = msg if msg is not None else ContractUpgrade()
        return self._transact(
            "migrate",
            lambda deps, env: entrypoints.migrate(deps, env, msg),
            build=build,
        )

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """A JSON-serializable image of the committed state."""
        return {
            "contract_address": self.contract_address,
            "block_height": self.block_height,
            "build": self.build.to_dict(),
            "storage": {
                base64.b64encode(k).decode("ascii"): base64.b64encode(v).decode("ascii")
                for k, v in sorted(self.storage.items())
            },
            "claims": self.claims.to_dict(),
            "names": self.names.to_dict(),
        }

    @classmethod
    def restore(cls, data: Dict[str, Any], settings: Optional[ContractSettings] = None) -> "LocalHost":
        try:
            storage = MemoryStorage({
                base64.b64decode(k): base64.b64decode(v)
                for k, v in data.get("storage", {}).items()
            })
            build = data.get("build")
            return cls(
                contract_address=data["contract_address"],
                build=BuildInfo(**build) if build else None,
                settings=settings,
                storage=storage,
                claims=InMemoryClaimStore.from_dict(data.get("claims", {})),
                names=NameRegistry.from_dict(data.get("names", {})),
                block_height=data.get("block_height", 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise HostError(f"invalid host snapshot: {e}") from e
