"""
Contract State Store

The contract persists exactly one record, ContractState, under the fixed
``contract_state`` key. It exists if and only if instantiation succeeded.

    admin             account that instantiated the contract (write-once)
    claim_tag         claim name used for every membership write (write-once)
    label             free-form instance name (write-once, cosmetic)
    contract_kind     build-fixed contract family identifier
    contract_version  semantic version; only raised by migration

Records are encoded as canonical JSON and validated against
``contract-state.schema.json`` on both read and write, so a corrupt or
foreign record surfaces as StorageError instead of a half-loaded object.
Writes additionally require contract_version to be a semantic version;
reads do not, so migration can report a malformed stored version.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Iterator, Optional, Tuple

from group_approval.core import canonical_json_bytes
from group_approval.contract.config import BuildInfo
from group_approval.contract.errors import StorageError
from group_approval.contract.semver import is_valid_version
from group_approval.schema import CONTRACT_STATE_SCHEMA, validate_against_schema


NAMESPACE_CONTRACT_STATE = "contract_state"


# =============================================================================
# RAW STORAGE
# =============================================================================

class Storage(ABC):
    """Byte-oriented key/value storage provided by the host."""

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value under ``key`` or None."""

    @abstractmethod
    def set(self, key: bytes, value: bytes) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def remove(self, key: bytes) -> None:
        """Delete ``key`` if present."""

    @abstractmethod
    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate over all entries in key order."""


class MemoryStorage(Storage):
    """Dictionary-backed storage."""

    def __init__(self, data: Optional[Dict[bytes, bytes]] = None):
        self._data: Dict[bytes, bytes] = dict(data or {})

    def get(self, key: bytes) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove(self, key: bytes) -> None:
        self._data.pop(key, None)

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        for key in sorted(self._data):
            yield key, self._data[key]

    def copy(self) -> "MemoryStorage":
        return MemoryStorage(self._data)

    def __len__(self) -> int:
        return len(self._data)


# =============================================================================
# CONTRACT STATE
# =============================================================================

@dataclass(frozen=True)
class ContractState:
    """The contract's singleton configuration record."""
    admin: str
    claim_tag: str
    label: str
    contract_kind: str
    contract_version: str

    @classmethod
    def new(cls, admin: str, claim_tag: str, label: str, build: BuildInfo) -> "ContractState":
        """Create a record stamped with the running build's kind and version."""
        return cls(
            admin=admin,
            claim_tag=claim_tag,
            label=label,
            contract_kind=build.contract_kind,
            contract_version=build.contract_version,
        )

    def with_version(self, contract_version: str) -> "ContractState":
        return replace(self, contract_version=contract_version)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_bytes(self) -> bytes:
        return canonical_json_bytes(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> "ContractState":
        errors = validate_against_schema(data, CONTRACT_STATE_SCHEMA)
        if errors:
            raise StorageError(f"invalid contract state record: {errors[0]}", key=NAMESPACE_CONTRACT_STATE)
        return cls(**data)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ContractState":
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"undecodable contract state record: {e}", key=NAMESPACE_CONTRACT_STATE) from e
        return cls.from_dict(data)


def set_contract_state(storage: Storage, state: ContractState) -> None:
    """Persist the contract state record."""
    errors = validate_against_schema(state.to_dict(), CONTRACT_STATE_SCHEMA)
    if errors:
        raise StorageError(f"refusing to store invalid contract state: {errors[0]}", key=NAMESPACE_CONTRACT_STATE)
    if not is_valid_version(state.contract_version):
        raise StorageError(
            f"refusing to store invalid contract state: contract_version [{state.contract_version!r}] "
            "is not a semantic version",
            key=NAMESPACE_CONTRACT_STATE,
        )
    storage.set(NAMESPACE_CONTRACT_STATE.encode("utf-8"), state.to_bytes())


def get_contract_state(storage: Storage) -> ContractState:
    """Load the contract state record.

    Raises:
        StorageError: if the contract has not been instantiated or the record
            cannot be decoded.
    """
    raw = storage.get(NAMESPACE_CONTRACT_STATE.encode("utf-8"))
    if raw is None:
        raise StorageError("contract state not found; contract is not instantiated", key=NAMESPACE_CONTRACT_STATE)
    return ContractState.from_bytes(raw)


def has_contract_state(storage: Storage) -> bool:
    return storage.get(NAMESPACE_CONTRACT_STATE.encode("utf-8")) is not None
