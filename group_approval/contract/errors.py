"""
Contract Error Taxonomy

Every failure a handler can produce is a ContractError subclass carrying a
discriminant (ErrorKind) and its own structured fields, so callers branch on
``err.kind`` or ``isinstance`` rather than on message text.

    ContractError
    ├── ValidationError        empty or malformed required input
    ├── FundsError             funds attached where none are allowed
    ├── DuplicateClaimError    sender already holds a matching claim
    ├── MigrationError         migration rejected
    │   ├── KindMismatchError      stored kind differs from running kind
    │   ├── VersionTooLowError     running version is not strictly newer
    │   └── VersionParseError      version string is not semantic
    ├── StorageError           persisted record missing or unreadable
    └── FormatError            malformed hierarchical namespace name

Host-level failures (a directive the host cannot apply, an unreachable claim
store) are not contract errors. They derive from HostError and abort the
whole invocation at the host boundary.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict


class ErrorKind(Enum):
    """Discriminant for contract failures."""
    VALIDATION = "validation"
    FUNDS = "funds"
    DUPLICATE_CLAIM = "duplicate_claim"
    MIGRATION = "migration"
    STORAGE = "storage"
    FORMAT = "format"


class ContractError(Exception):
    """Base exception for all contract failures."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def fields(self) -> Dict[str, Any]:
        """Structured fields specific to the error variant."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            **self.fields(),
        }


class ValidationError(ContractError):
    """A required input is empty or malformed."""

    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {message}")

    def fields(self) -> Dict[str, Any]:
        return {"field": self.field}


class FundsError(ContractError):
    """Funds were attached to a route that accepts none."""

    kind = ErrorKind.FUNDS

    def __init__(self, message: str = "route requires no funds be present"):
        super().__init__(message)


class DuplicateClaimError(ContractError):
    """The sender already holds a claim for the requested group."""

    kind = ErrorKind.DUPLICATE_CLAIM

    def __init__(self, group_id: int, sender: str):
        self.group_id = group_id
        self.sender = sender
        super().__init__(
            f"group with id [{group_id}] has already been approved by member [{sender}]"
        )

    def fields(self) -> Dict[str, Any]:
        return {"group_id": str(self.group_id), "sender": self.sender}


class MigrationError(ContractError):
    """A migration was rejected."""

    kind = ErrorKind.MIGRATION


class KindMismatchError(MigrationError):
    """The running build belongs to a different contract family."""

    def __init__(self, running_kind: str, stored_kind: str):
        self.running_kind = running_kind
        self.stored_kind = stored_kind
        super().__init__(
            f"target migration contract type [{running_kind}] does not match "
            f"stored contract type [{stored_kind}]"
        )

    def fields(self) -> Dict[str, Any]:
        return {"running_kind": self.running_kind, "stored_kind": self.stored_kind}


class VersionTooLowError(MigrationError):
    """The running version does not strictly exceed the stored version."""

    def __init__(self, running_version: str, stored_version: str):
        self.running_version = running_version
        self.stored_version = stored_version
        super().__init__(
            f"target migration contract version [{running_version}] is too low to use. "
            f"stored contract version is [{stored_version}]"
        )

    def fields(self) -> Dict[str, Any]:
        return {
            "running_version": self.running_version,
            "stored_version": self.stored_version,
        }


class VersionParseError(MigrationError):
    """A version string is not a valid semantic version."""

    def __init__(self, value: str, reason: str = "not a valid semantic version"):
        self.value = value
        super().__init__(f"invalid version [{value}]: {reason}")

    def fields(self) -> Dict[str, Any]:
        return {"value": self.value}


class StorageError(ContractError):
    """The persisted record could not be read or written."""

    kind = ErrorKind.STORAGE

    def __init__(self, message: str, key: str = ""):
        self.key = key
        super().__init__(f"Contract storage error occurred: {message}")

    def fields(self) -> Dict[str, Any]:
        return {"key": self.key} if self.key else {}


class FormatError(ContractError):
    """A hierarchical namespace name is malformed."""

    kind = ErrorKind.FORMAT

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"invalid name [{name}]: {message}")

    def fields(self) -> Dict[str, Any]:
        return {"name": self.name}


# =============================================================================
# HOST-LEVEL ERRORS
# =============================================================================

class HostError(Exception):
    """Failure raised by the host while applying an invocation's effects."""
    pass


class NamespaceTakenError(HostError):
    """A namespace binding collides with an existing owner."""

    def __init__(self, name: str, owner: str):
        self.name = name
        self.owner = owner
        super().__init__(f"name [{name}] is already bound to [{owner}]")


class ClaimStoreError(HostError):
    """The external claim store could not serve a request."""
    pass
