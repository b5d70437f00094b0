"""
Input Validation

Validators for message inputs received from the host. All inputs are
untrusted until validated; every handler runs its checks before touching
storage, so the first failing check aborts the invocation with no effects.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional

from group_approval.contract.errors import FundsError, ValidationError

if TYPE_CHECKING:
    from group_approval.contract.context import MessageInfo


UINT64_MAX = 2**64 - 1


# =============================================================================
# VALIDATION RESULT
# =============================================================================

@dataclass
class ValidationResult:
    """Result of a validation operation."""
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    sanitized_value: Any = None

    def raise_if_invalid(self) -> None:
        """Raise the first ValidationError if validation failed."""
        if not self.is_valid:
            raise self.errors[0]

    @classmethod
    def success(cls, sanitized_value: Any = None) -> "ValidationResult":
        return cls(is_valid=True, sanitized_value=sanitized_value)

    @classmethod
    def failure(cls, errors: List[ValidationError]) -> "ValidationResult":
        return cls(is_valid=False, errors=errors)


# =============================================================================
# INPUT VALIDATORS
# =============================================================================

class Validators:
    """Collection of input validators."""

    MAX_STRING_LENGTH = 4096

    @classmethod
    def validate_string(
        cls,
        value: Any,
        field_name: str,
        min_length: int = 1,
        max_length: Optional[int] = None,
    ) -> ValidationResult:
        """Validate a required string value.

        The value is returned unchanged; only its presence and length are
        checked. Names are stored exactly as supplied.
        """
        max_length = max_length or cls.MAX_STRING_LENGTH
        errors = []

        if not isinstance(value, str):
            errors.append(ValidationError(field_name, f"Expected string, got {type(value).__name__}", value))
            return ValidationResult.failure(errors)

        if len(value) < min_length:
            errors.append(ValidationError(field_name, "must not be empty", value))

        if len(value) > max_length:
            errors.append(ValidationError(field_name, f"Too long (max {max_length} chars)", value))

        if errors:
            return ValidationResult.failure(errors)
        return ValidationResult.success(value)

    @classmethod
    def validate_uint64(cls, value: Any, field_name: str) -> ValidationResult:
        """Validate an unsigned 64-bit integer.

        Accepts ints and decimal digit strings (the wire form of a u64).
        Booleans are rejected even though they are ints in Python.
        """
        if isinstance(value, bool):
            return ValidationResult.failure([
                ValidationError(field_name, "Expected unsigned integer, got bool", value)
            ])

        if isinstance(value, str):
            if not value.isdigit() or not value.isascii():
                return ValidationResult.failure([
                    ValidationError(field_name, "Expected decimal digits", value)
                ])
            value = int(value)

        if not isinstance(value, int):
            return ValidationResult.failure([
                ValidationError(field_name, f"Expected unsigned integer, got {type(value).__name__}", value)
            ])

        if value < 0 or value > UINT64_MAX:
            return ValidationResult.failure([
                ValidationError(field_name, f"Out of range for uint64: {value}", value)
            ])

        return ValidationResult.success(value)


def check_funds_are_empty(info: "MessageInfo") -> None:
    """Reject any invocation that carries funds.

    The contract keeps no ledger of received coin, so anything sent would be
    unrecoverable.
    """
    if info.funds:
        raise FundsError()
