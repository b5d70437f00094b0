"""
Contract Observability

Structured logging for contract invocations. Every log line carries the
correlation id of the invocation that produced it, the contract layer, and
keyword context, so one message can be followed from entry point through
the claim store to the emitted directives.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                    Handler Code                          │
    │  logger.info("msg", sender=x)   @timed_operation(...)    │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │                    ContractLogger                        │
    │  Correlation IDs, layer tagging, structured context     │
    └───────────────────────┬─────────────────────────────────┘
                            │
    ┌───────────────────────▼─────────────────────────────────┐
    │          StructuredHandler (JSON) │ text handler        │
    └─────────────────────────────────────────────────────────┘

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import contextvars
import functools
import json
import logging
import sys
import time
import traceback
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar

from group_approval.contract.config import get_settings
from group_approval.contract.errors import ContractError

# Context variable for invocation-scoped data
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


class ContractLayer(Enum):
    """Contract layers for categorization."""
    INSTANTIATE = "instantiate"
    EXECUTE = "execute"
    QUERY = "query"
    MIGRATE = "migrate"
    STORE = "store"
    CLAIMS = "claims"
    NAMES = "names"
    HOST = "host"
    CONFIG = "config"
    CLI = "cli"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    correlation_id: str = ""
    layer: str = ""
    operation: str = ""
    duration_ms: Optional[float] = None
    error_code: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class StructuredHandler(logging.Handler):
    """Logging handler that outputs structured JSON."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = LogEvent(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
                correlation_id=correlation_id_var.get(),
                layer=getattr(record, "layer", ""),
                operation=getattr(record, "operation", ""),
                duration_ms=getattr(record, "duration_ms", None),
                error_code=getattr(record, "error_code", ""),
                context=getattr(record, "context", {}),
            )

            if record.exc_info:
                event.exception = "".join(traceback.format_exception(*record.exc_info))

            stream = self.stream or sys.stderr
            stream.write(event.to_json() + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def _build_handler() -> logging.Handler:
    if get_settings().observability.structured_logs.get():
        return StructuredHandler()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    return handler


class ContractLogger:
    """
    Structured logger for contract components.

    Automatically includes the correlation id and layer information in
    all log events.
    """

    def __init__(self, name: str, layer: ContractLayer, level: Optional[str] = None):
        self.name = name
        self.layer = layer
        self._logger = logging.getLogger(f"group_approval.{layer.value}.{name}")
        level = level or get_settings().observability.log_level.get()
        self._logger.setLevel(getattr(logging, level.upper()))

        if not any(getattr(h, "_contract_handler", False) for h in self._logger.handlers):
            handler = _build_handler()
            handler._contract_handler = True  # type: ignore[attr-defined]
            self._logger.addHandler(handler)

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        error_code: str = "",
        duration_ms: Optional[float] = None,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        """Internal log method."""
        extra = {
            "layer": self.layer.value,
            "operation": operation,
            "error_code": error_code,
            "duration_ms": duration_ms,
            "context": context,
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, error_code: str = "", exc_info: bool = False, **context: Any) -> None:
        self._log(logging.WARNING, message, error_code=error_code, exc_info=exc_info, **context)

    def error(
        self,
        message: str,
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._log(logging.ERROR, message, error_code=error_code, exc_info=exc_info, **context)

    def operation(
        self,
        name: str,
        duration_ms: float,
        success: bool = True,
        error_code: str = "",
        **context: Any,
    ) -> None:
        """Log an operation completion."""
        level = logging.INFO if success else logging.WARNING
        status = "completed" if success else "failed"
        self._log(
            level,
            f"Operation {name} {status}",
            operation=name,
            duration_ms=duration_ms,
            error_code=error_code,
            **context,
        )


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return f"corr-{uuid.uuid4().hex[:12]}"


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """Set the correlation ID for the current context."""
    return correlation_id_var.set(correlation_id)


def get_correlation_id() -> str:
    """Get the current correlation ID, creating one if unset."""
    cid = correlation_id_var.get()
    if not cid:
        cid = generate_correlation_id()
        correlation_id_var.set(cid)
    return cid


def get_logger(name: str, layer: ContractLayer) -> ContractLogger:
    """Get a logger for a contract component."""
    return ContractLogger(name, layer)


T = TypeVar("T")


def timed_operation(
    logger: ContractLogger,
    operation_name: str,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for timing and logging operations.

    Contract errors are logged with their kind as the error code and
    re-raised unchanged.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.monotonic()
            success = True
            error_code = ""
            try:
                return func(*args, **kwargs)
            except ContractError as e:
                success = False
                error_code = e.kind.value
                raise
            except Exception:
                success = False
                error_code = "internal"
                raise
            finally:
                duration_ms = (time.monotonic() - start) * 1000
                logger.operation(operation_name, duration_ms, success, error_code=error_code)
        return wrapper
    return decorator
