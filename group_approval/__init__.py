"""Group Member Approval — v1.0.0

A deterministic contract that lets an account self-attest membership in a
group by writing a tagged claim under its own identity, with duplicate
protection and version-gated upgrades of the persisted configuration.

Architecture:
    group_approval/
    ├── __init__.py      # Package entry, version
    ├── core.py          # Primitives: canonical JSON, YAML/JSON loading
    ├── schema.py        # JSON Schema validation for message payloads
    ├── schemas/         # Message and state schemas
    └── contract/        # The contract subsystem (handlers, store, ports)

The host that delivers messages and executes outbound directives is
external. ``group_approval.contract.host.LocalHost`` stands in for it in
tests and in the ``group-approval`` command-line tool.
"""

__version__ = "1.0.0"

from group_approval.core import (
    load_yaml,
    load_json,
    canonical_json_bytes,
    PACKAGE_ROOT,
)

__all__ = [
    "__version__",
    "load_yaml",
    "load_json",
    "canonical_json_bytes",
    "PACKAGE_ROOT",
]
