"""
Group Member Approval Contract

Lets an account self-attest membership in a group by writing a tagged
integer claim under its own identity. The contract keeps one persisted
record, refuses duplicate approvals, and only accepts upgrades to a strictly
newer build of the same contract kind.

Architecture
────────────

    ┌─────────────────────────────────────────────────────────────────────────┐
    │                              HOST (external)                             │
    │    delivers one message at a time, applies directives, commits/reverts  │
    └───────────────────────────────────┬─────────────────────────────────────┘
                                        │
    ┌───────────────────────────────────▼─────────────────────────────────────┐
    │  ENTRY POINTS        entrypoints.py   instantiate/execute/query/migrate │
    │                                                                          │
    │  HANDLERS            instantiate.py   Uninitialized → Active(v0)        │
    │                      approval.py      Active(v) → Active(v) + claim     │
    │                      migration.py     Active(v) → Active(v'), v' > v    │
    │                      query.py         read-only state projection        │
    │                                                                          │
    │  SUPPORT             storage.py       singleton ContractState record    │
    │                      claims.py        claims port, pagination, filter   │
    │                      semver.py        semantic version precedence       │
    │                      names.py         hierarchical name helper          │
    │                      msg.py           typed messages, schema parsing    │
    │                      response.py      attributes and directives         │
    │                                                                          │
    │  AMBIENT             config.py  observability.py  errors.py            │
    │                      hardening.py  context.py                           │
    └─────────────────────────────────────────────────────────────────────────┘

    host.py   LocalHost, an in-memory transactional host for tests and tools
    cli.py    the ``group-approval`` command

Copyright (c) 2026 Momentum. All rights reserved.
"""


# Lazy imports to avoid circular dependencies
def __getattr__(name):
    """Lazy import contract modules on first access."""

    # Messages
    if name in ("InstantiateMsg", "ApproveMembership", "ContractStateQuery",
                "ContractUpgrade", "ExecuteMsg", "QueryMsg", "MigrateMsg",
                "parse_instantiate_msg", "parse_execute_msg", "parse_query_msg",
                "parse_migrate_msg"):
        from group_approval.contract import msg
        return getattr(msg, name)

    # Errors
    if name in ("ErrorKind", "ContractError", "ValidationError", "FundsError",
                "DuplicateClaimError", "MigrationError", "KindMismatchError",
                "VersionTooLowError", "VersionParseError", "StorageError",
                "FormatError", "HostError", "NamespaceTakenError", "ClaimStoreError"):
        from group_approval.contract import errors
        return getattr(errors, name)

    # State
    if name in ("ContractState", "Storage", "MemoryStorage", "get_contract_state",
                "set_contract_state"):
        from group_approval.contract import storage
        return getattr(storage, name)

    # Claims
    if name in ("ClaimsPort", "ClaimPage", "ExternalClaim", "ClaimValueKind",
                "filter_claims", "get_group_id_values", "fetch_all_claims"):
        from group_approval.contract import claims
        return getattr(claims, name)

    # Context and build identity
    if name in ("Coin", "MessageInfo", "Env", "Deps"):
        from group_approval.contract import context
        return getattr(context, name)
    if name in ("BuildInfo", "CONTRACT_KIND", "CONTRACT_VERSION"):
        from group_approval.contract import config
        return getattr(config, name)

    # Local host
    if name in ("LocalHost", "InMemoryClaimStore", "NameRegistry"):
        from group_approval.contract import host
        return getattr(host, name)

    raise AttributeError(f"module 'group_approval.contract' has no attribute '{name}'")


__all__ = [
    # Messages
    "InstantiateMsg",
    "ApproveMembership",
    "ContractStateQuery",
    "ContractUpgrade",
    # Errors
    "ContractError",
    "ValidationError",
    "FundsError",
    "DuplicateClaimError",
    "MigrationError",
    "StorageError",
    "FormatError",
    # State and host
    "ContractState",
    "BuildInfo",
    "LocalHost",
]
