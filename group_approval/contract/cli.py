#!/usr/bin/env python3
"""
Group Approval CLI

Drives a contract instance on a LocalHost whose committed state lives in a
JSON file, so the whole lifecycle can be exercised from a shell.

Usage:
    group-approval [--state FILE] [--format json|yaml] <command> [options]

Commands:
    instantiate   Create the contract state
    approve       Approve membership in a group for a sender
    query         Show the stored contract state
    migrate       Upgrade the stored state to a new build
    claims        List a holder's claims
    resolve       Show the binding of a name
    config        Configuration management (show, validate, schema)

approve, query and migrate accept --contract-name to address the contract by
a bound name, which must resolve to the contract in the state file.

Contract errors are printed as structured JSON on stderr and exit with 1.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import re
import sys
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

import yaml

from group_approval import __version__
from group_approval.contract.claims import ClaimValueKind, decode_int_value
from group_approval.contract.config import BuildInfo, ConfigError, get_config_manager
from group_approval.contract.context import Coin
from group_approval.contract.errors import ContractError, HostError
from group_approval.contract.host import LocalHost
from group_approval.contract.msg import InstantiateMsg
from group_approval.contract.observability import ContractLayer, get_logger

logger = get_logger("cli", ContractLayer.CLI)

DEFAULT_STATE_FILE = "group-approval-state.json"

COIN_RE = re.compile(r"^(\d+)([a-zA-Z][a-zA-Z0-9/:._-]*)$")


class OutputFormat(Enum):
    """Output format options."""
    JSON = "json"
    YAML = "yaml"


class CLIError(Exception):
    """CLI error with exit code."""
    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def format_output(data: Any, fmt: OutputFormat = OutputFormat.JSON) -> str:
    """Format data for output."""
    if fmt == OutputFormat.YAML:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    return json.dumps(data, indent=2, default=str)


def parse_coin(text: str) -> Coin:
    """Parse ``<amount><denom>``, e.g. ``100nhash``."""
    m = COIN_RE.match(text.strip())
    if not m:
        raise CLIError(f"invalid coin [{text}], expected <amount><denom>")
    return Coin(denom=m.group(2), amount=int(m.group(1)))


def _decode_data(data: Optional[str]) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return data


class GroupApprovalCLI:
    """Main CLI application."""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="group-approval",
            description="Group member approval contract on a local host",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.parser.add_argument(
            "--version", "-V",
            action="version",
            version=f"group-approval {__version__}",
        )
        self.parser.add_argument(
            "--format", "-f",
            choices=["json", "yaml"],
            default="json",
            help="Output format (default: json)",
        )
        self.parser.add_argument(
            "--state", "-s",
            default=DEFAULT_STATE_FILE,
            help=f"Host state file (default: {DEFAULT_STATE_FILE})",
        )
        self.parser.add_argument(
            "--config", "-c",
            help="YAML configuration file",
        )
        self.parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress error output",
        )

        self.subparsers = self.parser.add_subparsers(dest="command", help="Commands")
        self._register_commands()

    def _register_commands(self) -> None:
        """Register all commands."""
        self._register_contract_commands()
        self._register_config_commands()

    def _register_contract_commands(self) -> None:
        """Register contract lifecycle commands."""
        instantiate = self.subparsers.add_parser("instantiate", help="Create the contract state")
        instantiate.add_argument("--sender", required=True, help="Instantiating account (becomes admin)")
        instantiate.add_argument("--label", required=True, help="Contract label")
        instantiate.add_argument("--claim-tag", required=True, help="Claim tag used for approvals")
        instantiate.add_argument("--bind-namespace", action="store_true", help="Bind the claim tag to the contract")
        instantiate.add_argument("--contract-address", help="Contract address for a new state file")
        instantiate.add_argument("--funds", nargs="*", default=[], help="Attached funds, e.g. 100nhash")

        approve = self.subparsers.add_parser("approve", help="Approve group membership")
        approve.add_argument("--sender", required=True, help="Approving account")
        approve.add_argument("--group-id", required=True, help="Group id (u64)")
        approve.add_argument("--funds", nargs="*", default=[], help="Attached funds, e.g. 100nhash")

        query = self.subparsers.add_parser("query", help="Show the stored contract state")

        migrate = self.subparsers.add_parser("migrate", help="Upgrade to a new build")
        migrate.add_argument("--contract-version", help="Version of the new build (default: this package)")
        migrate.add_argument("--contract-kind", help="Kind of the new build (default: this package)")

        claims = self.subparsers.add_parser("claims", help="List a holder's claims")
        claims.add_argument("--holder", required=True, help="Claim holder")
        claims.add_argument("--tag", help="Only claims with this tag")

        resolve = self.subparsers.add_parser("resolve", help="Show the binding of a name")
        resolve.add_argument("name", help="Bound name, e.g. groupapproval.pb")

        for sub in (approve, query, migrate):
            sub.add_argument(
                "--contract-name",
                help="Address the contract by a bound name; must resolve to the contract in the state file",
            )

    def _register_config_commands(self) -> None:
        """Register config subcommands."""
        config = self.subparsers.add_parser("config", help="Configuration management")
        config_sub = config.add_subparsers(dest="subcommand")

        # config show
        config_sub.add_parser("show", help="Show all configuration")

        # config validate
        config_sub.add_parser("validate", help="Validate configuration")

        # config schema
        config_sub.add_parser("schema", help="Export configuration schema")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            fmt = OutputFormat(parsed.format)
            manager = get_config_manager()
            manager.load_defaults()
            if parsed.config:
                manager.load_from_file(parsed.config)
            result = self._dispatch(parsed)

            if result is not None:
                print(format_output(result, fmt))

            return 0

        except ContractError as e:
            if not parsed.quiet:
                print(json.dumps({"error": e.to_dict()}, indent=2, default=str), file=sys.stderr)
            return 1

        except (CLIError, HostError, ConfigError) as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return getattr(e, "exit_code", 1)

    def _dispatch(self, args: argparse.Namespace) -> Any:
        """Dispatch command to handler."""
        cmd = args.command
        subcmd = getattr(args, "subcommand", None)

        handler_name = f"_handle_{cmd}_{subcmd}" if subcmd else f"_handle_{cmd}"
        handler = getattr(self, handler_name, None)

        if handler is None:
            raise CLIError(f"Unknown command: {cmd} {subcmd or ''}")

        return handler(args)

    # -------------------------------------------------------------------------
    # State file
    # -------------------------------------------------------------------------

    def _load_host(self, args: argparse.Namespace, contract_address: Optional[str] = None) -> LocalHost:
        path = Path(args.state)
        if not path.exists():
            return LocalHost(contract_address=contract_address or "contract")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CLIError(f"State file {path} is not valid JSON: {e}") from e
        return LocalHost.restore(data)

    def _load_contract(self, args: argparse.Namespace) -> LocalHost:
        """Load the host, checking ``--contract-name`` against its contract address."""
        host = self._load_host(args)
        name = getattr(args, "contract_name", None)
        if name:
            record = host.names.resolve(name)
            if record is None:
                raise CLIError(f"name [{name}] is not bound")
            if record.owner != host.contract_address:
                raise CLIError(
                    f"name [{name}] resolves to [{record.owner}], "
                    f"not to contract [{host.contract_address}]"
                )
        return host

    def _save_host(self, args: argparse.Namespace, host: LocalHost) -> None:
        path = Path(args.state)
        path.write_text(json.dumps(host.snapshot(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
        logger.debug("Host state saved", path=str(path), block_height=host.block_height)

    # Contract handlers
    def _handle_instantiate(self, args: argparse.Namespace) -> Any:
        host = self._load_host(args, contract_address=args.contract_address)
        msg = InstantiateMsg(label=args.label, claim_tag=args.claim_tag, bind_namespace=args.bind_namespace)
        response = host.instantiate(args.sender, msg, funds=[parse_coin(f) for f in args.funds])
        self._save_host(args, host)
        return response.to_dict()

    def _handle_approve(self, args: argparse.Namespace) -> Any:
        host = self._load_contract(args)
        response = host.execute(
            args.sender,
            {"approve_membership": {"group_id": args.group_id}},
            funds=[parse_coin(f) for f in args.funds],
        )
        self._save_host(args, host)
        return response.to_dict()

    def _handle_query(self, args: argparse.Namespace) -> Any:
        return self._load_contract(args).query_state()

    def _handle_migrate(self, args: argparse.Namespace) -> Any:
        host = self._load_contract(args)
        current = BuildInfo.current()
        build = BuildInfo(
            contract_kind=args.contract_kind or current.contract_kind,
            contract_version=args.contract_version or current.contract_version,
        )
        response = host.migrate(build)
        self._save_host(args, host)
        result = response.to_dict()
        result["data"] = _decode_data(result["data"])
        return result

    def _handle_claims(self, args: argparse.Namespace) -> Any:
        host = self._load_host(args)
        claims = []
        for claim in host.claims.claims_for(args.holder, args.tag):
            entry = claim.to_dict()
            if claim.kind is ClaimValueKind.INT:
                entry["group_id"] = decode_int_value(claim.value)
            claims.append(entry)
        return {"holder": args.holder, "claims": claims, "count": len(claims)}

    def _handle_resolve(self, args: argparse.Namespace) -> Any:
        record = self._load_host(args).names.resolve(args.name)
        if record is None:
            raise CLIError(f"name [{args.name}] is not bound")
        return dict(name=record.name, **record.to_dict())

    # Config handlers
    def _handle_config_show(self, args: argparse.Namespace) -> Any:
        return get_config_manager().settings.to_dict()

    def _handle_config_validate(self, args: argparse.Namespace) -> Any:
        errors = get_config_manager().validate()
        return {"valid": len(errors) == 0, "errors": errors}

    def _handle_config_schema(self, args: argparse.Namespace) -> Any:
        return get_config_manager().export_schema()


def main() -> int:
    """CLI entry point."""
    cli = GroupApprovalCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
