#!/usr/bin/env python3
"""
Unified CLI for the OP Stack conformance checker.

Examples:
  - Check a block is pre-Canyon (default) on OP mainnet
    opstack-conformance check --number 111253022

  - Check a block is post-Canyon, base fee only, goerli elasticity
    opstack-conformance check --number 17000000 --post-canyon --only fees --network goerli

  - Capture a block for offline replay, then replay it
    opstack-conformance capture --number 111253022 --output canyon.json
    opstack-conformance check --number 111253022 --fixture output/canyon.json

Exit codes: 0 conformant, 1 nonconformant, 2 inconclusive (RPC/data or usage).
"""

import argparse
import sys
from typing import List, Optional

from opstack_conformance.commands.helpers import (
    EXIT_NONCONFORMANT,
    EXIT_OK,
    handle_command_error,
)
from opstack_conformance.commands.validation import (
    validate_block_number,
    validate_elasticity,
    validate_rpc_url,
)
from opstack_conformance.conformance.checker import ConformanceChecker
from opstack_conformance.conformance.results import (
    BASE_FEE,
    RECEIPTS_ROOT,
    ErrorSeverity,
)
from opstack_conformance.conformance.source import (
    ChainDataSource,
    StaticChainSource,
    build_fixture,
)
from opstack_conformance.shared.constants import GlobalConstants
from opstack_conformance.shared.logging import get_logger, set_level
from opstack_conformance.shared.services.web3_service import Web3ChainSource
from opstack_conformance.shared.types import RuleVariant
from opstack_conformance.utils.formatters import (
    console,
    create_summary_table,
    generate_timestamped_filename,
    save_json_output,
)

_logger = get_logger(__name__)

_CHECK_NAMES = {
    "receipts": [RECEIPTS_ROOT],
    "fees": [BASE_FEE],
    "all": [RECEIPTS_ROOT, BASE_FEE],
}

_SEVERITY_MARKS = {
    ErrorSeverity.CRITICAL: "[bold red]✗[/bold red]",
    ErrorSeverity.ERROR: "[yellow]![/yellow]",
}


def _resolve_elasticity(args: argparse.Namespace) -> int:
    if args.elasticity is not None:
        return validate_elasticity(args.elasticity)
    if args.network:
        return GlobalConstants.get_elasticity(args.network)
    return validate_elasticity(GlobalConstants.DEFAULT_ELASTICITY)


def _build_source(args: argparse.Namespace) -> ChainDataSource:
    if getattr(args, "fixture", None):
        return StaticChainSource.from_fixture(args.fixture)
    return Web3ChainSource(validate_rpc_url(args.rpc_url))


def cmd_check(args: argparse.Namespace) -> int:
    number = validate_block_number(args.number)
    elasticity = _resolve_elasticity(args)
    variant = RuleVariant.from_pre_upgrade(args.pre_canyon)

    checker = ConformanceChecker(_build_source(args), elasticity=elasticity)
    _logger.info(
        f"Checking block {number} as {variant.label} "
        f"(elasticity {elasticity})"
    )
    summary = checker.run(number, variant, _CHECK_NAMES[args.only])

    output = summary.to_dict()
    if args.explain:
        diffs = checker.explain_receipts(number)
        output["variant_dependent_receipts"] = [d.to_dict() for d in diffs]

    if args.json:
        filename = args.output or generate_timestamped_filename(
            f"conformance_{number}"
        )
        save_json_output(output, filename)
    else:
        console.print(create_summary_table(summary))
        for error in summary.errors:
            console.print(f"{_SEVERITY_MARKS[error.severity]} {error.message}")
        if args.explain:
            diffs = output["variant_dependent_receipts"]
            console.print(
                f"\n{len(diffs)} receipt(s) encode differently per variant"
            )
            for d in diffs:
                console.print(f"  idx {d['index']:>4} type {d['type']}")

    if summary.passed:
        console.print(
            f"[green]✓ Block {number} behaves as {variant.label}[/green]"
        )
        return EXIT_OK

    if summary.has_critical_errors():
        console.print(
            f"[red]✗ Block {number} does not behave as {variant.label}[/red]"
        )
    else:
        console.print(
            f"[yellow]! Block {number} can't be told apart from "
            f"{variant.opposite().label}[/yellow]"
        )
    return EXIT_NONCONFORMANT


def cmd_capture(args: argparse.Namespace) -> int:
    number = validate_block_number(args.number)
    source = Web3ChainSource(validate_rpc_url(args.rpc_url))

    block = source.info_by_number(number)
    parent = source.info_by_number(number - 1)
    _, receipts = source.fetch_receipts(block.hash)

    fixture = build_fixture([parent, block], {block.hash: receipts})
    filename = args.output or f"fixture_{number}.json"
    save_json_output(fixture, filename)
    console.print(
        f"Captured block {number} with {len(receipts)} receipts"
    )
    return EXIT_OK


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--number",
        type=int,
        default=GlobalConstants.DEFAULT_BLOCK_NUMBER,
        help="Block number to check",
    )
    parser.add_argument(
        "--rpc-url",
        type=str,
        default=GlobalConstants.DEFAULT_RPC_URL,
        help="L2 execution RPC URL (default: $OP_RPC_URL or OP mainnet)",
    )
    parser.add_argument("--output", type=str, help="Output filename")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opstack-conformance",
        description="Check which side of the Canyon upgrade a node is on",
    )
    parser.add_argument(
        "--log-level", type=str, help="Override OPC_LOG_LEVEL"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # check
    p_check = sub.add_parser(
        "check", help="Assert receipts root and base fee behavior"
    )
    _add_source_args(p_check)
    state = p_check.add_mutually_exclusive_group()
    state.add_argument(
        "--pre-canyon",
        dest="pre_canyon",
        action="store_true",
        default=True,
        help="Assert pre-Canyon behavior (default)",
    )
    state.add_argument(
        "--post-canyon",
        dest="pre_canyon",
        action="store_false",
        help="Assert post-Canyon behavior",
    )
    p_check.add_argument(
        "--elasticity",
        type=int,
        help="EIP-1559 elasticity. 6 on mainnet/sepolia, 10 on goerli",
    )
    p_check.add_argument(
        "--network",
        type=str,
        choices=sorted(GlobalConstants.NETWORK_ELASTICITY),
        help="Take the elasticity from a known network",
    )
    p_check.add_argument(
        "--only",
        type=str,
        choices=["receipts", "fees", "all"],
        default="all",
        help="Restrict to one property",
    )
    p_check.add_argument(
        "--explain",
        action="store_true",
        help="List receipts whose encoding differs per variant",
    )
    p_check.add_argument(
        "--fixture",
        type=str,
        help="Replay a captured fixture instead of querying the RPC",
    )
    p_check.add_argument("--json", action="store_true", help="Output JSON")
    p_check.set_defaults(func=cmd_check)

    # capture
    p_capture = sub.add_parser(
        "capture", help="Save a block, its parent and receipts as a fixture"
    )
    _add_source_args(p_capture)
    p_capture.set_defaults(func=cmd_capture)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level:
        set_level(args.log_level)

    try:
        code = args.func(args)
    except Exception as e:
        handle_command_error(e)
        return

    sys.exit(code)


if __name__ == "__main__":
    main()
