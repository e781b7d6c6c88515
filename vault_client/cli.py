"""Command-line interface for the vault client."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .exceptions import VaultClientError, describe_error
from .logging_setup import configure_logging
from .models import ActionKind, AppState
from .report import render_info, render_status
from .services import VaultClient, classify

ACTIONS = tuple(kind.value for kind in ActionKind)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="vault-client",
        description="Manage a collateralized position in an EVC lending vault",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show account, position and health factor")
    sub.add_parser("info", help="Show vault parameters and token metadata")

    for action in ACTIONS:
        action_parser = sub.add_parser(action, help=f"{action.capitalize()} tokens")
        action_parser.add_argument("amount", help="Amount in whole tokens, e.g. 1.5")

    mint_parser = sub.add_parser("mint", help="Mint test tokens to the connected account")
    mint_parser.add_argument("amount", help="Amount in whole tokens")

    watch_parser = sub.add_parser("watch", help="Follow wallet events and refresh")
    watch_parser.add_argument(
        "interval",
        nargs="?",
        type=float,
        default=None,
        help="Refresh interval in seconds (overrides config)",
    )

    return parser


def _print_status(client: VaultClient) -> None:
    print(render_status(client.state, client.health()))


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command; returns the process exit code."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    client = VaultClient(config)

    if not await client.connect():
        print(client.state.error or "Failed to connect wallet", file=sys.stderr)
        return 1

    if args.command == "status":
        _print_status(client)
    elif args.command == "info":
        print(render_info(await client.vault_info()))
    elif args.command in ACTIONS:
        outcome = await client.orchestrator.submit(args.command, args.amount)
        print(outcome.message)
        _print_status(client)
        return 0 if outcome.ok else 1
    elif args.command == "mint":
        ok = await client.mint(args.amount)
        print(client.state.notice if ok else client.state.error)
        return 0 if ok else 1
    elif args.command == "watch":

        def on_update(state: AppState) -> None:
            print(render_status(state, classify(state.snapshot.health_raw, config.health)))
            print()

        await client.watch(args.interval, on_update=on_update)
    else:
        build_parser().print_help()
        return 1
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        sys.exit(asyncio.run(_run(args)))
    except KeyboardInterrupt:
        sys.exit(130)
    except VaultClientError as e:
        print(describe_error(e), file=sys.stderr)
        sys.exit(1)
