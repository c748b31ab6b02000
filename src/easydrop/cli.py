"""EasyDrop CLI — command-line interface for operators.

Usage:
    python -m easydrop.cli status
    python -m easydrop.cli subscribe --account 0x... --payment 1
    python -m easydrop.cli add-custom-sub --account 0x... --duration 86400
    python -m easydrop.cli remove-sub --account 0x...
    python -m easydrop.cli remove-expired --accounts 0x... 0x...
    python -m easydrop.cli subscription --account 0x...
    python -m easydrop.cli deposit --payer 0x... --amount 2
    python -m easydrop.cli withdraw
    python -m easydrop.cli set-tx-fee --fee 0.02
    python -m easydrop.cli set-sub-fees --fees 0.25 0.5 0.75 1
    python -m easydrop.cli set-owner --new-owner 0x...
    python -m easydrop.cli check-approval --contract 0x... --operator 0x...

Owner-only commands act as the configured owner unless --caller is given.
"""

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from easydrop.config import EasyDropConfig
from easydrop.distribution.probe import ContractApprovalReader
from easydrop.persistence.event_log import EventLog
from easydrop.persistence.state_store import StateStore
from easydrop.service import EasyDropService, ServiceResult


def _load_config(args: argparse.Namespace) -> EasyDropConfig:
    if args.params is not None:
        return EasyDropConfig.from_params_file(args.params)
    return EasyDropConfig.from_env()


def _make_service(args: argparse.Namespace) -> EasyDropService:
    """Create an EasyDropService with durable persistence."""
    config = _load_config(args)
    data_dir: Path = args.data_dir or config.data_dir
    data_dir.mkdir(parents=True, exist_ok=True)
    return EasyDropService(
        config,
        event_log=EventLog(storage_path=data_dir / "events.jsonl"),
        state_store=StateStore(storage_path=data_dir / "state.json"),
    )


def _decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Not a decimal amount: {value}")
    if not amount.is_finite():
        raise argparse.ArgumentTypeError(f"Not a finite amount: {value}")
    return amount


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def _caller(args: argparse.Namespace, service: EasyDropService) -> str:
    return args.caller or service.owner


def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_subscribe(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.subscribe(args.account, args.payment))


def cmd_add_custom_sub(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.add_custom_subscription(
        _caller(args, service), args.account, args.duration,
    ))


def cmd_remove_sub(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.remove_subscription(_caller(args, service), args.account))


def cmd_remove_expired(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.remove_expired_subscriptions(
        _caller(args, service), args.accounts,
    ))


def cmd_subscription(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.subscription(args.account))


def cmd_deposit(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.receive(args.payer, args.amount))


def cmd_withdraw(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.withdraw(_caller(args, service)))


def cmd_balance(args: argparse.Namespace) -> int:
    service = _make_service(args)
    print(json.dumps({
        "balance": str(service.check_balance()),
        "received_total": str(service.received_total()),
    }, indent=2))
    return 0


def cmd_set_owner(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.set_owner(_caller(args, service), args.new_owner))


def cmd_set_tx_fee(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.set_tx_fee(_caller(args, service), args.fee))


def cmd_set_sub_fees(args: argparse.Namespace) -> int:
    service = _make_service(args)
    return _report(service.set_subscription_fees(_caller(args, service), *args.fees))


def cmd_check_approval(args: argparse.Namespace) -> int:
    """Ask a deployed token contract whether the engine is approved."""
    config = _load_config(args)
    rpc_url: Optional[str] = args.rpc_url or config.rpc_url
    if not rpc_url:
        print("Failed: no RPC URL (use --rpc-url or EASYDROP_RPC_URL)", file=sys.stderr)
        return 1
    service = EasyDropService(config)
    try:
        reader = ContractApprovalReader(args.contract, rpc_url=rpc_url)
        result = service.is_approved(reader, args.operator)
    except (ValueError, OSError) as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    return _report(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="easydrop",
        description="EasyDrop — subscription registry and batch airdrop CLI",
    )
    parser.add_argument(
        "--params",
        type=Path,
        default=None,
        help="Path to a params JSON file (default: packaged params + env)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for state.json and events.jsonl (default: ./data)",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show deployment status")

    p_sub = sub.add_parser("subscribe", help="Paid subscription for an account")
    p_sub.add_argument("--account", required=True, help="Subscriber address")
    p_sub.add_argument("--payment", required=True, type=_decimal, help="Amount paid")

    p_custom = sub.add_parser("add-custom-sub", help="Grant a subscription (owner)")
    p_custom.add_argument("--account", required=True, help="Subscriber address")
    p_custom.add_argument("--duration", required=True, type=int, help="Seconds")
    p_custom.add_argument("--caller", help="Caller address (default: owner)")

    p_remove = sub.add_parser("remove-sub", help="Remove one expired subscription (owner)")
    p_remove.add_argument("--account", required=True, help="Subscriber address")
    p_remove.add_argument("--caller", help="Caller address (default: owner)")

    p_sweep = sub.add_parser("remove-expired", help="Sweep expired subscriptions (owner)")
    p_sweep.add_argument("--accounts", required=True, nargs="+", help="Candidate addresses")
    p_sweep.add_argument("--caller", help="Caller address (default: owner)")

    p_query = sub.add_parser("subscription", help="Show a subscription record")
    p_query.add_argument("--account", required=True, help="Subscriber address")

    p_dep = sub.add_parser("deposit", help="Record a bare deposit")
    p_dep.add_argument("--payer", required=True, help="Payer address")
    p_dep.add_argument("--amount", required=True, type=_decimal, help="Amount")

    p_wd = sub.add_parser("withdraw", help="Withdraw the full balance (owner)")
    p_wd.add_argument("--caller", help="Caller address (default: owner)")

    sub.add_parser("balance", help="Show balance and received total")

    p_owner = sub.add_parser("set-owner", help="Transfer ownership (owner)")
    p_owner.add_argument("--new-owner", required=True, help="New owner address")
    p_owner.add_argument("--caller", help="Caller address (default: owner)")

    p_tx = sub.add_parser("set-tx-fee", help="Set the transaction fee (owner)")
    p_tx.add_argument("--fee", required=True, type=_decimal, help="Fee amount")
    p_tx.add_argument("--caller", help="Caller address (default: owner)")

    p_fees = sub.add_parser("set-sub-fees", help="Set the four subscription fees (owner)")
    p_fees.add_argument("--fees", required=True, nargs=4, type=_decimal, help="Four tier fees")
    p_fees.add_argument("--caller", help="Caller address (default: owner)")

    p_appr = sub.add_parser("check-approval", help="Check engine approval on a contract")
    p_appr.add_argument("--contract", required=True, help="Token contract address")
    p_appr.add_argument("--operator", required=True, help="Asset holder address")
    p_appr.add_argument("--rpc-url", help="JSON-RPC endpoint (default: EASYDROP_RPC_URL)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "subscribe": cmd_subscribe,
        "add-custom-sub": cmd_add_custom_sub,
        "remove-sub": cmd_remove_sub,
        "remove-expired": cmd_remove_expired,
        "subscription": cmd_subscription,
        "deposit": cmd_deposit,
        "withdraw": cmd_withdraw,
        "balance": cmd_balance,
        "set-owner": cmd_set_owner,
        "set-tx-fee": cmd_set_tx_fee,
        "set-sub-fees": cmd_set_sub_fees,
        "check-approval": cmd_check_approval,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
