"""Jewelry lifecycle CLI — deploy and drive a registry from the shell.

Usage:
    jewelry-lifecycle deploy --admin 0xDEPLOYER
    jewelry-lifecycle call setRoles 0xMINE 0xCUT 0xLAB 0xMAKER --caller 0xDEPLOYER
    jewelry-lifecycle call createJewelry Diamond --caller 0xMINE
    jewelry-lifecycle call updateStatusToPolished 1 --caller 0xCUT
    jewelry-lifecycle call generateCertificate 1 12345 --caller 0xLAB
    jewelry-lifecycle call updateStatusToInStock 1 --caller 0xMAKER
    jewelry-lifecycle call transferOwnership 1 0xBUYER --caller 0xMAKER
    jewelry-lifecycle show 1
    jewelry-lifecycle history 1
    jewelry-lifecycle status
    jewelry-lifecycle anchor
    jewelry-lifecycle proof EVT-00000003 --anchored

State lives in the configured data directory (state.json, events.jsonl).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from jewelry_lifecycle.config import Settings, load_settings
from jewelry_lifecycle.engine.abi import METHODS
from jewelry_lifecycle.persistence.event_log import EventLog
from jewelry_lifecycle.persistence.state_store import StateStore
from jewelry_lifecycle.service import JewelryService, ServiceResult


def _make_service(settings: Settings) -> JewelryService:
    """Create a JewelryService with durable persistence."""
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return JewelryService(
        event_log=EventLog(storage_path=settings.events_path),
        state_store=StateStore(settings.state_path),
    )


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_deploy(args: argparse.Namespace, settings: Settings) -> int:
    admin = args.admin
    if admin is None:
        if not settings.private_key:
            print("Failed: --admin is required when no private key is configured", file=sys.stderr)
            return 1
        from eth_account import Account

        admin = Account.from_key(settings.private_key).address

    service = _make_service(settings)
    result = service.deploy(admin)
    if result.success:
        print(f"Registry deployed by: {result.data['admin']}")
        print(f"Deployment hash: {result.data['deployment_hash']}")
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_call(args: argparse.Namespace, settings: Settings) -> int:
    service = _make_service(settings)
    return _report(service.invoke(args.caller or "", args.method, args.args))


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    service = _make_service(settings)
    record = service.get_jewelry(args.id)
    if record is None:
        print(f"Failed: Jewelry not found: {args.id}", file=sys.stderr)
        return 1
    print(json.dumps(record.to_dict(), indent=2))
    return 0


def cmd_history(args: argparse.Namespace, settings: Settings) -> int:
    service = _make_service(settings)
    events = service.history(args.id)
    if not events:
        print(f"Failed: No events for jewelry {args.id}", file=sys.stderr)
        return 1
    print(json.dumps([e.to_dict() for e in events], indent=2))
    return 0


def cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    service = _make_service(settings)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_anchor(args: argparse.Namespace, settings: Settings) -> int:
    if not settings.private_key:
        print("Failed: JEWELRY_PRIVATE_KEY is not configured", file=sys.stderr)
        return 1
    service = _make_service(settings)
    return _report(
        service.anchor(
            settings.network.url,
            settings.private_key,
            chain_id=settings.network.chain_id,
        )
    )


def cmd_proof(args: argparse.Namespace, settings: Settings) -> int:
    service = _make_service(settings)
    result = service.prove_event(args.event_id, anchored=args.anchored)
    if result.success and not result.data["verified"]:
        print(json.dumps(result.data, indent=2), file=sys.stderr)
        print(f"Failed: proof for {args.event_id} does not verify", file=sys.stderr)
        return 1
    return _report(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jewelry-lifecycle",
        description="Jewelry lifecycle registry CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Directory holding networks.json (default: bundled profiles)",
    )
    parser.add_argument("--env-file", type=Path, help="Path to .env file (default: .env)")
    parser.add_argument("--network", help="Network profile from networks.json")
    parser.add_argument("--data-dir", type=Path, help="Directory for state and events")
    sub = parser.add_subparsers(dest="command")

    # deploy
    p_deploy = sub.add_parser("deploy", help="Deploy a fresh registry")
    p_deploy.add_argument("--admin", help="Admin address (default: address of the configured key)")

    # call
    p_call = sub.add_parser("call", help="Invoke a registry method by its external name")
    p_call.add_argument("method", choices=sorted(METHODS), help="External method name")
    p_call.add_argument("args", nargs="*", help="Positional method arguments")
    p_call.add_argument("--caller", help="Calling address (not needed for jewelries)")

    # show / history
    p_show = sub.add_parser("show", help="Show a jewelry record")
    p_show.add_argument("id", type=int, help="Jewelry ID")
    p_hist = sub.add_parser("history", help="Show the provenance trail of a piece")
    p_hist.add_argument("id", type=int, help="Jewelry ID")

    # status / anchor
    sub.add_parser("status", help="Show registry status")
    sub.add_parser("anchor", help="Anchor the audit root on the configured network")

    # proof
    p_proof = sub.add_parser("proof", help="Merkle inclusion proof for one event")
    p_proof.add_argument("event_id", help="Event ID (e.g. EVT-00000003)")
    p_proof.add_argument(
        "--anchored",
        action="store_true",
        help="Prove against the latest anchored root instead of the current one",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings = load_settings(
            config_dir=args.config,
            env_file=args.env_file,
            network=args.network,
            data_dir=args.data_dir,
        )
    except (OSError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    commands = {
        "deploy": cmd_deploy,
        "call": cmd_call,
        "show": cmd_show,
        "history": cmd_history,
        "status": cmd_status,
        "anchor": cmd_anchor,
        "proof": cmd_proof,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args, settings)
    except ValueError as e:
        # corrupted snapshot or tampered event log
        print(f"Failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
