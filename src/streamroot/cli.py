"""streamroot CLI: inspect ledgers and commitments from the command line.

Usage:
    python -m streamroot.cli root records.json
    python -m streamroot.cli verify records.json --root 0x1234...
    python -m streamroot.cli simulate
    python -m streamroot.cli config --env-file .env

Record files hold a JSON list of {"identity": "0x...", "flow_rate": int}.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from streamroot.bridge.assets import InMemoryAsset, InMemoryStreamingAsset
from streamroot.bridge.channel import InMemoryBridge
from streamroot.config import SyncConfig
from streamroot.crypto.merkle import records_root
from streamroot.errors import StreamRootError
from streamroot.flow.agreement import InMemoryFlowAgreement
from streamroot.models.subscriber import SubscriberRecord
from streamroot.service import MirrorService, SourceService

# Fixed addresses for the in-memory simulation.
SIM_ASSET = "0x" + "11" * 20
SIM_STREAMING_ASSET = "0x" + "22" * 20
SIM_BRIDGE = "0x" + "33" * 20
SIM_APP = "0x" + "44" * 20
SIM_MIRROR = "0x" + "55" * 20
SIM_ALICE = "0x" + "a1" * 20
SIM_BOB = "0x" + "b0" * 20
SIM_ORIGIN_DOMAIN = 1
SIM_DESTINATION_DOMAIN = 2


def _load_records(path: Path) -> list[SubscriberRecord]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of records")
    return [SubscriberRecord.from_dict(item) for item in data]


def cmd_root(args: argparse.Namespace) -> int:
    try:
        records = _load_records(args.records)
    except (StreamRootError, ValueError) as exc:
        print(f"Failed: {exc}", file=sys.stderr)
        return 1
    root = records_root(records)
    print(json.dumps({"leaves": len(records), "root": f"0x{root.hex()}"}, indent=2))
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        records = _load_records(args.records)
    except (StreamRootError, ValueError) as exc:
        print(f"Failed: {exc}", file=sys.stderr)
        return 1
    actual = f"0x{records_root(records).hex()}"
    expected = args.root.lower()
    if not expected.startswith("0x"):
        expected = f"0x{expected}"
    if actual == expected:
        print(f"OK: {len(records)} records reproduce {actual}")
        return 0
    print(f"Mismatch: records give {actual}, expected {expected}", file=sys.stderr)
    return 1


def run_simulation() -> dict[str, Any]:
    """Three flow events, one relay, one delivery, one good and one bad replay."""
    config = SyncConfig(
        accepted_asset=SIM_ASSET,
        streaming_asset=SIM_STREAMING_ASSET,
        bridge_address=SIM_BRIDGE,
        custody_address=SIM_APP,
        origin_domain=SIM_ORIGIN_DOMAIN,
    )
    asset = InMemoryAsset(SIM_ASSET, symbol="USDC")
    streaming = InMemoryStreamingAsset(SIM_STREAMING_ASSET, asset)
    bridge = InMemoryBridge(domain=SIM_ORIGIN_DOMAIN, address=SIM_BRIDGE)
    bridge.register_asset(asset)
    agreement = InMemoryFlowAgreement(SIM_STREAMING_ASSET)

    source = SourceService(config, asset, streaming, bridge, agreement)
    agreement.register_app(SIM_APP, source.adapter)
    mirror = MirrorService(config)
    bridge.register_receiver(SIM_DESTINATION_DOMAIN, SIM_MIRROR, mirror)

    agreement.create_flow(SIM_ALICE, SIM_APP, 5)
    agreement.create_flow(SIM_BOB, SIM_APP, 3)
    agreement.update_flow(SIM_ALICE, SIM_APP, 7)
    streaming.accrue(SIM_APP, 1_000)

    relayed = source.relay(SIM_DESTINATION_DOMAIN, SIM_MIRROR)
    bridge.deliver_all()

    partial = mirror.submit_replay(source.ledger.records[:2])
    full = mirror.submit_replay(source.ledger.records)
    return {
        "source": source.status(),
        "relay": relayed.data if relayed.success else {"errors": relayed.errors},
        "partial_replay": {"success": partial.success, "errors": partial.errors},
        "full_replay": {"success": full.success, "data": full.data},
        "mirror": mirror.status(),
    }


def cmd_simulate(args: argparse.Namespace) -> int:
    result = run_simulation()
    print(json.dumps(result, indent=2))
    return 0 if result["mirror"]["in_sync"] else 1


def cmd_config(args: argparse.Namespace) -> int:
    try:
        if args.json is not None:
            config = SyncConfig.from_json(args.json)
        else:
            config = SyncConfig.from_env(args.env_file)
    except (StreamRootError, ValueError, OSError) as exc:
        print(f"Failed: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamroot",
        description="Subscriber ledger commitments and cross-domain sync",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    # root
    p_root = sub.add_parser("root", help="Compute the Merkle root of a record file")
    p_root.add_argument("records", type=Path, help="JSON list of records")

    # verify
    p_verify = sub.add_parser("verify", help="Check a record file against a root")
    p_verify.add_argument("records", type=Path, help="JSON list of records")
    p_verify.add_argument("--root", required=True, help="Expected root (hex)")

    # simulate
    sub.add_parser("simulate", help="Run an in-memory source → mirror sync")

    # config
    p_cfg = sub.add_parser("config", help="Show resolved configuration")
    p_cfg.add_argument("--env-file", type=Path, help="Load variables from this .env file")
    p_cfg.add_argument("--json", type=Path, help="Read configuration from a JSON file")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "root": cmd_root,
        "verify": cmd_verify,
        "simulate": cmd_simulate,
        "config": cmd_config,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
