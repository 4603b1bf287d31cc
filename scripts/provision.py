"""Operator CLI for bulk provisioning and deprovisioning.

This module serves as a command-line wrapper around
provisioner.core.provisioning_service.
"""
from __future__ import annotations
import argparse
import json
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from provisioner.config import load_settings
from provisioner.core.errors import ProvisioningError
from provisioner.core.platform import PlatformConfigurationError
from provisioner.core.provisioning_service import build_service


def _load_entries(path: str) -> list:
    """Read a JSON file holding either a list of entries or {"entries": [...]}."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("entries", data.get("users"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of entries")
    return data


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="School account provisioning helper")
    parser.add_argument("--operator", default=os.environ.get("PROVISIONING_OPERATOR", "cli"),
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    sb = sub.add_parser("bulk-signup")
    sb.add_argument("--role", required=True, help="administrator, teacher or parent")
    sb.add_argument("--file", required=True, help="JSON file with the entries")

    sd = sub.add_parser("deprovision")
    sd.add_argument("--identifier", required=True)

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd == "bulk-signup":
        try:
            entries = _load_entries(args.file)
        except (OSError, ValueError) as e:
            parser.error(str(e))

    try:
        service = build_service(load_settings(), operator=args.operator)
    except PlatformConfigurationError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.cmd == "bulk-signup":
        try:
            report = service.provision_payload({"entries": entries, "role": args.role})
        except ProvisioningError as e:
            print(f"[bulk-signup] Error: {e.detail}", file=sys.stderr)
            sys.exit(2)
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        for message in report.failures:
            print(f"[bulk-signup] {message}", file=sys.stderr)
        sys.exit(0 if report.overall_success else 1)
    elif args.cmd == "deprovision":
        try:
            service.deprovision(args.identifier)
        except ProvisioningError as e:
            print(f"[deprovision] Error: {e.detail}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps({"ok": True}))


if __name__ == "__main__":
    main()
