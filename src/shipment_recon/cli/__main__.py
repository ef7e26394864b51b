"""
Unified CLI entry point for ShipmentRecon.

Usage:
    python -m shipment_recon.cli <command> [options]

Available commands:
    check  - Reconcile tracking or pickup numbers across both backends
    auth   - Verify upstream credentials

Examples:
    # Reconcile tracking numbers
    python -m shipment_recon.cli check --mode tracking 100200300400 100200300401

    # Reconcile pickup numbers listed in a file
    python -m shipment_recon.cli check --mode pickup --file pickups.txt

    # Verify both logins
    python -m shipment_recon.cli auth verify
"""

import argparse
import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        prog="shipment_recon.cli",
        description="ShipmentRecon CLI - Order-System / Trace-System status reconciliation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
        help="Command to execute",
    )
    subparsers.add_parser(
        "check",
        help="Reconcile identifiers across both backends",
        add_help=False,  # Let the delegated module handle help
    )
    subparsers.add_parser(
        "auth",
        help="Authentication operations",
        add_help=False,  # Let the delegated module handle help
    )

    args, remaining_args = parser.parse_known_args(argv)

    if args.command == "check":
        from shipment_recon.cli.check_status import main as check_main

        return check_main(remaining_args)

    elif args.command == "auth":
        from shipment_recon.cli.auth import main as auth_main

        return auth_main(remaining_args)

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
