"""
Authentication CLI for ShipmentRecon.

Usage:
    # Log in to both upstream systems and report the outcome
    python -m shipment_recon.cli auth verify
"""

import argparse
import sys
from typing import List, Optional

from shipment_recon.config.settings import get_settings
from shipment_recon.domain.reconciliation.service import ReconciliationService
from shipment_recon.errors import AuthError, ConfigError


def main(
    argv: Optional[List[str]] = None,
    service: Optional[ReconciliationService] = None,
) -> int:
    """
    Main CLI entry point for authentication operations.

    Returns:
        0 when every checked backend accepted its credentials, 1 otherwise
    """
    parser = argparse.ArgumentParser(
        prog="shipment_recon.cli auth",
        description="ShipmentRecon Authentication CLI",
    )
    subparsers = parser.add_subparsers(
        title="operations",
        dest="operation",
        required=True,
        help="Authentication operation to perform",
    )
    subparsers.add_parser(
        "verify",
        help="Log in to the Order-System and Trace-System",
    )
    parser.parse_args(argv)

    service = service or ReconciliationService.from_settings(get_settings())
    settings = service.settings
    store = service.session_store

    failures = 0
    try:
        store.get_order_token(force_refresh=True)
        print("Order-System: ok")
    except (ConfigError, AuthError) as e:
        print(f"Order-System: FAILED ({e})")
        failures += 1

    if settings.trace_enabled:
        try:
            store.login_trace_system()
            print("Trace-System: ok")
        except (ConfigError, AuthError) as e:
            print(f"Trace-System: FAILED ({e})")
            failures += 1
    else:
        print("Trace-System: skipped (disabled)")

    return 0 if failures == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
