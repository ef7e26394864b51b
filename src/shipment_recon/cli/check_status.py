"""
CLI for batch status reconciliation.

Reads identifiers from the command line and/or a file (one per line),
normalizes them the same way the HTTP handler does (trim, de-duplicate, cap
at the batch limit) and prints ``{"results": [...]}`` as JSON.

Exit codes:
    0 - results printed
    1 - authentication or upstream failure
    2 - missing configuration or unusable input
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from shipment_recon.config.settings import get_settings
from shipment_recon.domain.reconciliation.identifiers import (
    LookupMode,
    normalize_identifiers,
)
from shipment_recon.domain.reconciliation.service import ReconciliationService
from shipment_recon.errors import AuthError, ConfigError, UpstreamError
from shipment_recon.utils.logging import get_logger

logger = get_logger(__name__)


def _read_identifier_file(path: Path) -> List[str]:
    return path.read_text(encoding="utf-8").splitlines()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shipment_recon.cli check",
        description="Reconcile shipment status across the Order-System and Trace-System",
    )
    parser.add_argument(
        "identifiers",
        nargs="*",
        help="Tracking numbers or pickup numbers",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in LookupMode],
        default=LookupMode.TRACKING.value,
        help="Identifier kind (default: tracking)",
    )
    parser.add_argument(
        "--file",
        type=Path,
        help="File with one identifier per line",
    )
    parser.add_argument(
        "--no-trace",
        action="store_true",
        help="Skip the Trace-System lookup",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )
    return parser


def main(
    argv: Optional[List[str]] = None,
    service: Optional[ReconciliationService] = None,
) -> int:
    """
    Run a reconciliation batch and print the JSON results.

    Args:
        argv: Command line arguments
        service: Pre-wired engine (tests inject one with fake clients)

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.no_trace:
        settings = settings.model_copy(update={"trace_enabled": False})

    raw: List[str] = list(args.identifiers)
    if args.file:
        try:
            raw.extend(_read_identifier_file(args.file))
        except (OSError, UnicodeDecodeError) as e:
            print(f"Cannot read identifier file: {e}", file=sys.stderr)
            return 2

    identifiers = normalize_identifiers(raw, limit=settings.max_batch_size)
    if not identifiers:
        print("At least one non-empty identifier is required", file=sys.stderr)
        return 2

    service = service or ReconciliationService.from_settings(settings)
    try:
        results = service.reconcile(LookupMode(args.mode), identifiers)
    except ConfigError as e:
        logger.error("cli.config_error", error=str(e))
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except (AuthError, UpstreamError) as e:
        logger.error("cli.reconcile_failed", error=str(e))
        print(f"Status check failed: {e}", file=sys.stderr)
        return 1

    payload = {"results": [result.to_payload() for result in results]}
    print(json.dumps(payload, indent=args.indent, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
