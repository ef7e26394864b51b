"""
Identifier normalization and format rules.

Identifiers are caller-supplied tracking numbers or pickup numbers. A batch is
trimmed, de-duplicated in first-seen order and capped before it reaches the
reconciliation engine.
"""

import re
from enum import Enum
from typing import Iterable, List

from shipment_recon.config.settings import MAX_BATCH_SIZE

TRACKING_NO_PATTERN = re.compile(r"^\d{6,14}$")
ORDER_REF_PATTERN = re.compile(r"^DO\d{6,}$")


class LookupMode(str, Enum):
    """Which identifier kind a batch carries."""

    TRACKING = "tracking"
    PICKUP = "pickup"


def clean_identifier(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_identifiers(raw: Iterable[object], limit: int = MAX_BATCH_SIZE) -> List[str]:
    """
    Trim, drop empties, de-duplicate (first occurrence wins) and cap a batch.

    Args:
        raw: Caller input, any iterable of values convertible to str
        limit: Maximum batch size to keep

    Returns:
        Ordered list of unique, non-empty identifiers
    """
    seen = set()
    result: List[str] = []
    for value in raw:
        cleaned = clean_identifier(value)
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        result.append(cleaned)
    return result[:limit]


def is_valid_identifier(mode: LookupMode, identifier: str) -> bool:
    """Check an identifier against the format the active mode expects."""
    if mode is LookupMode.TRACKING:
        return bool(TRACKING_NO_PATTERN.match(identifier))
    return bool(identifier)


def is_valid_order_ref(order_ref: str) -> bool:
    """Order references are ``DO`` followed by at least six digits."""
    return bool(ORDER_REF_PATTERN.match(order_ref))
