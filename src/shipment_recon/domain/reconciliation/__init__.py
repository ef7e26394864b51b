"""Dual-backend shipment status reconciliation.

Keep this package import lightweight: the upstream connectors import
``identifiers`` from here, and the engine imports the connectors. Import the
engine from ``shipment_recon.domain.reconciliation.service``.
"""

from .identifiers import LookupMode, normalize_identifiers
from .models import (
    DetailKind,
    DetailRecord,
    OrderSide,
    ReconciliationResult,
    ResolvedOrder,
    TraceRecord,
    TraceSide,
)

__all__ = [
    "LookupMode",
    "normalize_identifiers",
    "DetailKind",
    "DetailRecord",
    "OrderSide",
    "ReconciliationResult",
    "ResolvedOrder",
    "TraceRecord",
    "TraceSide",
]
