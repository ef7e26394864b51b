"""
Batched Trace-System lookup.

All identifiers travel in one request; the rows that come back are keyed by
the identifier field the active mode targets. Zero rows is the ordinary
"nothing found" answer and yields an empty map.
"""

from typing import Any, Dict, List, Optional, Sequence

from shipment_recon.io.connectors.parsers import first_list, first_present, path
from shipment_recon.io.connectors.trace_system import TraceSession, TraceSystemClient
from shipment_recon.utils.logging import get_logger

from .identifiers import LookupMode, clean_identifier
from .models import TraceRecord

logger = get_logger(__name__)

ROW_CONTAINER_ACCESSORS = (
    lambda payload: payload,
    path("data"),
    path("rows"),
    path("result"),
)
TRACKING_KEY_ACCESSORS = (path("tms_order_pro"),)
PICKUP_KEY_ACCESSORS = (path("tms_order_pu"), path("pu_no"), path("reference5"))


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def extract_trace_rows(payload: Any) -> List[Dict[str, Any]]:
    """Flatten a trace payload into rows (dict items only)."""
    rows = first_list(payload, ROW_CONTAINER_ACCESSORS)
    return [row for row in rows if isinstance(row, dict)]


def to_trace_record(row: Dict[str, Any]) -> TraceRecord:
    pickup_no = clean_identifier(first_present(row, PICKUP_KEY_ACCESSORS))
    return TraceRecord(
        external_order_id=_text(row.get("tms_order_id")),
        location=_text(row.get("wa2_code")),
        status=_text(row.get("tms_order_stage")),
        substatus=_text(row.get("tms_order_status")),
        pickup_no=pickup_no or None,
    )


def build_trace_map(mode: LookupMode, payload: Any) -> Dict[str, TraceRecord]:
    """
    Key trace rows by the identifier field the mode targets.

    Rows with an empty key are dropped; when several rows share a key the
    last one wins.
    """
    key_accessors = (
        TRACKING_KEY_ACCESSORS if mode is LookupMode.TRACKING else PICKUP_KEY_ACCESSORS
    )
    traced: Dict[str, TraceRecord] = {}
    for row in extract_trace_rows(payload):
        key = clean_identifier(first_present(row, key_accessors))
        if not key:
            continue
        traced[key] = to_trace_record(row)
    return traced


class TraceGatherer:
    """Resolves Trace-System rows for a whole batch in one call."""

    def __init__(self, trace_client: TraceSystemClient) -> None:
        self.trace_client = trace_client

    def trace_batch(
        self, session: TraceSession, mode: LookupMode, identifiers: Sequence[str]
    ) -> Dict[str, TraceRecord]:
        """
        Trace every identifier with a single request.

        Returns:
            Map of identifier to TraceRecord; empty when nothing was found

        Raises:
            UpstreamError: Trace query failed at transport or HTTP level
        """
        if not identifiers:
            return {}

        payload = self.trace_client.trace(session, mode, identifiers)
        traced = build_trace_map(mode, payload)

        logger.info(
            "trace.batch_completed",
            mode=mode.value,
            batch_size=len(identifiers),
            matched=sum(1 for identifier in identifiers if identifier in traced),
            rows=len(traced),
        )
        return traced
