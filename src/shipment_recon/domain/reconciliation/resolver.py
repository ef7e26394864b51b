"""
Identifier to order-reference resolution against the Order-System.

One batched search resolves the whole batch. Rows whose identifier or order
reference fail format checks are dropped; absence from the returned map is
how an unresolved identifier is represented downstream.
"""

from typing import Any, Dict, List, Optional, Sequence

from shipment_recon.config.settings import MAX_BATCH_SIZE
from shipment_recon.io.connectors.order_system import OrderSystemClient
from shipment_recon.io.connectors.parsers import (
    first_item,
    first_list,
    first_present,
    path,
)
from shipment_recon.utils.logging import get_logger

from .identifiers import (
    LookupMode,
    clean_identifier,
    is_valid_identifier,
    is_valid_order_ref,
)
from .models import ResolvedOrder
from .session_store import SessionStore

logger = get_logger(__name__)

SEARCH_ITEMS_ACCESSORS = (path("items"), path("data", "items"))
ORDER_REF_ACCESSORS = (path("order_no"), path("orderNo"))
TRACKING_NO_ACCESSORS = (path("tracking_no"), path("trackingNo"))
PICKUP_NO_ACCESSORS = (
    path("pu_no"),
    path("puNo"),
    first_item("pu_nos"),
    first_item("puNos"),
)
# Pickup number reported alongside a tracking-number hit
ROW_PICKUP_NO_ACCESSORS = (path("reference5"),) + PICKUP_NO_ACCESSORS


def _text(row: Dict[str, Any], accessors: Sequence) -> str:
    return clean_identifier(first_present(row, accessors))


def extract_search_rows(payload: Any) -> List[Dict[str, Any]]:
    """Flatten a search payload into candidate rows (dict items only)."""
    rows = first_list(payload, SEARCH_ITEMS_ACCESSORS)
    return [row for row in rows if isinstance(row, dict)]


def build_order_map(mode: LookupMode, payload: Any) -> Dict[str, ResolvedOrder]:
    """
    Build the identifier -> ResolvedOrder map from a search payload.

    A row is accepted only if its identifier matches the active mode's format
    and its order reference matches the DO-number pattern.
    """
    identifier_accessors = (
        TRACKING_NO_ACCESSORS if mode is LookupMode.TRACKING else PICKUP_NO_ACCESSORS
    )

    resolved: Dict[str, ResolvedOrder] = {}
    for row in extract_search_rows(payload):
        identifier = _text(row, identifier_accessors)
        order_ref = _text(row, ORDER_REF_ACCESSORS)
        if not is_valid_identifier(mode, identifier) or not is_valid_order_ref(order_ref):
            continue
        if mode is LookupMode.PICKUP:
            pickup_no: Optional[str] = identifier
        else:
            pickup_no = _text(row, ROW_PICKUP_NO_ACCESSORS) or None
        resolved[identifier] = ResolvedOrder(order_ref=order_ref, pickup_no=pickup_no)
    return resolved


class IdentifierResolver:
    """Resolves a batch of identifiers to Order-System order references."""

    def __init__(
        self, session_store: SessionStore, order_client: OrderSystemClient
    ) -> None:
        self.session_store = session_store
        self.order_client = order_client

    def resolve(
        self, mode: LookupMode, identifiers: Sequence[str]
    ) -> Dict[str, ResolvedOrder]:
        """
        Resolve the batch with a single search call.

        Args:
            mode: Tracking-number or pickup-number lookup
            identifiers: Pre-capped batch (at most 150)

        Returns:
            Map of identifier to ResolvedOrder for identifiers that resolved

        Raises:
            ValueError: Batch exceeds the search page-size ceiling
            ConfigError / AuthError: Order-System session unavailable
            UpstreamError: Search call failed at transport or HTTP level
        """
        if not identifiers:
            return {}
        if len(identifiers) > MAX_BATCH_SIZE:
            raise ValueError(
                f"Batch of {len(identifiers)} exceeds the limit of {MAX_BATCH_SIZE}"
            )

        token = self.session_store.get_order_token()
        payload = self.order_client.search_orders(token, mode, identifiers)
        resolved = build_order_map(mode, payload)

        # Hits for identifiers outside the batch are not ours to report
        requested = set(identifiers)
        resolved = {k: v for k, v in resolved.items() if k in requested}

        logger.info(
            "resolver.batch_resolved",
            mode=mode.value,
            batch_size=len(identifiers),
            resolved=len(resolved),
        )
        return resolved
