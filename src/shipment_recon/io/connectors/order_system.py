"""
Order-System HTTP client.

Wraps the four Order-System endpoints used during reconciliation: login,
batched shipment-order search, order-basic detail and order head-info detail.
Every authenticated call carries the client id, session token and tenant id
as custom headers.
"""

import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import quote

import requests

from shipment_recon.config.settings import MAX_BATCH_SIZE, get_settings
from shipment_recon.domain.reconciliation.identifiers import LookupMode

from .transport import HTTPTransport

logger = logging.getLogger(__name__)

LOGIN_PATH = "/fms-platform-user/Auth/Login"
SEARCH_PATH = "/fms-platform-order/shipment-orders/query"
ORDER_BASIC_PATH = "/fms-platform-order/shipper/getshipment-orderbasic/"
ORDER_HEAD_PATH = "/fms-platform-order/shipper/getshipment-orderbasic-headinfo/"

# Filter arrays the search endpoint expects; all empty except the one
# selected by the lookup mode.
SEARCH_LIST_FILTERS = (
    "bill_to_accounts",
    "bols",
    "consignee_state",
    "consignee_terminals",
    "consignee_zip_codes",
    "current_locations",
    "customer_references",
    "delivery_appointment",
    "delivery_date",
    "desired_delivery_date",
    "lh_eta_date",
    "lh_etd_date",
    "lhs",
    "master_order_ids",
    "order_nos",
    "origin_states",
    "origin_zip_codes",
    "pickup_appointment",
    "pickup_complete_date",
    "po_nos",
    "pu_nos",
    "request_pickup_date",
    "service_levels",
    "service_terminals",
    "shipment_types",
    "shipper_terminals",
    "status",
    "sub_status",
    "tracking_nos",
    "trips",
)

MODE_FILTER_FIELD = {
    LookupMode.TRACKING: "tracking_nos",
    LookupMode.PICKUP: "pu_nos",
}


def build_search_body(mode: LookupMode, identifiers: Sequence[str]) -> Dict[str, Any]:
    """
    Build the batched search request body for a lookup mode.

    Only the filter array matching ``mode`` is populated; the complementary
    identifier filter stays empty so the two search paths never combine.
    """
    body: Dict[str, Any] = {name: [] for name in SEARCH_LIST_FILTERS}
    body.update(
        {
            "business_client": "",
            "delayed": False,
            "exception": False,
            "hold": False,
            "record_status": "0",
            "page_number": 1,
            "page_size": min(len(identifiers), MAX_BATCH_SIZE),
        }
    )
    body[MODE_FILTER_FIELD[mode]] = list(identifiers)
    return body


class OrderSystemClient(HTTPTransport):
    """
    Synchronous HTTP client for the Order-System API.

    Returns decoded JSON payloads; interpreting their shape is left to the
    reconciliation components, which accept several wrappings.
    """

    system_name = "Order-System"
    default_headers = {"accept": "application/json, text/plain, */*"}

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        company_id: Optional[str] = None,
        client_id: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_max: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings()
        self.company_id = company_id or settings.order_system_company_id
        self.client_id = client_id or settings.order_system_client
        super().__init__(
            base_url or settings.order_system_base_url,
            timeout=timeout,
            retry_max=retry_max,
            session=session,
        )
        self.session.headers["fms-client"] = self.client_id

    def _auth_headers(self, token: str) -> Dict[str, str]:
        return {"fms-token": token, "Company-Id": self.company_id}

    def login(self, account: str, password: str) -> Any:
        """
        Perform credential login.

        Returns:
            Raw login payload; the token may sit at top level or under a
            ``data``/``result`` wrapper
        """
        url = f"{self.base_url}{LOGIN_PATH}"
        logger.info("Logging in to Order-System", extra={"endpoint": "login"})
        response = self._make_request(
            "POST", url, json={"account": account, "password": password}
        )
        return self._decode_json(response, "login")

    def search_orders(
        self, token: str, mode: LookupMode, identifiers: Sequence[str]
    ) -> Any:
        """
        Run one batched shipment-order search for all identifiers.

        Args:
            token: Order-System session token
            mode: Which identifier filter to populate
            identifiers: Pre-capped identifier batch (at most 150)

        Returns:
            Raw search payload (``items`` at top level or under ``data``)
        """
        url = f"{self.base_url}{SEARCH_PATH}"
        body = build_search_body(mode, identifiers)

        logger.info(
            "Searching shipment orders via Order-System",
            extra={
                "endpoint": "search",
                "mode": mode.value,
                "batch_size": len(identifiers),
                "page_size": body["page_size"],
            },
        )
        response = self._make_request(
            "POST", url, json=body, headers=self._auth_headers(token)
        )
        return self._decode_json(response, "search")

    def get_order_basic(self, token: str, order_ref: str) -> Any:
        """Fetch the order-basic record (carries the current location)."""
        url = f"{self.base_url}{ORDER_BASIC_PATH}{quote(order_ref, safe='')}"
        response = self._make_request("GET", url, headers=self._auth_headers(token))
        return self._decode_json(response, "order-basic")

    def get_order_head(self, token: str, order_ref: str) -> Any:
        """Fetch the order head-info record (carries status and sub-status)."""
        url = f"{self.base_url}{ORDER_HEAD_PATH}{quote(order_ref, safe='')}"
        response = self._make_request("GET", url, headers=self._auth_headers(token))
        return self._decode_json(response, "order-head")
