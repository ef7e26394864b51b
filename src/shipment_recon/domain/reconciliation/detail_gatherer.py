"""
Order-System detail retrieval and outcome classification.

Each resolved order reference needs two independent GETs: order-basic
(current location) and order head-info (status and sub-status). The pair is
reduced to one DetailRecord using this precedence:

1. any connectivity failure in either call  -> NETWORK_ERROR
2. both calls failed for other reasons       -> GENERAL_ERROR
3. exactly one call succeeded                -> PARTIAL
4. both calls succeeded                      -> OK

Failures are captured as data and never raised, so one identifier cannot
abort its siblings.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from shipment_recon.errors import UpstreamError, UpstreamNetworkError
from shipment_recon.io.connectors.order_system import OrderSystemClient
from shipment_recon.io.connectors.parsers import first_present, path, unwrap_data
from shipment_recon.utils.logging import get_logger

from .concurrency import ConcurrencyLimiter
from .models import DetailKind, DetailRecord, ResolvedOrder

logger = get_logger(__name__)

LOCATION_ACCESSORS = (path("current_location"), path("currentLocation"))
STATUS_ACCESSORS = (path("order_status_describe"),)
SUBSTATUS_ACCESSORS = (path("order_sub_status_describe"),)


@dataclass
class SubFetch:
    """Outcome of one detail sub-call."""

    ok: bool = False
    network_error: bool = False
    fields: Dict[str, Optional[str]] = field(default_factory=dict)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def classify(basic: SubFetch, head: SubFetch) -> DetailRecord:
    """Reduce the two sub-call outcomes to a single DetailRecord."""
    if basic.network_error or head.network_error:
        return DetailRecord(
            kind=DetailKind.NETWORK_ERROR, basic_ok=basic.ok, head_ok=head.ok
        )
    if not basic.ok and not head.ok:
        return DetailRecord(kind=DetailKind.GENERAL_ERROR)

    kind = DetailKind.OK if basic.ok and head.ok else DetailKind.PARTIAL
    return DetailRecord(
        kind=kind,
        basic_ok=basic.ok,
        head_ok=head.ok,
        location=basic.fields.get("location"),
        status=head.fields.get("status"),
        substatus=head.fields.get("substatus"),
    )


class DetailGatherer:
    """Fetches and classifies Order-System detail under a concurrency ceiling."""

    def __init__(
        self, order_client: OrderSystemClient, limiter: ConcurrencyLimiter
    ) -> None:
        self.order_client = order_client
        self.limiter = limiter

    def _sub_fetch(
        self,
        call: Callable[[str, str], Any],
        token: str,
        order_ref: str,
        extract: Callable[[Dict[str, Any]], Dict[str, Optional[str]]],
        name: str,
    ) -> SubFetch:
        try:
            root = unwrap_data(call(token, order_ref))
        except UpstreamNetworkError as e:
            logger.warning(
                "detail.network_error", order_ref=order_ref, call=name, error=str(e)
            )
            return SubFetch(network_error=True)
        except UpstreamError as e:
            logger.warning(
                "detail.call_failed",
                order_ref=order_ref,
                call=name,
                status_code=e.status_code,
                error=str(e),
            )
            return SubFetch()
        except Exception as e:
            logger.warning(
                "detail.call_failed",
                order_ref=order_ref,
                call=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return SubFetch()

        if not isinstance(root, dict):
            logger.warning(
                "detail.unusable_body",
                order_ref=order_ref,
                call=name,
                body_type=type(root).__name__,
            )
            return SubFetch()
        return SubFetch(ok=True, fields=extract(root))

    def fetch_detail(self, token: str, order_ref: str) -> DetailRecord:
        """
        Fetch location and status detail for one order reference.

        Args:
            token: Order-System session token shared by the batch
            order_ref: Resolved DO-number

        Returns:
            Classified DetailRecord; never raises for upstream failures
        """
        basic = self._sub_fetch(
            self.order_client.get_order_basic,
            token,
            order_ref,
            lambda root: {"location": _text(first_present(root, LOCATION_ACCESSORS))},
            "order_basic",
        )
        head = self._sub_fetch(
            self.order_client.get_order_head,
            token,
            order_ref,
            lambda root: {
                "status": _text(first_present(root, STATUS_ACCESSORS)),
                "substatus": _text(first_present(root, SUBSTATUS_ACCESSORS)),
            },
            "order_head",
        )
        record = classify(basic, head)
        logger.debug("detail.classified", order_ref=order_ref, kind=record.kind.value)
        return record

    def gather(
        self,
        token: str,
        identifiers: Sequence[str],
        resolved: Dict[str, ResolvedOrder],
    ) -> Dict[str, DetailRecord]:
        """
        Fetch detail for every resolved identifier, at most ``limit`` at a time.

        Unresolved identifiers are skipped without any outbound call.

        Returns:
            Map of identifier to DetailRecord, in input order
        """
        work: Sequence[Tuple[str, str]] = [
            (identifier, resolved[identifier].order_ref)
            for identifier in identifiers
            if identifier in resolved
        ]
        if not work:
            return {}

        records = self.limiter.map(lambda item: self.fetch_detail(token, item[1]), work)

        details = {identifier: record for (identifier, _), record in zip(work, records)}
        logger.info(
            "detail.batch_completed",
            requested=len(work),
            ok=sum(1 for r in records if r.ok),
            partial=sum(1 for r in records if r.partial),
            network_error=sum(1 for r in records if r.network_error),
            general_error=sum(1 for r in records if r.general_error),
        )
        return details
