"""
Merging of resolver, detail and trace outputs into per-identifier results.
"""

from typing import Dict, List, Optional, Sequence

from .models import (
    DetailRecord,
    OrderSide,
    ReconciliationResult,
    ResolvedOrder,
    TraceRecord,
    TraceSide,
)


class ReconciliationMerger:
    """
    Builds exactly one ReconciliationResult per input identifier.

    A missing side is always expressed as data: an unresolved identifier gets
    an order side without a reference, and a trace map of None means the
    trace lookup was not attempted for this batch.
    """

    def merge(
        self,
        identifiers: Sequence[str],
        resolved: Dict[str, ResolvedOrder],
        details: Dict[str, DetailRecord],
        traced: Optional[Dict[str, TraceRecord]],
    ) -> List[ReconciliationResult]:
        results: List[ReconciliationResult] = []
        for identifier in identifiers:
            order = resolved.get(identifier)
            if order is None:
                order_side = OrderSide()
            else:
                order_side = OrderSide(
                    order_ref=order.order_ref, detail=details.get(identifier)
                )

            if traced is None:
                trace_side = TraceSide(attempted=False)
            else:
                trace_side = TraceSide(attempted=True, record=traced.get(identifier))

            pickup_no = (order.pickup_no if order else None) or (
                trace_side.record.pickup_no if trace_side.record else None
            )

            results.append(
                ReconciliationResult(
                    identifier=identifier,
                    pickup_no=pickup_no,
                    order=order_side,
                    trace=trace_side,
                )
            )
        return results
