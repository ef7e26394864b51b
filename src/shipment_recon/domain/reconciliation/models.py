"""
Pydantic v2 data models for the reconciliation domain.

This module defines the records exchanged between the reconciliation
components:
1. ResolvedOrder - identifier to Order-System order reference mapping
2. DetailRecord - classified outcome of the two Order-System detail fetches
3. TraceRecord - one Trace-System row reduced to the fields we report
4. ReconciliationResult - the merged per-identifier record

Detail outcomes are a closed set (DetailKind) rather than a bag of booleans,
so the network-error / general-error / partial / ok states cannot overlap.
The boolean flags are still exposed as read-only properties for callers and
for the serialized payload.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DetailKind(str, Enum):
    """Mutually exclusive outcomes of an Order-System detail fetch."""

    NETWORK_ERROR = "network_error"
    GENERAL_ERROR = "general_error"
    PARTIAL = "partial"
    OK = "ok"


class ResolvedOrder(BaseModel):
    """Order-System order reference resolved for one identifier."""

    model_config = ConfigDict(frozen=True)

    order_ref: str = Field(..., min_length=1, description="Internal DO-number")
    pickup_no: Optional[str] = Field(
        default=None, description="Pickup number carried on the order row"
    )


class DetailRecord(BaseModel):
    """
    Classified result of the order-basic and order head-info fetches.

    Fields from a failed half are None and must be read as unavailable,
    not as empty.
    """

    model_config = ConfigDict(frozen=True)

    kind: DetailKind
    basic_ok: bool = False
    head_ok: bool = False
    location: Optional[str] = None
    status: Optional[str] = None
    substatus: Optional[str] = None

    @model_validator(mode="after")
    def check_kind_consistency(self) -> "DetailRecord":
        """Reject flag combinations that contradict the outcome kind."""
        if self.kind in (DetailKind.NETWORK_ERROR, DetailKind.GENERAL_ERROR):
            if any(v is not None for v in (self.location, self.status, self.substatus)):
                raise ValueError(f"{self.kind.value} records carry no detail fields")
        if self.kind is DetailKind.GENERAL_ERROR and (self.basic_ok or self.head_ok):
            raise ValueError("general_error requires both sub-fetches to have failed")
        if self.kind is DetailKind.PARTIAL and self.basic_ok == self.head_ok:
            raise ValueError("partial requires exactly one successful sub-fetch")
        if self.kind is DetailKind.OK and not (self.basic_ok and self.head_ok):
            raise ValueError("ok requires both sub-fetches to have succeeded")
        return self

    @property
    def ok(self) -> bool:
        return self.kind in (DetailKind.OK, DetailKind.PARTIAL)

    @property
    def partial(self) -> bool:
        return self.kind is DetailKind.PARTIAL

    @property
    def network_error(self) -> bool:
        return self.kind is DetailKind.NETWORK_ERROR

    @property
    def general_error(self) -> bool:
        return self.kind is DetailKind.GENERAL_ERROR


class TraceRecord(BaseModel):
    """Trace-System row for one identifier."""

    model_config = ConfigDict(frozen=True)

    external_order_id: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    substatus: Optional[str] = None
    pickup_no: Optional[str] = None


class OrderSide(BaseModel):
    """Order-System half of a reconciliation result."""

    model_config = ConfigDict(frozen=True)

    order_ref: Optional[str] = None
    detail: Optional[DetailRecord] = None

    @property
    def has_order_ref(self) -> bool:
        return self.order_ref is not None

    @property
    def ok(self) -> bool:
        return self.detail is not None and self.detail.ok

    def to_payload(self) -> Dict[str, Any]:
        detail = self.detail
        return {
            "has_order_ref": self.has_order_ref,
            "order_ref": self.order_ref,
            "ok": self.ok,
            "partial": bool(detail and detail.partial),
            "network_error": bool(detail and detail.network_error),
            "general_error": bool(detail and detail.general_error),
            "basic_ok": bool(detail and detail.basic_ok),
            "head_ok": bool(detail and detail.head_ok),
            "location": detail.location if detail else None,
            "status": detail.status if detail else None,
            "substatus": detail.substatus if detail else None,
        }


class TraceSide(BaseModel):
    """Trace-System half of a reconciliation result."""

    model_config = ConfigDict(frozen=True)

    attempted: bool = False
    record: Optional[TraceRecord] = None

    @model_validator(mode="after")
    def check_attempted(self) -> "TraceSide":
        if self.record is not None and not self.attempted:
            raise ValueError("a trace record implies the lookup was attempted")
        return self

    @property
    def ok(self) -> bool:
        return self.record is not None

    @property
    def not_found(self) -> bool:
        return self.attempted and self.record is None

    def to_payload(self) -> Dict[str, Any]:
        record = self.record
        return {
            "attempted": self.attempted,
            "ok": self.ok,
            "not_found": self.not_found,
            "order_id": record.external_order_id if record else None,
            "location": record.location if record else None,
            "status": record.status if record else None,
            "substatus": record.substatus if record else None,
            "pickup_no": record.pickup_no if record else None,
        }


class ReconciliationResult(BaseModel):
    """Merged outcome for one input identifier."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    pickup_no: Optional[str] = None
    order: OrderSide
    trace: TraceSide

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready record."""
        return {
            "identifier": self.identifier,
            "pickup_no": self.pickup_no,
            "order": self.order.to_payload(),
            "trace": self.trace.to_payload(),
        }
