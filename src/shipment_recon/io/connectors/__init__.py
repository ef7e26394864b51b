"""Upstream connectors for the Order-System and the Trace-System."""

from .order_system import OrderSystemClient
from .trace_system import TraceSession, TraceSystemClient

__all__ = [
    "OrderSystemClient",
    "TraceSession",
    "TraceSystemClient",
]
