"""
ShipmentRecon - dual-backend shipment status reconciliation.

Resolves caller-supplied tracking or pickup numbers against the Order-System
and the Trace-System, gathers status detail from both, and merges the outcome
into one classified record per identifier.
"""

__version__ = "0.1.0"
