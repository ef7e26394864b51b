"""Configuration management for ShipmentRecon.

Usage:
    >>> from shipment_recon.config import get_settings
    >>> settings = get_settings()
    >>> settings.detail_concurrency
    5
"""

from shipment_recon.config.settings import MAX_BATCH_SIZE, Settings, get_settings

__all__ = [
    "MAX_BATCH_SIZE",
    "Settings",
    "get_settings",
]
