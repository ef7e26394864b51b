"""Command-line interface for ShipmentRecon."""
