"""Domain layer for ShipmentRecon."""
