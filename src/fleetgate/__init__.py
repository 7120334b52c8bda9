"""fleetgate - access control and tenant context for the fleet dashboard."""

__version__ = "0.1.0"
