"""API routes package"""

from . import devices, feeders, health

__all__ = ["devices", "feeders", "health"]
