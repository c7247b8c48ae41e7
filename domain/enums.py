"""
Domain enums for FeederSync.
"""

import enum


class CommandType(str, enum.Enum):
    """Commands a feeder understands"""

    FEED_NOW = "feed_now"
    SET_DEFAULT_QUANTITY = "set_default_quantity"
    SET_PLANNING = "set_planning"


class CommandStatus(str, enum.Enum):
    """Outcome of a single command attempt"""

    SUCCESS = "success"
    UNREACHABLE = "unreachable"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
