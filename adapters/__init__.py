"""
Adapters package - External service connections.
Transports used to reach feeders on the network.
"""

from adapters.device_transport import DeviceAck, DeviceCommand, DeviceTransport
from adapters.http_transport import HttpDeviceTransport

__all__ = [
    "DeviceAck",
    "DeviceCommand",
    "DeviceTransport",
    "HttpDeviceTransport",
]
