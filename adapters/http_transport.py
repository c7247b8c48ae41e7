"""
JSON-over-HTTP transport for feeders bridged onto the LAN.

Each command is POSTed as a JSON object to the feeder; the feeder answers
with `{"success": true}` or `{"success": false, "error": "..."}`.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Optional

import httpx

from adapters.device_transport import DeviceAck, DeviceCommand, DeviceTransport
from app.exceptions import DeviceTimeoutError, DeviceUnreachableError

logger = logging.getLogger("feedersync.transport")


class HttpDeviceTransport(DeviceTransport):
    def __init__(
        self,
        port: int,
        path: str = "/command",
        timeout_sec: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        self.port = port
        self.path = path if path.startswith("/") else f"/{path}"
        self.timeout_sec = timeout_sec
        self._client = client

    def open(self) -> None:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout_sec)
            logger.info(f"HTTP device transport ready port={self.port} path={self.path}")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def url_for(self, endpoint_ip: str) -> str:
        host = endpoint_ip
        if isinstance(ipaddress.ip_address(endpoint_ip), ipaddress.IPv6Address):
            host = f"[{endpoint_ip}]"
        return f"http://{host}:{self.port}{self.path}"

    def send(self, endpoint_ip: str, command: DeviceCommand) -> DeviceAck:
        if self._client is None:
            self.open()
        url = self.url_for(endpoint_ip)

        try:
            response = self._client.post(url, json=command.to_payload())
        except httpx.TimeoutException as e:
            raise DeviceTimeoutError(
                details={"endpoint": endpoint_ip, "command": command.command.value}
            ) from e
        except httpx.TransportError as e:
            raise DeviceUnreachableError(
                f"Feeder unreachable: {e}",
                details={"endpoint": endpoint_ip, "command": command.command.value},
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("success", True):
            return DeviceAck(accepted=True, message=body.get("message"))

        message = body.get("error") or f"HTTP {response.status_code}"
        logger.info(
            f"feeder_rejected endpoint={endpoint_ip} command={command.command.value} "
            f"status={response.status_code} error={message}"
        )
        return DeviceAck(accepted=False, message=message)
