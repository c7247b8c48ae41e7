"""
Device transport contract.

A transport delivers one command to a feeder and reports the feeder's
acknowledgement. The wire format lives entirely in the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from domain.enums import CommandType
from domain.quantity import Quantity
from domain.schemas.planning_schemas import PlanningSpec


@dataclass(frozen=True)
class DeviceCommand:
    """A command as handed to the transport"""

    command: CommandType
    identifier: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def feed_now(cls, identifier: str, quantity: Quantity) -> "DeviceCommand":
        return cls(CommandType.FEED_NOW, identifier, {"quantity": quantity.to_json()})

    @classmethod
    def set_default_quantity(cls, identifier: str, quantity: Quantity) -> "DeviceCommand":
        return cls(
            CommandType.SET_DEFAULT_QUANTITY, identifier, {"quantity": quantity.to_json()}
        )

    @classmethod
    def set_planning(cls, identifier: str, planning: PlanningSpec) -> "DeviceCommand":
        return cls(CommandType.SET_PLANNING, identifier, {"meals": planning.to_device()})

    def to_payload(self) -> Dict[str, Any]:
        return {"command": self.command.value, "identifier": self.identifier, **self.arguments}


@dataclass(frozen=True)
class DeviceAck:
    """What the feeder answered"""

    accepted: bool
    message: Optional[str] = None


class DeviceTransport(ABC):
    """Sends commands to a feeder at a known address.

    Implementations raise DeviceUnreachableError when the feeder cannot be
    contacted and DeviceTimeoutError when it does not answer in time. An
    explicit refusal is returned as DeviceAck(accepted=False).
    """

    def open(self) -> None:
        """Acquire long-lived resources; called once at startup"""

    def close(self) -> None:
        """Release resources; called once at shutdown"""

    @abstractmethod
    def send(self, endpoint_ip: str, command: DeviceCommand) -> DeviceAck:
        raise NotImplementedError
