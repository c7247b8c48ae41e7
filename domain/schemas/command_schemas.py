from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from domain.enums import CommandType, CommandStatus


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one dispatched command"""

    identifier: str
    command: CommandType
    status: CommandStatus
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is CommandStatus.SUCCESS


class CommandResponse(BaseModel):
    success: bool
    identifier: str
    command: CommandType
    status: CommandStatus
    message: Optional[str] = None

    @classmethod
    def from_result(cls, result: CommandResult) -> "CommandResponse":
        return cls(
            success=result.success,
            identifier=result.identifier,
            command=result.command,
            status=result.status,
            message=result.message,
        )
