"""
Events reported by a live-patch session while it re-runs build instructions
inside a container. They are delivered to a `CommandHandlers` object.
"""

from pydantic import BaseModel, ConfigDict


class CommandStart(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage_index: int
    command: str


class CommandOutputData(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    is_stderr: bool = False


class CommandOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage_index: int
    output: CommandOutputData


class CommandExit(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage_index: int
    command: str
    return_code: int

    @property
    def failed(self) -> bool:
        return self.return_code != 0
