"""Render-ready projections handed to templates and the JSON API.

These are read-only views recomputed on every query; nothing here is cached
alongside the registry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .errors import CommandExecutionError


class FlagKind(str, Enum):
    BOOL = "bool"
    ARRAY = "array"
    VALUE = "value"


class Flag(BaseModel):
    name: str
    shorthand: str = ""
    description: str = ""
    kind: FlagKind = FlagKind.VALUE


class Command(BaseModel):
    name: str
    full_name: str = ""
    path: str
    description: str = ""
    usage: str = ""


class CommandMetadata(BaseModel):
    name: str
    path: str
    short_help: str = ""
    long_help: str = ""
    usage: str = ""
    runnable: bool = False
    flags: List[Flag] = Field(default_factory=list)
    sub_commands: List[Command] = Field(default_factory=list)


class InvocationRequest(BaseModel):
    """JSON body accepted by ``POST /api/commands/{path}``."""

    args: List[str] = Field(default_factory=list)
    flags: dict[str, List[str]] = Field(default_factory=dict)


@dataclass
class ExecutionResult:
    """Outcome of one execution: buffered stdout or the command's error."""

    output: str = ""
    error: Optional[CommandExecutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> str:
        return self.error.message if self.error is not None else ""
