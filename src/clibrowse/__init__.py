"""
clibrowse - browse and run a click command tree from a web browser.
"""

__version__ = "0.1.0"

from .errors import (
    ClibrowseError,
    CommandExecutionError,
    CommandNotFoundError,
    FactoryLoadError,
    MalformedRequestError,
)
from .models import Command, CommandMetadata, ExecutionResult, Flag, FlagKind
from .nodes import CommandNode, FlagSpec
from .registry import Registry

__all__ = [
    "__version__",
    "ClibrowseError",
    "Command",
    "CommandExecutionError",
    "CommandMetadata",
    "CommandNode",
    "CommandNotFoundError",
    "ExecutionResult",
    "FactoryLoadError",
    "Flag",
    "FlagKind",
    "FlagSpec",
    "MalformedRequestError",
    "Registry",
]
