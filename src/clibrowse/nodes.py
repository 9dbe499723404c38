"""
Command node capability interface.

The registry and the execution bridge only ever talk to :class:`CommandNode`.
A concrete command framework plugs in by implementing it; the click
implementation lives in :mod:`clibrowse.click_node`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Sequence


@dataclass(frozen=True)
class FlagSpec:
    """A flag as declared by the underlying framework.

    ``type_name`` is whatever the framework calls the value type ("boolean",
    "integer", "text", "key=value" ...). It is classified into a display kind
    by the registry without knowing the concrete types up front.
    """

    name: str
    shorthand: str = ""
    usage: str = ""
    type_name: str = ""
    multiple: bool = False


class CommandNode(ABC):
    """One node of a command tree."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    def short_help(self) -> str:
        return ""

    @property
    def long_help(self) -> str:
        return ""

    @property
    def usage(self) -> str:
        return self.name

    @property
    def hidden(self) -> bool:
        return False

    @property
    @abstractmethod
    def runnable(self) -> bool:
        """True iff the node has an attached action."""

    @property
    def inherited_flags(self) -> Sequence[FlagSpec]:
        """Flags declared on an ancestor and valid on this node."""
        return ()

    @property
    def local_flags(self) -> Sequence[FlagSpec]:
        return ()

    @property
    @abstractmethod
    def children(self) -> Sequence["CommandNode"]: ...

    def suppress_help_command(self) -> None:
        """Keep the framework's own ``help`` sub-command out of the tree."""

    @abstractmethod
    def invoke(self, argv: Sequence[str]) -> str:
        """Run the tree rooted at this node with ``argv`` and return its stdout.

        ``argv`` starts with the root-relative command path. Failures raise
        :class:`~clibrowse.errors.CommandExecutionError`; nothing is printed.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


#: Builds a brand new, independent tree and returns its root.
NodeFactory = Callable[[], CommandNode]
