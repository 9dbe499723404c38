"""
Path-addressable registry over a command tree.

The registry is built once from a node factory and is read-only afterwards,
so lookups, metadata and search are safe from any number of threads.
Executions never touch the registered nodes: every run asks the factory for a
brand new tree so flag state cannot leak between concurrent requests.

Paths look like ``/<root>/<child>/<grandchild>``; ``""`` and ``"/"`` are
aliases for the root.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .errors import CommandExecutionError, CommandNotFoundError
from .logging_config import log_event
from .models import Command, CommandMetadata, ExecutionResult, Flag, FlagKind
from .nodes import CommandNode, FlagSpec, NodeFactory

log = logging.getLogger(__name__)

#: Flags never shown to the user.
HIDDEN_FLAGS = frozenset({"", "help", "version"})

_ARRAY_HINTS = ("array", "slice", "list", "tuple", "map", "dict", "stringto")
_BOOL_TYPES = frozenset({"bool", "boolean"})


def join_path(parent: str, name: str) -> str:
    return parent.rstrip("/") + "/" + name


def flag_kind(spec: FlagSpec) -> FlagKind:
    """Classify a flag for display from its declared type descriptor."""
    type_name = spec.type_name.lower()
    if spec.multiple or any(hint in type_name for hint in _ARRAY_HINTS):
        return FlagKind.ARRAY
    if type_name in _BOOL_TYPES:
        return FlagKind.BOOL
    return FlagKind.VALUE


class Registry:
    """Flat ``path -> node`` index of a command tree."""

    def __init__(self, factory: NodeFactory):
        self.factory = factory
        root = factory()
        root.suppress_help_command()
        self.root_path = "/" + root.name
        self._nodes: Dict[str, CommandNode] = dict(self._walk(root))
        log.debug("registry built: %d commands under %s", len(self._nodes), self.root_path)

    def _walk(self, root: CommandNode) -> Iterator[Tuple[str, CommandNode]]:
        # Explicit stack, children pushed reversed to keep pre-order.
        stack: List[Tuple[str, CommandNode]] = [(self.root_path, root)]
        while stack:
            path, node = stack.pop()
            yield path, node
            for child in reversed(list(node.children)):
                if not child.name:
                    continue
                stack.append((join_path(path, child.name), child))

    # ------------------------------------------------------------------ paths

    def normalize(self, raw: str) -> str:
        """Return the canonical registry key for ``raw``."""
        if raw in ("", "/"):
            return self.root_path
        rest = raw
        prefix = self.root_path.rstrip("/")
        if prefix and (rest == prefix or rest.startswith(prefix + "/")):
            rest = rest[len(prefix):]
        if rest.startswith("/"):
            rest = rest[1:]
        if rest.endswith("/"):
            rest = rest[:-1]
        if not rest:
            return self.root_path
        return join_path(self.root_path, rest)

    def segments(self, path: str) -> List[str]:
        """Root-relative command names leading to ``path``."""
        rest = self.normalize(path)[len(self.root_path):]
        return [s for s in rest.split("/") if s]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, path: str) -> bool:
        return self.normalize(path) in self._nodes

    def paths(self) -> List[str]:
        return sorted(self._nodes)

    def lookup(self, path: str) -> Optional[CommandNode]:
        return self._nodes.get(self.normalize(path))

    def _require(self, path: str) -> Tuple[str, CommandNode]:
        key = self.normalize(path)
        node = self._nodes.get(key)
        if node is None:
            raise CommandNotFoundError(path)
        return key, node

    # --------------------------------------------------------------- metadata

    def flags(self, path: str) -> List[Flag]:
        """Inherited flags then local flags, declaration order.

        A name declared in both scopes is listed twice.
        """
        node = self.lookup(path)
        if node is None:
            return []
        specs = [*node.inherited_flags, *node.local_flags]
        return [
            Flag(name=s.name, shorthand=s.shorthand, description=s.usage, kind=flag_kind(s))
            for s in specs
            if s.name not in HIDDEN_FLAGS
        ]

    def sub_commands(self, path: str) -> List[Command]:
        node = self.lookup(path)
        if node is None:
            return []
        base = self.normalize(path)
        subs = []
        for child in node.children:
            if child.hidden or not child.name:
                continue
            child_path = join_path(base, child.name)
            if child_path not in self._nodes:
                continue
            subs.append(self._project(child_path, child))
        return subs

    def is_runnable(self, path: str) -> bool:
        node = self.lookup(path)
        return node is not None and node.runnable

    def describe(self, path: str) -> CommandMetadata:
        key, node = self._require(path)
        return CommandMetadata(
            name=node.name,
            path=key,
            short_help=node.short_help,
            long_help=node.long_help,
            usage=node.usage,
            runnable=node.runnable,
            flags=self.flags(key),
            sub_commands=self.sub_commands(key),
        )

    def _project(self, path: str, node: CommandNode) -> Command:
        return Command(
            name=node.name,
            full_name=" ".join(s for s in path.split("/") if s),
            path=path,
            description=node.short_help,
            usage=node.usage,
        )

    # ----------------------------------------------------------------- search

    def search(self, pattern: str = "") -> List[Command]:
        """Commands whose name, help texts or usage contain ``pattern``.

        Case-insensitive; hidden commands included; sorted by path.
        """
        needle = pattern.lower()
        found = []
        for path, node in self._nodes.items():
            fields = (node.name, node.short_help, node.long_help, node.usage)
            if any(needle in (f or "").lower() for f in fields):
                found.append(self._project(path, node))
        found.sort(key=lambda c: c.path)
        return found

    # -------------------------------------------------------------- execution

    def execute(self, path: str, args: Sequence[str] = ()) -> ExecutionResult:
        """Run the command at ``path`` on a fresh tree with ``args``.

        ``args`` holds positional arguments followed by ``--name=value``
        tokens. Raises :class:`CommandNotFoundError` for unknown paths; every
        other failure is returned in the result.
        """
        key, _ = self._require(path)
        argv = self.segments(key) + list(args)
        try:
            output = self.factory().invoke(argv)
        except CommandExecutionError as exc:
            exc.path = key
            log_event(log, logging.INFO, "cmd_failed", cmd=key, reason=exc.message)
            return ExecutionResult(output="", error=exc)
        return ExecutionResult(output=output)
