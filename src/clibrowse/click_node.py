"""
click implementation of :class:`~clibrowse.nodes.CommandNode`.

Besides the adapter itself this module provides:

* :class:`PersistentOption` / :class:`PersistentGroup` - options declared once
  on a group and accepted by every command below it. Their value is stored in
  ``ctx.obj[<name>]``. These are what a node reports as its inherited flags.
* :func:`load_factory` - resolve ``"package.module:attribute"`` into a factory
  producing a fresh tree on every call.
"""

from __future__ import annotations

import copy
import functools
import importlib
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import click
from click.core import ParameterSource

from .capture import capture_stdout
from .errors import CommandExecutionError, FactoryLoadError
from .nodes import CommandNode, FlagSpec, NodeFactory

log = logging.getLogger(__name__)

_TRUE = {"1", "true", "t", "yes", "y", "on"}
_FALSE = {"0", "false", "f", "no", "n", "off"}


class PersistentOption(click.Option):
    """An option inherited by every sub-command of the group declaring it."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("expose_value", False)
        super().__init__(*args, **kwargs)

    def handle_parse_result(self, ctx: click.Context, opts: Any, args: List[str]):
        value, args = super().handle_parse_result(ctx, opts, args)
        store = ctx.ensure_object(dict)
        source = ctx.get_parameter_source(self.name)
        explicit = source not in (None, ParameterSource.DEFAULT, ParameterSource.DEFAULT_MAP)
        # A deeper command sees the option again; keep a value given higher up.
        if explicit or self.name not in store:
            store[self.name] = value
        return value, args


class PersistentGroup(click.Group):
    """Group propagating its persistent options to commands added below it.

    Persistent options must be declared before sub-commands are added.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.inherited_params: List[click.Parameter] = []

    def persistent_params(self) -> List[click.Parameter]:
        own = [p for p in self.params if isinstance(p, PersistentOption)]
        return self.inherited_params + [p for p in own if p not in self.inherited_params]

    def add_command(self, cmd: click.Command, name: Optional[str] = None) -> None:
        super().add_command(cmd, name)
        _inherit(cmd, self.persistent_params())


def _inherit(cmd: click.Command, params: Sequence[click.Parameter]) -> None:
    for param in params:
        if not any(p is param for p in cmd.params):
            cmd.params.append(param)
    if isinstance(cmd, PersistentGroup):
        for param in params:
            if not any(p is param for p in cmd.inherited_params):
                cmd.inherited_params.append(param)
        params = cmd.persistent_params()
    if isinstance(cmd, click.Group):
        for sub in cmd.commands.values():
            _inherit(sub, params)


def _long_name(param: click.Option) -> str:
    for opt in param.opts:
        if opt.startswith("--"):
            return opt[2:]
    return ""


def _shorthand(param: click.Option) -> str:
    for opt in param.opts:
        if len(opt) == 2 and opt[0] == "-" and opt[1] != "-":
            return opt[1]
    return ""


def flag_spec(param: click.Option) -> FlagSpec:
    if param.is_flag and param.is_bool_flag:
        type_name = "boolean"
    else:
        type_name = getattr(param.type, "name", "") or type(param.type).__name__
    return FlagSpec(
        name=_long_name(param),
        shorthand=_shorthand(param),
        usage=param.help or "",
        type_name=type_name,
        multiple=bool(param.multiple) or param.nargs != 1,
    )


def _descend(root: click.Command, argv: Sequence[str]) -> Tuple[List[click.Command], int]:
    """Follow the leading sub-command names of ``argv`` from ``root``.

    Returns the commands passed through, ``root`` first, and the index of the
    first token that is not a sub-command name.
    """
    chain, i = [root], 0
    while isinstance(chain[-1], click.Group) and i < len(argv) and argv[i] in chain[-1].commands:
        chain.append(chain[-1].commands[argv[i]])
        i += 1
    return chain, i


def _rewrite_switches(root: click.Command, argv: List[str]) -> List[str]:
    """Turn ``--switch=true`` into ``--switch`` for boolean switches.

    click switches take no value, while the form layer always emits
    ``--name=value``.
    """
    chain, i = _descend(root, argv)
    cmd = chain[-1]

    switches: Dict[str, click.Option] = {}
    for param in cmd.params:
        if isinstance(param, click.Option) and param.is_flag and param.is_bool_flag:
            for opt in [*param.opts, *param.secondary_opts]:
                if opt.startswith("--"):
                    switches[opt] = param
    if not switches:
        return argv

    out = argv[:i]
    rest = argv[i:]
    for j, token in enumerate(rest):
        if token == "--":
            out.extend(rest[j:])
            break
        opt, sep, value = token.partition("=")
        param = switches.get(opt) if sep else None
        lowered = value.strip().lower()
        if param is None or lowered not in _TRUE | _FALSE:
            out.append(token)
        elif lowered in _TRUE:
            out.append(opt)
        else:
            counterpart = param.secondary_opts if opt in param.opts else param.opts
            if counterpart:
                out.append(counterpart[0])
    return out


class ClickNode(CommandNode):
    """Adapter exposing a ``click.Command`` as a command node."""

    def __init__(
        self,
        command: click.Command,
        name: Optional[str] = None,
        parents: Sequence["ClickNode"] = (),
    ) -> None:
        self.command = command
        self._name = name if name is not None else (command.name or "")
        self.parents = tuple(parents)
        self._children: Optional[List[ClickNode]] = None
        self._help_suppressed = bool(self.parents and self.parents[-1]._help_suppressed)

    @property
    def name(self) -> str:
        return self._name

    @property
    def short_help(self) -> str:
        return self.command.get_short_help_str(limit=120)

    @property
    def long_help(self) -> str:
        return self.command.help or ""

    @property
    def usage(self) -> str:
        ctx = click.Context(self.command, info_name=self.name)
        pieces = self.command.collect_usage_pieces(ctx)
        return " ".join([self.name, *pieces]).strip()

    @property
    def hidden(self) -> bool:
        return bool(getattr(self.command, "hidden", False))

    @property
    def runnable(self) -> bool:
        if self.command.callback is None:
            return False
        if isinstance(self.command, click.Group):
            return bool(self.command.invoke_without_command)
        return True

    def _options(self) -> List[click.Option]:
        return [p for p in self.command.params if isinstance(p, click.Option)]

    def _ancestor_persistent(self) -> List[click.Parameter]:
        found: List[click.Parameter] = []
        for parent in self.parents:
            found.extend(p for p in parent.command.params if isinstance(p, PersistentOption))
        return found

    @property
    def inherited_flags(self) -> List[FlagSpec]:
        inherited = self._ancestor_persistent()
        return [flag_spec(p) for p in self._options() if any(p is q for q in inherited)]

    @property
    def local_flags(self) -> List[FlagSpec]:
        inherited = self._ancestor_persistent()
        return [flag_spec(p) for p in self._options() if not any(p is q for q in inherited)]

    @property
    def children(self) -> List["ClickNode"]:
        if self._children is None:
            subs: Dict[str, click.Command] = {}
            if isinstance(self.command, click.Group):
                subs = self.command.commands
            lineage = self.parents + (self,)
            self._children = [
                ClickNode(cmd, name=name, parents=lineage)
                for name, cmd in subs.items()
                if not (self._help_suppressed and name == "help")
            ]
        return self._children

    def suppress_help_command(self) -> None:
        self._help_suppressed = True
        self._children = None

    def _help_text(self, chain: List[click.Command], names: List[str]) -> str:
        ctx: Optional[click.Context] = None
        for cmd, info_name in zip(chain, names):
            ctx = click.Context(cmd, info_name=info_name, parent=ctx)
        return chain[-1].get_help(ctx) + "\n"

    def invoke(self, argv: Sequence[str]) -> str:
        chain, depth = _descend(self.command, argv)
        target = chain[-1]
        # A command without an action answers with its help, like `--help`.
        if target.callback is None and not isinstance(target, click.Group):
            return self._help_text(chain, [self.name or "cli", *argv[:depth]])
        args = _rewrite_switches(self.command, list(argv))
        with capture_stdout() as buf:
            try:
                self.command.main(
                    args=args,
                    prog_name=self.name or "cli",
                    standalone_mode=False,
                )
            except click.ClickException as exc:
                raise CommandExecutionError(exc.format_message()) from exc
            except click.exceptions.Abort as exc:
                raise CommandExecutionError("Aborted!") from exc
            except SystemExit as exc:
                if exc.code not in (None, 0):
                    raise CommandExecutionError(f"exit status {exc.code}") from exc
            except Exception as exc:
                log.debug("command action raised", exc_info=True)
                raise CommandExecutionError(str(exc) or type(exc).__name__) from exc
        return buf.getvalue()


def click_factory(target: Any, spec: Optional[str] = None) -> NodeFactory:
    """Wrap a click command, or a function returning one, as a node factory."""
    label = spec or repr(target)
    if isinstance(target, click.Command):

        def build() -> CommandNode:
            return ClickNode(copy.deepcopy(target))

        return build

    if callable(target):

        def build() -> CommandNode:
            cmd = target()
            if not isinstance(cmd, click.Command):
                raise FactoryLoadError(label, f"returned {type(cmd).__name__}, not a click command")
            return ClickNode(cmd)

        return build

    raise FactoryLoadError(label, f"{type(target).__name__} is neither a click command nor callable")


def load_factory(spec: str) -> NodeFactory:
    """Import ``package.module:attribute`` and return a node factory for it."""
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise FactoryLoadError(spec, "expected 'package.module:attribute'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise FactoryLoadError(spec, str(exc)) from exc
    try:
        target = functools.reduce(getattr, attr.split("."), module)
    except AttributeError as exc:
        raise FactoryLoadError(spec, str(exc)) from exc
    return click_factory(target, spec)
