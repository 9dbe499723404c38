"""Map submitted form fields to an invocation argument list.

* every non-empty value under ``args`` becomes a positional argument, in
  submission order;
* every non-empty value under a key starting with ``flag`` becomes a
  ``--<key-without-prefix>=<value>`` token, so a multi-valued field turns into
  repeated tokens.

Flag names are not checked against the target command: an unknown flag is
rejected when the command runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Sequence, Tuple

from .errors import MalformedRequestError

ARGS_KEY = "args"
FLAG_PREFIX = "flag"


@dataclass
class Invocation:
    args: List[str] = field(default_factory=list)
    flags: List[str] = field(default_factory=list)

    @property
    def argv(self) -> List[str]:
        """Positional arguments first, then flag tokens."""
        return [*self.args, *self.flags]


def flag_token(name: str, value: str) -> str:
    return f"--{name}={value}"


def from_items(items: Iterable[Tuple[str, Any]]) -> Invocation:
    """Build an invocation from ordered ``(key, value)`` pairs."""
    inv = Invocation()
    for key, value in items:
        if not isinstance(key, str) or not isinstance(value, str):
            raise MalformedRequestError(f"field {key!r} is not a plain text value")
        if value == "":
            continue
        if key == ARGS_KEY:
            inv.args.append(value)
        elif key.startswith(FLAG_PREFIX):
            inv.flags.append(flag_token(key[len(FLAG_PREFIX):], value))
    return inv


def from_mapping(data: Mapping[str, Sequence[Any]]) -> Invocation:
    """Build an invocation from a ``key -> [values]`` mapping.

    A bare string is taken as a single value.
    """
    pairs = []
    for key, values in data.items():
        if isinstance(values, str):
            values = [values]
        pairs.extend((key, value) for value in values)
    return from_items(pairs)
