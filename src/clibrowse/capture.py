"""Per-execution stdout capture.

Commands write with ``click.echo``/``print`` to whatever ``sys.stdout`` is.
Swapping ``sys.stdout`` per call (as ``contextlib.redirect_stdout`` does) is
process wide, so two executions running on different threads would interleave
their output. Instead a :class:`RoutedStream` is installed once and every write
goes to the buffer bound to the current context, falling back to the original
stream outside of a capture.
"""

from __future__ import annotations

import io
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, TextIO

_buffer: ContextVar[Optional[io.StringIO]] = ContextVar("clibrowse_stdout", default=None)
_install_lock = threading.Lock()


class RoutedStream(io.TextIOBase):
    """Text stream proxy dispatching writes on the active capture buffer."""

    def __init__(self, fallback: TextIO):
        super().__init__()
        self.fallback = fallback

    def _target(self) -> TextIO:
        buf = _buffer.get()
        return buf if buf is not None else self.fallback

    # click inspects these to decide whether the stream can be used as is.
    @property
    def encoding(self) -> str:
        return getattr(self.fallback, "encoding", None) or "utf-8"

    @property
    def errors(self) -> str:
        return getattr(self.fallback, "errors", None) or "strict"

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        if _buffer.get() is not None:
            return False
        return bool(getattr(self.fallback, "isatty", lambda: False)())

    def write(self, s: str) -> int:
        if not isinstance(s, str):
            raise TypeError(f"write() argument must be str, not {type(s).__name__}")
        return self._target().write(s)

    def flush(self) -> None:
        self._target().flush()

    def fileno(self) -> int:
        return self.fallback.fileno()


def _install() -> None:
    with _install_lock:
        if not isinstance(sys.stdout, RoutedStream):
            sys.stdout = RoutedStream(sys.stdout)


@contextmanager
def capture_stdout() -> Iterator[io.StringIO]:
    """Collect everything written to stdout in this context into a buffer."""
    _install()
    buf = io.StringIO()
    token = _buffer.set(buf)
    try:
        yield buf
    finally:
        _buffer.reset(token)
