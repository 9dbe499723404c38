"""Error types for clibrowse with friendly, actionable messages.

Every error is a :class:`click.ClickException` so the command-line interface
prints it with its hint, while the web server maps each class to an HTTP
status code.
"""

from __future__ import annotations

from typing import Optional

import click


class ClibrowseError(click.ClickException):
    """Base class for all clibrowse errors."""

    #: Prefix shown at the beginning of every error line
    emoji: str = "❌"

    #: HTTP status the web server answers with
    status_code: int = 500

    #: Short, actionable suggestion shown after the main message.
    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint

    @property
    def formatted_message(self) -> str:
        lines = [f"{self.emoji}  {click.style(self.message, fg='red', bold=True)}"]
        if self.hint:
            lines.append(click.style(f"💡 {self.hint}", fg="yellow"))
        return "\n".join(lines)

    def show(self, file=None) -> None:
        click.echo(self.formatted_message, err=True, file=file)


class CommandNotFoundError(ClibrowseError):
    """Raised when a path does not resolve to any registered command."""

    emoji = "🔍"
    status_code = 404

    def __init__(self, path: str):
        self.path = path
        hint = f"Run {click.style('clibrowse search', fg='cyan')} to list the known command paths."
        super().__init__(f"command not found: {path}", hint)


class CommandExecutionError(ClibrowseError):
    """The underlying command failed; the message is the command's own."""

    emoji = "💥"
    status_code = 422

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class MalformedRequestError(ClibrowseError):
    """Raised when submitted form data cannot be mapped to an invocation."""

    emoji = "🚫"
    status_code = 400

    def __init__(self, details: str):
        super().__init__(f"Malformed request – {details}")


class FactoryLoadError(ClibrowseError):
    """Raised when the configured command factory cannot be loaded."""

    emoji = "🔧"

    def __init__(self, spec: str, details: str):
        self.spec = spec
        hint = (
            f"Pass {click.style('--factory package.module:attribute', fg='cyan')} "
            "pointing at a click command or a function returning one."
        )
        super().__init__(f"Cannot load command factory {spec!r} – {details}", hint)
