"""
clibrowse command-line interface.

    clibrowse serve --factory mypkg.cli:main      # browse mypkg's click tree
    clibrowse search deploy                       # list matching command paths
    clibrowse show /mytool/deploy                 # flags and sub-commands
    clibrowse run /mytool/deploy -- --env=prod    # run through the bridge
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .click_node import load_factory
from .logging_config import configure_logging
from .registry import Registry
from .settings import AppSettings

console = Console(highlight=False)

factory_option = click.option(
    "--factory",
    default=None,
    help="click command to browse, as 'package.module:attribute'",
)


def _settings(ctx: click.Context, **overrides) -> AppSettings:
    values = {k: v for k, v in {**ctx.obj, **overrides}.items() if v is not None}
    return AppSettings(**values)


def _registry(ctx: click.Context, factory: Optional[str]) -> Registry:
    settings = _settings(ctx, factory=factory)
    return Registry(load_factory(settings.factory))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="clibrowse")
@click.option("--log-level", default=None, help="Log level (override env)")
@click.option("--log-format", default=None, type=click.Choice(["json", "text"]))
@click.pass_context
def main(ctx, log_level, log_format) -> None:
    """clibrowse - browse and run a click command tree from the web."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    ctx.obj["log_format"] = log_format


@main.command("serve")
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.option("--timeout", "execute_timeout", type=float, default=None, help="Seconds before a run is abandoned")
@factory_option
@click.pass_context
def serve(ctx, host, port, execute_timeout, factory):
    """Start the web server."""
    from .server import BrowserServer

    settings = _settings(
        ctx, host=host, port=port, execute_timeout=execute_timeout, factory=factory
    )
    configure_logging(level=settings.log_level, fmt=settings.log_format)
    server = BrowserServer(Registry(load_factory(settings.factory)), settings)
    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        pass


@main.command("search")
@click.argument("pattern", required=False, default="")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@factory_option
@click.pass_context
def search(ctx, pattern, as_json, factory):
    """List commands matching PATTERN (all commands without one)."""
    commands = _registry(ctx, factory).search(pattern)
    if as_json:
        click.echo(json.dumps([c.model_dump() for c in commands], indent=2))
        return
    if not commands:
        console.print("No command found.")
        return
    table = Table(box=box.ROUNDED)
    table.add_column("Path", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Usage", style="dim")
    for c in commands:
        table.add_row(escape(c.path), escape(c.description), escape(c.usage))
    console.print(table)


@main.command("show")
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@factory_option
@click.pass_context
def show(ctx, path, as_json, factory):
    """Show help, flags and sub-commands of the command at PATH."""
    meta = _registry(ctx, factory).describe(path)
    if as_json:
        click.echo(meta.model_dump_json(indent=2))
        return
    console.print(f"[bold]{escape(meta.path)}[/bold]")
    if meta.short_help:
        console.print(escape(meta.short_help))
    console.print(f"usage: {escape(meta.usage)}")
    console.print(f"runnable: {'yes' if meta.runnable else 'no'}")
    if meta.flags:
        table = Table(title="Flags", box=box.SIMPLE)
        table.add_column("Flag", style="cyan", no_wrap=True)
        table.add_column("Short", no_wrap=True)
        table.add_column("Kind", no_wrap=True)
        table.add_column("Description")
        for flag in meta.flags:
            short = f"-{flag.shorthand}" if flag.shorthand else ""
            table.add_row(f"--{escape(flag.name)}", short, flag.kind.value, escape(flag.description))
        console.print(table)
    if meta.sub_commands:
        table = Table(title="Sub-commands", box=box.SIMPLE)
        table.add_column("Path", style="cyan", no_wrap=True)
        table.add_column("Description")
        for sub in meta.sub_commands:
            table.add_row(escape(sub.path), escape(sub.description))
        console.print(table)


@main.command("run", context_settings={"ignore_unknown_options": True})
@click.argument("path")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@factory_option
@click.pass_context
def run(ctx, path, args, factory):
    """Run the command at PATH with ARGS the way the web form does."""
    settings = _settings(ctx, factory=factory)
    configure_logging(level=settings.log_level, fmt=settings.log_format)
    result = Registry(load_factory(settings.factory)).execute(path, list(args))
    if not result.ok:
        raise result.error
    click.echo(result.output, nl=False)


if __name__ == "__main__":  # pragma: no cover
    main()
