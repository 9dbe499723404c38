"""A small command tree used as the default browse target and in tests.

``new_command()`` returns a new tree on every call; the web server and the
registry use it as a factory.
"""

import click

from .click_node import PersistentGroup, PersistentOption


class KeyValue(click.ParamType):
    """``key=value`` pairs."""

    name = "key=value"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        key, sep, val = str(value).partition("=")
        if not sep or not key:
            self.fail(f"{value!r} is not a key=value pair", param, ctx)
        return key, val


def new_command() -> click.Group:
    @click.group(
        name="fake",
        cls=PersistentGroup,
        invoke_without_command=True,
        short_help="A fake program",
        help="This is a fake program to showcase browsing a click tree.",
    )
    @click.option("--global", "global_", cls=PersistentOption, default="", help="a global flag")
    @click.pass_context
    def root(ctx):
        click.echo("Fake command persistent pre run")
        if ctx.invoked_subcommand is None:
            click.echo("Fake command run")

    @click.command(name="demo", short_help="A demo command")
    @click.option("--str", "-s", "str_", required=True, help="a string flag (required)")
    @click.option("--int", "-i", "int_", type=int, default=0, show_default=True, help="an int flag")
    @click.option("--bool", "-b", "bool_", is_flag=True, help="a bool flag")
    @click.option("--array", "-a", multiple=True, help="a string array flag")
    @click.option("--arraybool", "-c", type=bool, multiple=True, help="a bool array flag")
    @click.option("--map", "-m", "map_", type=KeyValue(), multiple=True, help="a string to string map flag")
    @click.argument("args", nargs=-1)
    @click.pass_obj
    def demo(obj, str_, int_, bool_, array, arraybool, map_, args):
        click.echo(f"global: {obj.get('global_', '')}")
        click.echo(f"str: {str_}")
        click.echo(f"int: {int_}")
        click.echo(f"bool: {str(bool_).lower()}")
        click.echo(f"array: [{' '.join(array)}]")
        click.echo(f"arraybool: [{' '.join(str(b).lower() for b in arraybool)}]")
        click.echo(f"map: {dict(map_)}")
        click.echo(f"args: [{' '.join(args)}]")

    @click.command(name="empty", short_help="A command that does nothing")
    def empty():
        pass

    norun = click.Command(name="norun", short_help="A command with no run", callback=None)

    root.add_command(demo)
    root.add_command(empty)
    root.add_command(norun)
    return root
