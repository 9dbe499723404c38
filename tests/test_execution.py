"""Execution bridge: fresh trees, output capture and error reporting."""

from concurrent.futures import ThreadPoolExecutor

import click
import pytest

from clibrowse.click_node import ClickNode, click_factory
from clibrowse.errors import CommandExecutionError, CommandNotFoundError
from clibrowse.registry import Registry


def test_demo_runs(registry):
    result = registry.execute("/fake/demo", ["--str=hello", "--int=5"])
    assert result.ok
    assert result.error is None
    assert "str: hello" in result.output
    assert "int: 5" in result.output
    assert "Fake command persistent pre run" in result.output


def test_missing_required_flag(registry):
    result = registry.execute("/fake/demo", [])
    assert not result.ok
    assert result.output == ""
    assert isinstance(result.error, CommandExecutionError)
    assert "--str" in result.error_message
    assert result.error.path == "/fake/demo"


def test_positional_args_then_flags(registry):
    result = registry.execute("/fake/demo", ["one", "two", "--str=x", "--global=g"])
    assert "args: [one two]" in result.output
    assert "global: g" in result.output


def test_repeated_flag_tokens(registry):
    result = registry.execute(
        "/fake/demo",
        ["--str=x", "--array=a", "--array=b", "--arraybool=true", "--arraybool=false", "--map=k=v"],
    )
    assert result.ok, result.error_message
    assert "array: [a b]" in result.output
    assert "arraybool: [true false]" in result.output
    assert "map: {'k': 'v'}" in result.output


def test_boolean_switch_from_form(registry):
    result = registry.execute("/fake/demo", ["--str=x", "--bool=true"])
    assert "bool: true" in result.output


def test_root_runs_without_sub_command(registry):
    result = registry.execute("/", [])
    assert result.output == "Fake command persistent pre run\nFake command run\n"


def test_empty_output():
    # The root callback always prints, so use a bare tree here.
    @click.group(name="t")
    def t():
        pass

    @t.command(name="quiet")
    def quiet():
        pass

    result = Registry(click_factory(t)).execute("/t/quiet")
    assert result.ok
    assert result.output == ""


def test_unknown_path(registry):
    with pytest.raises(CommandNotFoundError):
        registry.execute("/fake/missing", [])


def test_unknown_flag_fails_late(registry):
    result = registry.execute("/fake/empty", ["--bogus=1"])
    assert not result.ok
    assert "bogus" in result.error_message


def test_each_execution_uses_a_fresh_tree(registry, monkeypatch):
    built = []
    original = registry.factory

    def counting_factory():
        node = original()
        built.append(node)
        return node

    monkeypatch.setattr(registry, "factory", counting_factory)
    registry.execute("/fake/empty")
    registry.execute("/fake/empty")
    assert len(built) == 2
    assert built[0] is not built[1]
    assert all(node is not registry.lookup("/fake") for node in built)


def test_flag_defaults_reset_between_runs():
    def build():
        @click.command(name="count")
        @click.option("--n", type=int, default=0)
        def count(n):
            click.echo(f"n={n}")

        return count

    registry = Registry(click_factory(build))
    assert registry.execute("/count", ["--n=3"]).output == "n=3\n"
    assert registry.execute("/count").output == "n=0\n"


def test_concurrent_executions_do_not_leak(registry):
    def run(i):
        return i, registry.execute("/fake/demo", [f"--str=s{i}", f"--int={i}"])

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(run, range(40)))

    for i, result in results:
        assert result.ok, result.error_message
        assert f"int: {i}\n" in result.output
        assert f"str: s{i}\n" in result.output
        assert result.output.count("int: ") == 1


def test_invoke_through_node_directly():
    node = ClickNode(click.Command(name="x", callback=lambda: click.echo("hi")))
    assert node.invoke([]) == "hi\n"


def test_command_without_action_returns_help(registry):
    result = registry.execute("/fake/norun")
    assert result.ok
    assert result.output.startswith("Usage: fake norun [OPTIONS]")
    assert "--global" in result.output
