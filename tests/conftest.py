import pytest

from clibrowse.click_node import click_factory
from clibrowse.example import new_command
from clibrowse.registry import Registry


# ----------------------------------------------------------------------
# Registry over the sample "fake" tree
# ----------------------------------------------------------------------
@pytest.fixture
def factory():
    """Node factory building a fresh sample tree on every call."""
    return click_factory(new_command)


@pytest.fixture
def registry(factory):
    return Registry(factory)
