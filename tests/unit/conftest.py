"""Shared fixtures for unit tests."""

import io

import pytest
from rich.console import Console


@pytest.fixture
def console() -> Console:
    """Console writing to a string buffer."""
    return Console(file=io.StringIO(), width=120, color_system=None)
