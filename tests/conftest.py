"""Pytest fixtures for brec tests."""

import pytest

from brec.shell import get_default_output, set_default_output


@pytest.fixture(autouse=True)
def restore_default_output():
    """Undo any change a test (or a CLI invocation) makes to the sh() output mode."""
    original = get_default_output()
    yield
    set_default_output(original)
