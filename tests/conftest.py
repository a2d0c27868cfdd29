"""Shared pytest fixtures for Wisp tests."""

from collections.abc import Callable
from textwrap import dedent

import pytest

from wisp.core.program import run_source
from wisp.core.runtime import DummyContext


@pytest.fixture
def context() -> DummyContext:
    """Return a context that captures program output."""
    return DummyContext()


@pytest.fixture
def run_program() -> Callable[[str], str]:
    """Return a helper that runs program text and returns its output."""

    def _run(source: str) -> str:
        context = DummyContext()
        run_source(dedent(source).lstrip("\n"), context=context)
        return context.getvalue()

    return _run
