"""Shared test fixtures."""

from __future__ import annotations

import time
from collections.abc import Callable

import pytest

from hotbuild.backends.inprocess import InProcessCompiler, InProcessProcesses
from hotbuild.config import Settings


@pytest.fixture
def compiler() -> InProcessCompiler:
    """Provide an in-process compiler for tests that drive builds."""
    return InProcessCompiler()


@pytest.fixture
def processes() -> InProcessProcesses:
    """Provide an in-process process backend that only tracks liveness."""
    return InProcessProcesses()


@pytest.fixture
def settings() -> Settings:
    """Settings with short windows so threaded tests finish quickly."""
    return Settings(
        debounce_window=0.1,
        grace_period=0.5,
        poll_interval=0.01,
        initial_build=False,
    )


@pytest.fixture
def wait_for() -> Callable[..., None]:
    def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                raise AssertionError("condition not met before timeout")
            time.sleep(0.01)

    return _wait_for
