"""Shared fixtures for loadengine tests."""

import pytest

from tests.helpers import CountingOperation


@pytest.fixture
def fast_operation() -> CountingOperation:
    return CountingOperation(sleep_ms=5)


@pytest.fixture
def failing_operation() -> CountingOperation:
    return CountingOperation(sleep_ms=2, fail_when=lambda _: True)
