"""Global test fixtures."""
import logging

import pytest

from tests.fakes import T0, FakeBlockFetcher, FakeReleaseFetcher, ScriptedCompletion


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Drop handlers installed by setup_logging() between tests."""
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])


@pytest.fixture
def target_time():
    """One hour after the latest block of the default fake sample."""
    return T0.replace(hour=13, minute=10)


@pytest.fixture
def releases():
    return FakeReleaseFetcher()


@pytest.fixture
def blocks():
    return FakeBlockFetcher()


@pytest.fixture
def completion():
    return ScriptedCompletion("- Added EIP-3855 support\n- Fixed IBC transfer callbacks")
