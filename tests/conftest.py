"""Shared pytest fixtures for chatrelay tests."""
import sys
sys.dont_write_bytecode = True

from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402

from fakes import RecordingClient  # noqa: E402


@pytest.fixture
def platform():
    """Recording platform client with no failures configured."""
    return RecordingClient()


@pytest.fixture
def no_sleep():
    """Replace the typing delay wait. Yields the mock to inspect delays."""
    with patch(
        "chatrelay.messenger.sender_actions.sleep", new_callable=AsyncMock
    ) as sleep:
        yield sleep


@pytest.fixture(autouse=True)
def _reset_platform_client():
    """Drop the route module's cached client between tests."""
    import chatrelay.api.routes.tasks_messenger as tasks_module

    tasks_module._set_client(None)
    yield
    tasks_module._set_client(None)
