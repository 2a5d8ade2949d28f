"""Fixtures for the domain service tests."""

from __future__ import annotations

import pytest

from feedclient.session import FeedSession


@pytest.fixture
def make_session(client_config, credentials, cache, backend):
    """Build a FeedSession wired to the fake backend and the shared stores."""

    def _make() -> FeedSession:
        return FeedSession(
            client_config, credentials=credentials, cache=cache, transport=backend.transport
        )

    return _make
