"""Shared fixtures: a fake transport and a session already logged in on it."""
from unittest.mock import MagicMock

import pytest

from lutronbridge.common import END_LINE
from lutronbridge.protocol.session import Session, SessionState


class MockTransport(MagicMock):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.written_data = []
        self.closed = False

    def write(self, data):
        self.written_data.append(bytes(data))
        return len(data)

    def is_closing(self):
        return self.closed

    def close(self):
        self.closed = True

    def written_lines(self):
        """Everything written, split on the line terminator."""
        return b''.join(self.written_data).split(END_LINE)[:-1]


@pytest.fixture
def mock_transport():
    return MockTransport()


@pytest.fixture
def session(mock_transport):
    session = Session(settle_delay=0)
    session.connection_made(mock_transport)
    session._state = SessionState.CONNECTED
    return session
