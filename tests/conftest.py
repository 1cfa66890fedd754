import pytest

from core.dispatcher import ToolDispatcher
from core.models import Credentials

FIXED_NOW = 1_700_000_000


class FakeTransport:
    """Records requests instead of sending them."""

    def __init__(self, reply=None):
        self.reply = reply if reply is not None else {}
        self.sent = []

    def send(self, request):
        self.sent.append(request)
        return self.reply


@pytest.fixture
def credentials():
    return Credentials(api_key="test-api-key", secret="test-secret")


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def dispatcher(credentials, transport, fixed_clock):
    return ToolDispatcher(credentials, transport=transport, clock=fixed_clock)
