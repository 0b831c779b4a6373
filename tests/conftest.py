"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch
from zoneinfo import ZoneInfo

import pytest

from config import Settings
from utils.datetime_utils import Clock

MANILA = ZoneInfo("Asia/Manila")

# Wednesday afternoon, shop time
FIXED_NOW = datetime(2025, 5, 7, 14, 30, tzinfo=MANILA)


@pytest.fixture(autouse=True)
def mock_settings():
    """Test settings for all tests."""
    test_settings = Settings(
        _env_file=None,
        supabase_url="https://test.supabase.co",
        supabase_key="test_key",
        environment="test",
        timezone="Asia/Manila",
        currency="PHP",
    )
    with patch("config.settings", test_settings):
        yield test_settings


@pytest.fixture
def now():
    """Fixed current instant."""
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW."""
    return Clock(tz=MANILA, fixed=FIXED_NOW)


@pytest.fixture
def raw_booking():
    """Factory for raw booking records as the web app stores them."""

    def _make(**overrides):
        record = {
            "id": "bk_001",
            "userId": "uid_juan",
            "firstName": "Juan",
            "lastName": "Dela Cruz",
            "carBrand": "Toyota",
            "carModel": "Vios",
            "plateNo": "ABC 1234",
            "reservationDate": "2025-05-07T09:00:00+08:00",
            "status": "confirmed",
            "services": [{"service": "Change Oil", "mechanic": "Pedro", "status": "CONFIRMED"}],
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client whose query builder chains onto itself."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    for method in ("select", "eq", "in_", "order", "limit", "update", "insert"):
        getattr(mock_table, method).return_value = mock_table
    return mock_client, mock_table


@pytest.fixture
def notifier():
    """Notifier whose async send methods are AsyncMocks."""
    from notifications import BookingNotifier

    return MagicMock(spec=BookingNotifier)


@pytest.fixture
def supabase_client(mock_supabase_client, clock, notifier):
    """SupabaseClient wired to the mocked Supabase client."""
    from db.supabase_client import SupabaseClient

    mock_client, _ = mock_supabase_client
    with patch("db.supabase_client.create_client", return_value=mock_client):
        client = SupabaseClient(clock=clock, notifier=notifier)
    client.client = mock_client
    return client
