from datetime import datetime

import pytest

from app.core.dates import shop_tz
from app.models.db_models import UserProfile


@pytest.fixture
def at():
    """Build an aware datetime in the shop timezone."""
    def build(year, month, day, hour=9, minute=0):
        return datetime(year, month, day, hour, minute, tzinfo=shop_tz())
    return build


@pytest.fixture
def customer():
    return UserProfile(id="user-1", email="somchai@example.com", role="customer")


@pytest.fixture
def admin_user():
    return UserProfile(id="admin-1", email="admin@example.com", role="admin")
