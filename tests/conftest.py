"""Shared test fixtures."""
import os
import sys
import pytest
import tempfile

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.alerts import AlertConfig, DeliveryResult, MetricSnapshot
from models.database import Database
from alerts.store import InMemoryAlertStore
from datetime import datetime, timezone


class FakeSender:
    """Records every message; optionally fails."""

    def __init__(self, fail=False, error="boom"):
        self.fail = fail
        self.error = error
        self.sent = []

    def send(self, text, chat_id=None):
        self.sent.append((text, chat_id))
        if self.fail:
            return DeliveryResult(success=False, error=self.error)
        return DeliveryResult(success=True, message_id=str(len(self.sent)))


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    db = Database(db_path)
    db.connect()
    yield db
    db.close()
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


@pytest.fixture
def enabled_config():
    return AlertConfig(telegram_enabled=True, telegram_chat_id="12345")


@pytest.fixture
def memory_store(enabled_config):
    return InMemoryAlertStore([enabled_config])


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def calm_snapshot():
    """Nothing extreme: no rule should fire."""
    return MetricSnapshot(
        fear_greed=50, fear_greed_label="Neutral", funding_rate=0.01,
        long_short_ratio=1.2, long_percent=54.5, open_interest_usd=25e9,
        price=67500.0, price_change_24h=1.5,
        overall_signal="neutral", overall_score=0,
        timestamp=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def fear_snapshot():
    """Extreme fear plus hot funding."""
    return MetricSnapshot(
        fear_greed=10, fear_greed_label="Extreme Fear", funding_rate=0.2,
        long_short_ratio=1.2, price=58000.0, price_change_24h=-4.0,
        overall_signal="buy", overall_score=25,
        timestamp=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def rising_prices():
    return [100 + i for i in range(60)]


@pytest.fixture
def falling_prices():
    return [200 - i for i in range(60)]


@pytest.fixture
def flat_prices():
    return [100.0] * 60
