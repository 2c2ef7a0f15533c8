"""
Pytest configuration and shared fixtures.

This module loads environment variables from .env and provides a fake
price source and a fixed clock so fare tests are deterministic.
"""
import pytest
from datetime import datetime
from pathlib import Path

# Load .env file before any imports that might use settings
from dotenv import load_dotenv

# Load .env from backend directory
backend_dir = Path(__file__).parent.parent
env_file = backend_dir / ".env"
if env_file.exists():
    load_dotenv(env_file)

from fare_estimator import TrainTicketEstimator
from price_source import PRICE_UNAVAILABLE

# Routes the fake price source cannot quote
UNKNOWN_CITY = "Bordeaos"


class FakePriceSource:
    """Price source quoting a fixed fare and recording every call."""

    def __init__(self, price: float):
        self.price = price
        self.calls = []

    async def get_price_estimation(self, origin, destination, departure):
        self.calls.append((origin, destination, departure))
        if UNKNOWN_CITY in (origin, destination):
            return PRICE_UNAVAILABLE
        return self.price


@pytest.fixture
def ticket_price():
    """Base fare quoted by the fake price source."""
    return 23.0


@pytest.fixture
def now():
    """The moment every estimate in a test runs at."""
    return datetime(2030, 5, 10, 8, 30)


@pytest.fixture
def unknown_city():
    """A city the fake price source has no quote for."""
    return UNKNOWN_CITY


@pytest.fixture
def price_source(ticket_price):
    """Create a fresh fake price source for each test."""
    return FakePriceSource(ticket_price)


@pytest.fixture
def estimator(price_source, now):
    """Create an estimator on the fake price source with a fixed clock."""
    return TrainTicketEstimator(price_source=price_source, clock=lambda: now)
