from datetime import datetime, timedelta, timezone

import pytest

from jewel_pricing.catalog import MaterialCatalog, SQLiteMaterialCatalog
from jewel_pricing.db import get_connection, init_db
from jewel_pricing.pricing import PriceEngine
from jewel_pricing.providers.base import MarketRateProvider, PriceFeedError
from jewel_pricing.providers.market_feed import MarketPriceFeed


class FakeProvider(MarketRateProvider):
    """Returns a fixed value, or raises `error` when one is set."""

    provider_name = "fake"

    def __init__(self, value: float = 0.0, error: Exception | None = None):
        self.value = value
        self.error = error
        self.calls = 0

    def fetch_latest(self) -> float:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.value


class FrozenClock:
    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


class BrokenCatalog(MaterialCatalog):
    def __init__(self, error: Exception):
        self.error = error

    def get_metal_price_modifier(self, id_or_name):
        raise self.error

    def get_stone_price_per_carat(self, id_or_name):
        raise self.error


def failing_provider() -> FakeProvider:
    return FakeProvider(error=PriceFeedError("feed down"))


@pytest.fixture
def conn():
    connection = get_connection(":memory:")
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def gold_provider():
    return FakeProvider(9800)


@pytest.fixture
def rate_provider():
    return FakeProvider(83)


@pytest.fixture
def feed(gold_provider, rate_provider, clock):
    return MarketPriceFeed(gold_provider, rate_provider, clock=clock)


@pytest.fixture
def catalog(conn):
    return SQLiteMaterialCatalog(conn)


@pytest.fixture
def engine(catalog, feed):
    return PriceEngine(catalog, feed)
