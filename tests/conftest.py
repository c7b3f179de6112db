"""Pytest configuration and fixtures for steward calculator tests."""

from datetime import date, timedelta

import pytest

from steward_calculator.core.config import CalculatorConfig
from steward_calculator.core.types import DataSource
from steward_calculator.providers.base import BaseProvider

WINDOW_START = date(2025, 1, 1)
WINDOW_END = date(2025, 7, 1)


def daily_prices(start: date, end: date, price: float) -> list[tuple[date, float]]:
    """Constant (day, price) pairs for every day in [start, end]."""
    days = (end - start).days + 1
    return [(start + timedelta(days=i), price) for i in range(days)]


class FakePriceProvider(BaseProvider):
    """In-memory stand-in for the CoinGecko provider."""

    SOURCE = DataSource.MANUAL

    def __init__(
        self,
        current_price: float = 10.0,
        history: list[tuple[date, float]] | None = None,
        used_fallback_price: bool = False,
    ):
        super().__init__()
        self.current_price = current_price
        self.history = history or []
        self.used_fallback_price = used_fallback_price
        self.days_requested: list[int] = []

    def is_available(self) -> bool:
        return True

    def get_current_price(self) -> float:
        self._record_audit(action="fetch", endpoint="current")
        return self.current_price

    def get_historical_daily_prices(self, days_back: int) -> list[tuple[date, float]]:
        self.days_requested.append(days_back)
        self._record_audit(action="fetch", endpoint="history")
        return list(self.history)


@pytest.fixture
def window() -> tuple[date, date]:
    """The default Term 6 pricing window."""
    return WINDOW_START, WINDOW_END


@pytest.fixture
def term_history() -> list[tuple[date, float]]:
    """Historical prices of $20 from Jan 1 through Mar 1, 2025 (60 days)."""
    return daily_prices(date(2025, 1, 1), date(2025, 3, 1), 20.0)


@pytest.fixture
def fake_provider(term_history) -> FakePriceProvider:
    """Provider with a $10 current price and 60 days of $20 history."""
    return FakePriceProvider(current_price=10.0, history=term_history)


@pytest.fixture
def default_config() -> CalculatorConfig:
    """Default calculator policy."""
    return CalculatorConfig()
