"""Synthetic price history for demos when no real history is available.

Produces a plausible-looking random series around a mock average. It is
served through the same get_historical_daily_prices interface as the real
provider, so the price series builder cannot tell the data is synthetic.
"""

import logging
import random
from datetime import date, datetime, timedelta, timezone

from ...calculator.validation import validate_price
from ...core.types import DataSource
from ..base import BaseProvider

logger = logging.getLogger(__name__)


class SyntheticHistoryProvider(BaseProvider):
    """Generates random daily prices around a mock average."""

    SOURCE = DataSource.SYNTHETIC

    def __init__(
        self,
        mock_average_price: float = 12.0,
        variation: float = 0.4,
        end_date: date | None = None,
        seed: int | None = None,
    ):
        """
        Initialize synthetic history provider.

        Args:
            mock_average_price: Centre of the generated prices
            variation: Total relative spread; 0.4 gives ±20% around the average
            end_date: Last generated day (default: today in UTC)
            seed: Seed for reproducible series
        """
        super().__init__()
        if not (0 <= variation < 2):
            raise ValueError("variation must be within [0, 2)")
        self.mock_average_price = validate_price(mock_average_price, field="mock_average_price")
        self.variation = variation
        self.end_date = end_date
        self._rng = random.Random(seed)

    def is_available(self) -> bool:
        return True

    def get_historical_daily_prices(
        self, days_back: int, end_date: date | None = None
    ) -> list[tuple[date, float]]:
        """
        Generate (day, price) pairs for the days_back days up to a last day.

        The last day is end_date if given, else the configured end_date, else
        today in UTC.
        """
        end = end_date or self.end_date or datetime.now(timezone.utc).date()

        prices = []
        for i in range(days_back - 1, -1, -1):
            day = end - timedelta(days=i)
            offset = (self._rng.random() - 0.5) * self.variation
            prices.append((day, self.mock_average_price * (1 + offset)))

        logger.info(
            f"Generated {len(prices)} synthetic prices around ${self.mock_average_price:.2f}"
        )
        self._record_audit(
            action="generate",
            notes=f"{len(prices)} synthetic daily prices",
        )
        return prices
