"""CoinGecko price provider for the current price and daily history.

The strict fetch_* methods raise on any upstream problem. The get_* methods
used by the orchestrator absorb those failures: they fall back to the last
cached response and then to a default, so the calculators always receive a
usable current price and a (possibly empty) history.
"""

import logging
import time
from datetime import date, datetime, timezone
from typing import Any

import httpx

from ...calculator.price_series import lookup_from_prices
from ...calculator.validation import is_valid_price, validate_price
from ...core.config import APIConfig
from ...core.exceptions import DataSourceError, InvalidPriceError, RateLimitError
from ...core.types import DataSource
from ..base import CachedProvider, RateLimiter
from ..cache import TTLCache

logger = logging.getLogger(__name__)


def _utc_day(timestamp_ms: Any) -> date | None:
    """UTC calendar day of a millisecond epoch timestamp, or None if unusable."""
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date()
    except (ValueError, OverflowError, OSError):
        return None


class CoinGeckoPriceProvider(CachedProvider):
    """Fetches current and historical daily prices from CoinGecko."""

    SOURCE = DataSource.COINGECKO
    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        coin_id: str = "ethereum-name-service",
        api_key: str | None = None,
        base_url: str | None = None,
        fallback_price: float = 10.0,
        timeout_seconds: float = 10.0,
        rate_limit_calls: int = 30,
        rate_limit_period: int = 60,
        cache_ttl_seconds: int = 900,
        cache: TTLCache | None = None,
    ):
        """
        Initialize CoinGecko price provider.

        Args:
            coin_id: CoinGecko token ID
            api_key: Optional CoinGecko demo API key
            base_url: API root (defaults to the public API)
            fallback_price: Price returned when no current price can be obtained
            timeout_seconds: HTTP request timeout
            rate_limit_calls: Rate limit per period
            rate_limit_period: Period in seconds
            cache_ttl_seconds: Freshness window for cached responses
            cache: Shared cache instance
        """
        super().__init__(
            cache=cache,
            cache_ttl_seconds=cache_ttl_seconds,
            rate_limiter=RateLimiter(rate_limit_calls, rate_limit_period),
        )
        self.coin_id = coin_id
        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.fallback_price = validate_price(fallback_price, field="fallback_price")
        self.timeout_seconds = timeout_seconds
        self.used_fallback_price = False

    @classmethod
    def from_config(
        cls, config: APIConfig, cache: TTLCache | None = None
    ) -> "CoinGeckoPriceProvider":
        """Build a provider from API configuration."""
        return cls(
            coin_id=config.coin_id,
            api_key=config.coingecko_api_key,
            base_url=config.coingecko_base_url,
            fallback_price=config.fallback_price,
            timeout_seconds=config.request_timeout_seconds,
            cache_ttl_seconds=config.cache_ttl_seconds,
            cache=cache,
        )

    def is_available(self) -> bool:
        """Check if CoinGecko API is available."""
        try:
            self.rate_limiter.acquire()
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.get(f"{self.base_url}/ping")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _make_request(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any] | list[Any]:
        """Make a rate-limited request to CoinGecko."""
        self.rate_limiter.acquire()
        start_time = time.time()

        params = dict(params or {})
        if self.api_key:
            params["x_cg_demo_api_key"] = self.api_key

        headers = {
            "Accept": "application/json",
            "User-Agent": "steward-token-calculator/0.1",
        }
        url = f"{self.base_url}{endpoint}"

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.get(url, params=params, headers=headers)

            duration_ms = int((time.time() - start_time) * 1000)

            if response.status_code == 429:
                self._record_audit(
                    action="fetch",
                    endpoint=endpoint,
                    success=False,
                    error_message="Rate limit exceeded",
                    duration_ms=duration_ms,
                )
                raise RateLimitError(
                    source=self.SOURCE.value,
                    retry_after_seconds=60,
                    endpoint=endpoint,
                )

            response.raise_for_status()
            data = response.json()

            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=True,
                duration_ms=duration_ms,
            )

            return data

        except httpx.HTTPStatusError as e:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=False,
                error_message=f"HTTP {e.response.status_code}",
            )
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"HTTP {e.response.status_code}",
                endpoint=endpoint,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=False,
                error_message=str(e),
            )
            raise DataSourceError(
                source=self.SOURCE.value,
                message=str(e),
                endpoint=endpoint,
            ) from e
        except ValueError as e:
            # Body was not JSON
            self._record_audit(
                action="fetch",
                endpoint=endpoint,
                success=False,
                error_message="Invalid JSON response",
            )
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"Invalid JSON response: {e}",
                endpoint=endpoint,
            ) from e

    def fetch_current_price(self) -> float:
        """
        Fetch the current USD price, bypassing the cache.

        Returns:
            Current price

        Raises:
            DataSourceError: On network failure or a malformed response
            InvalidPriceError: If the returned price fails the sanity bound
        """
        endpoint = "/simple/price"
        data = self._make_request(
            endpoint,
            params={"ids": self.coin_id, "vs_currencies": "usd"},
        )

        price = None
        if isinstance(data, dict):
            entry = data.get(self.coin_id)
            if isinstance(entry, dict):
                price = entry.get("usd")
        if price is None:
            raise DataSourceError(
                source=self.SOURCE.value,
                message=f"No USD price for {self.coin_id} in response",
                endpoint=endpoint,
            )

        return validate_price(price, field=f"{self.coin_id} current price")

    def fetch_historical_daily_prices(self, days_back: int) -> list[tuple[date, float]]:
        """
        Fetch daily prices for the last days_back days, bypassing the cache.

        CoinGecko's daily market chart returns one point per UTC midnight plus
        a final point for "now"; when two observations share a day the later
        one is kept. Invalid prices are dropped.

        Args:
            days_back: Number of days of history

        Returns:
            (day, price) pairs ordered by day

        Raises:
            DataSourceError: On network failure or a malformed response
        """
        if days_back < 1:
            raise ValueError("days_back must be at least 1")

        endpoint = f"/coins/{self.coin_id}/market_chart"
        data = self._make_request(
            endpoint,
            params={"vs_currency": "usd", "days": str(days_back), "interval": "daily"},
        )

        if not isinstance(data, dict) or not isinstance(data.get("prices"), list):
            raise DataSourceError(
                source=self.SOURCE.value,
                message="Invalid history data received",
                endpoint=endpoint,
            )

        observations = []
        dropped = 0
        for entry in data["prices"]:
            if not isinstance(entry, (list, tuple)) or len(entry) < 2:
                dropped += 1
                continue
            timestamp_ms, price = entry[0], entry[1]
            if not is_valid_price(price):
                dropped += 1
                continue
            day = _utc_day(timestamp_ms)
            if day is None:
                dropped += 1
                continue
            observations.append((day, float(price)))

        if dropped:
            logger.debug(f"[{self.SOURCE.value}] Dropped {dropped} invalid history entries")

        table = lookup_from_prices(observations)
        return sorted(table.items())

    def get_current_price(self) -> float:
        """
        Get the current price, never raising.

        Order of preference: fresh cache, live fetch, stale cache, fallback
        price. Sets used_fallback_price when the fallback is returned.
        """
        try:
            price, _ = self._cached_fetch(
                f"current:{self.coin_id}",
                self.fetch_current_price,
                recoverable=(DataSourceError, InvalidPriceError),
            )
        except (DataSourceError, InvalidPriceError) as e:
            logger.warning(
                f"[{self.SOURCE.value}] Current price unavailable ({e}), "
                f"using fallback ${self.fallback_price:.2f}"
            )
            self._record_audit(action="fallback", notes="default fallback price")
            self.used_fallback_price = True
            return self.fallback_price

        self.used_fallback_price = False
        return price

    def get_historical_daily_prices(self, days_back: int) -> list[tuple[date, float]]:
        """
        Get daily price history, never raising.

        Falls back to the last cached history, then to an empty list, which
        the price series builder treats as "project every day".
        """
        try:
            prices, _ = self._cached_fetch(
                f"history:{self.coin_id}:{days_back}",
                lambda: self.fetch_historical_daily_prices(days_back),
                recoverable=(DataSourceError,),
            )
        except DataSourceError as e:
            logger.warning(f"[{self.SOURCE.value}] Price history unavailable: {e}")
            self._record_audit(action="fallback", notes="empty history")
            return []
        return prices
