"""Main orchestrator for the steward token calculation.

Coordinates the price provider and the calculators to produce a complete
TokenCalculation for a role:

    current price + history -> PriceSeries -> average price
    annual compensation / average price -> total tokens
    total tokens + vesting policy -> VestingSchedule
"""

import logging
from datetime import date, datetime, timezone

from .calculator.allocation import calc_current_value, calc_price_change, calc_token_allocation
from .calculator.price_series import PriceSeriesBuilder, lookup_from_prices
from .calculator.vesting import (
    VestingScheduler,
    next_vesting_milestone,
    tokens_available_at,
    vesting_progress,
)
from .core.config import APIConfig, CalculatorConfig, VestingPolicy, get_config
from .core.models import (
    AuditEntry,
    DataQualityFlag,
    PriceSeries,
    TokenCalculation,
    VestingSchedule,
)
from .providers.cache import TTLCache
from .providers.price.coingecko_price import CoinGeckoPriceProvider
from .providers.price.synthetic import SyntheticHistoryProvider

logger = logging.getLogger(__name__)

# Extra days fetched beyond the window so the first day is always covered
HISTORY_BUFFER_DAYS = 2


def build_vesting_schedule(
    total_tokens: float,
    policy: VestingPolicy,
    scheduler: VestingScheduler | None = None,
) -> VestingSchedule:
    """Generate a vesting schedule for a token amount under a vesting policy."""
    scheduler = scheduler or VestingScheduler()
    return scheduler.generate_schedule(
        total_tokens=total_tokens,
        start_date=policy.start_date,
        distribution_date=policy.distribution_date,
        end_date=policy.end_date,
        duration_months=policy.duration_months,
        distribution_vested_fraction=policy.distribution_vested_fraction,
    )


class StewardCalculatorOrchestrator:
    """Orchestrates price fetching, averaging, allocation and vesting."""

    def __init__(
        self,
        config: CalculatorConfig | None = None,
        api_config: APIConfig | None = None,
        price_provider: CoinGeckoPriceProvider | None = None,
        history_fallback: SyntheticHistoryProvider | None = None,
        cache: TTLCache | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Calculator policy (window, vesting, roles); defaults if None
            api_config: API settings (uses environment if not provided)
            price_provider: Price source; a CoinGecko provider if None
            history_fallback: Provider consulted only when the price provider
                returns no history at all; its series ends on the as_of date
            cache: Process-wide cache shared with the default price provider
        """
        self.config = config or CalculatorConfig()

        if price_provider is None:
            api_config = api_config or get_config()
            cache = cache if cache is not None else TTLCache(api_config.cache_ttl_seconds)
            price_provider = CoinGeckoPriceProvider.from_config(api_config, cache=cache)
        self.price_provider = price_provider
        self.history_fallback = history_fallback

        self.series_builder = PriceSeriesBuilder()
        self.vesting_scheduler = VestingScheduler()

        self._quality_flags: list[DataQualityFlag] = []

    def _add_quality_flag(
        self,
        field: str,
        issue: str,
        severity: str = "warning",
        suggestion: str | None = None,
    ) -> None:
        """Add a data quality flag."""
        self._quality_flags.append(
            DataQualityFlag(field=field, issue=issue, severity=severity, suggestion=suggestion)
        )

    def _collect_audit_trail(self) -> list[AuditEntry]:
        entries = self.price_provider.get_audit_trail()
        if self.history_fallback is not None:
            entries.extend(self.history_fallback.get_audit_trail())
        return sorted(entries, key=lambda e: e.timestamp)

    def _days_to_fetch(self, as_of: date) -> int:
        """Days of history needed to cover the window up to as_of."""
        window = self.config.price_window
        if as_of < window.start:
            return 0
        # Upstream counts back from today, so reach back to window.start
        return (as_of - window.start).days + 1 + HISTORY_BUFFER_DAYS

    def build_price_series(self, as_of: date | None = None) -> PriceSeries:
        """
        Fetch prices and build the series for the configured window.

        Args:
            as_of: Reference "today" (default: current UTC date)

        Returns:
            PriceSeries over the configured price window
        """
        as_of = as_of or datetime.now(timezone.utc).date()
        window = self.config.price_window
        self._quality_flags = []

        current_price = self.price_provider.get_current_price()
        if getattr(self.price_provider, "used_fallback_price", False):
            self._add_quality_flag(
                "current_price",
                f"Live price unavailable, using fallback ${current_price:.2f}",
                suggestion="Retry later or check network access to the price API",
            )

        history: list[tuple[date, float]] = []
        days_back = self._days_to_fetch(as_of)
        if days_back > 0:
            logger.info(f"Fetching {days_back} days of price history")
            history = self.price_provider.get_historical_daily_prices(days_back)

            if not history and self.history_fallback is not None:
                logger.warning("No price history available, using demo fallback history")
                history = self.history_fallback.get_historical_daily_prices(
                    days_back, end_date=as_of
                )
                self._add_quality_flag(
                    "price_history",
                    "Historical prices are synthetic demo data",
                    severity="error",
                )
        else:
            logger.info(f"Price window starts {window.start}, after {as_of}: fully projected")

        series = self.series_builder.build(
            current_price=current_price,
            historical_lookup=lookup_from_prices(history),
            start=window.start,
            end=window.end,
            as_of=as_of,
        )

        if series.missing_historical_dates:
            self._add_quality_flag(
                "price_history",
                f"{len(series.missing_historical_dates)} past day(s) had no historical "
                f"price and were projected at the current price",
                severity="info" if history else "warning",
            )

        return series

    def build_schedule(self, total_tokens: float) -> VestingSchedule:
        """Generate the vesting schedule for a token amount under the configured policy."""
        return build_vesting_schedule(total_tokens, self.config.vesting, self.vesting_scheduler)

    def calculate_for_series(
        self,
        series: PriceSeries,
        role_id: str | None = None,
        as_of: date | None = None,
    ) -> TokenCalculation:
        """
        Compute a role's allocation and vesting from an existing price series.

        Args:
            series: Price series to take the average from
            role_id: Configured role id (default role if None)
            as_of: Reference date for progress and availability

        Returns:
            TokenCalculation

        Raises:
            ConfigurationError: If the role is not configured
        """
        as_of = as_of or datetime.now(timezone.utc).date()
        role = self.config.get_role(role_id)

        total_tokens = calc_token_allocation(role.annual_compensation, series.average_price)
        schedule = self.build_schedule(total_tokens)

        logger.info(
            f"{role.name}: ${role.annual_compensation:,.0f} / ${series.average_price:.4f} "
            f"= {total_tokens:,.4f} tokens"
        )

        return TokenCalculation(
            role=role,
            price_series=series,
            total_tokens=total_tokens,
            current_value=calc_current_value(total_tokens, series.average_price),
            vesting_schedule=schedule,
            tokens_available_now=tokens_available_at(schedule, as_of),
            vesting_progress=vesting_progress(schedule, as_of),
            next_milestone=next_vesting_milestone(schedule, as_of),
            price_change_pct=calc_price_change(
                series.current_price_snapshot, series.average_price
            ),
            used_fallback_price=getattr(self.price_provider, "used_fallback_price", False),
            quality_flags=list(self._quality_flags),
            audit_trail=self._collect_audit_trail(),
        )

    def calculate(self, role_id: str | None = None, as_of: date | None = None) -> TokenCalculation:
        """Fetch prices and compute the full estimate for one role."""
        as_of = as_of or datetime.now(timezone.utc).date()
        # Validate the role before doing any network work
        self.config.get_role(role_id)
        series = self.build_price_series(as_of=as_of)
        return self.calculate_for_series(series, role_id=role_id, as_of=as_of)

    def calculate_all(self, as_of: date | None = None) -> dict[str, TokenCalculation]:
        """Compute estimates for every configured role from one price series."""
        as_of = as_of or datetime.now(timezone.utc).date()
        series = self.build_price_series(as_of=as_of)
        return {
            role_id: self.calculate_for_series(series, role_id=role_id, as_of=as_of)
            for role_id in self.config.roles
        }
