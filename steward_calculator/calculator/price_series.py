"""Price series builder - the averaging window behind the token allocation.

Builds one price per calendar day over a closed window by blending real
historical observations with a forward projection:
- a day with a historical observation uses that price
- any other day is projected at the current price snapshot

The window average is the plain mean over every day, so projected days
weigh exactly as much as historical ones. No rounding is applied here.
"""

import logging
import math
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime, time, timedelta, timezone

from ..core.exceptions import InvalidWindowError
from ..core.models import CalculationPeriod, PricePoint, PriceSeries
from .validation import is_valid_price, validate_price

logger = logging.getLogger(__name__)

HistoricalLookup = Callable[[date], float | None]


def lookup_from_prices(prices: Iterable[tuple[date, float]]) -> dict[date, float]:
    """
    Build a day -> price mapping from (day, price) pairs.

    When several observations fall on the same day the last one wins,
    matching the order a provider returns them in.
    """
    table: dict[date, float] = {}
    for day, price in prices:
        table[day] = price
    return table


def calculate_average(prices: Iterable[float]) -> float:
    """
    Mean of the valid prices in an iterable.

    Invalid prices are ignored; an input with no valid prices averages to 0.0.
    """
    valid = [p for p in prices if is_valid_price(p)]
    if not valid:
        return 0.0
    return sum(valid) / len(valid)


def inclusive_day_count(start: date, end: date) -> int:
    """Number of calendar days in [start, end]."""
    return (end - start).days + 1


def _day_timestamp(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class PriceSeriesBuilder:
    """Builds complete daily price series over a pricing window."""

    def build(
        self,
        current_price: float,
        historical_lookup: Mapping[date, float] | HistoricalLookup,
        start: date,
        end: date,
        as_of: date | None = None,
        generated_at: datetime | None = None,
    ) -> PriceSeries:
        """
        Build the price series for [start, end].

        Args:
            current_price: Live price used for every day without history
            historical_lookup: Day -> price mapping, or a callable returning
                the price for a day or None when there is no observation
            start: First day of the window
            end: Last day of the window (inclusive)
            as_of: "Today" for telling data gaps apart from future days.
                Defaults to the current UTC date.
            generated_at: Timestamp stored on the series (default: now)

        Returns:
            PriceSeries with exactly one point per day of the window

        Raises:
            InvalidPriceError: If current_price, or a historical value, fails
                the sanity bound
            InvalidWindowError: If start is after end
        """
        current_price = validate_price(current_price, field="current_price")
        if start > end:
            raise InvalidWindowError(start, end)

        lookup = self._as_callable(historical_lookup)
        as_of = as_of or datetime.now(timezone.utc).date()
        total_days = inclusive_day_count(start, end)

        points: list[PricePoint] = []
        missing: list[date] = []
        for offset in range(total_days):
            day = start + timedelta(days=offset)
            observed = lookup(day)

            if observed is None:
                price = current_price
                is_projected = True
                if day < as_of:
                    missing.append(day)
            else:
                price = validate_price(observed, field=f"historical price for {day}")
                is_projected = False

            points.append(
                PricePoint(
                    date=day,
                    price=price,
                    timestamp=_day_timestamp(day),
                    is_projected=is_projected,
                )
            )

        historical_days = sum(1 for p in points if not p.is_projected)
        if historical_days == 0:
            # Flat projection: the mean is the snapshot itself
            average_price = current_price
        else:
            average_price = math.fsum(p.price for p in points) / total_days

        if missing:
            logger.warning(
                f"Historical data missing for {len(missing)} past day(s) between "
                f"{missing[0]} and {missing[-1]}; projected at ${current_price:.4f}"
            )

        logger.debug(
            f"Built price series {start}..{end}: {historical_days} historical, "
            f"{total_days - historical_days} projected, average ${average_price:.4f}"
        )

        return PriceSeries(
            points=points,
            average_price=average_price,
            current_price_snapshot=current_price,
            generated_at=generated_at or datetime.now(timezone.utc),
            period=CalculationPeriod(
                start=start,
                end=end,
                total_days=total_days,
                historical_days=historical_days,
                projected_days=total_days - historical_days,
            ),
            missing_historical_dates=missing,
        )

    @staticmethod
    def _as_callable(
        historical_lookup: Mapping[date, float] | HistoricalLookup | None,
    ) -> HistoricalLookup:
        if historical_lookup is None:
            return lambda day: None
        if isinstance(historical_lookup, Mapping):
            return historical_lookup.get
        return historical_lookup
