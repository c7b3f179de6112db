"""Vesting scheduler - turns a token total into a monthly vesting ledger.

Schedule shape:
- a START event (0 tokens, 0%) on the start date
- one tranche per month of total / duration_months, dated by calendar-month
  addition from the start date; the tranche landing on the distribution
  date is a DISTRIBUTION event instead of MONTHLY
- an END event (0 tokens, 100%) on the end date

tokens_at_distribution is a policy value (total x distribution fraction),
not derived from the elapsed months.
"""

import logging
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from ..core.exceptions import MisconfiguredVestingWindowError
from ..core.models import VestingEvent, VestingSchedule
from ..core.types import VestingEventKind

logger = logging.getLogger(__name__)


def add_months(start: date, months: int) -> date:
    """Calendar-month addition, clamping to the last day of short months."""
    return start + relativedelta(months=months)


def ensure_distribution_on_monthly_boundary(
    start_date: date,
    distribution_date: date,
    end_date: date,
    duration_months: int,
) -> int:
    """
    Check that the vesting milestones form a consistent window.

    Returns:
        The month number (1-based) whose tranche falls on the distribution date

    Raises:
        MisconfiguredVestingWindowError: If the duration is not positive, the
            dates are out of order, the end date comes before the last monthly
            tranche, or no monthly tranche lands exactly on the distribution date
    """
    if isinstance(duration_months, bool) or not isinstance(duration_months, int):
        raise MisconfiguredVestingWindowError(
            "duration_months", f"must be an integer, got {duration_months!r}"
        )
    if duration_months <= 0:
        raise MisconfiguredVestingWindowError(
            "duration_months", f"must be positive, got {duration_months}"
        )
    if start_date >= end_date:
        raise MisconfiguredVestingWindowError(
            "end_date", f"start {start_date} must be before end {end_date}"
        )
    last_tranche = add_months(start_date, duration_months)
    if end_date < last_tranche:
        raise MisconfiguredVestingWindowError(
            "end_date",
            f"end {end_date} is before the last monthly tranche on {last_tranche}",
        )
    if not (start_date < distribution_date < end_date):
        raise MisconfiguredVestingWindowError(
            "distribution_date",
            f"{distribution_date} must fall strictly between {start_date} and {end_date}",
        )

    for month in range(1, duration_months + 1):
        vesting_date = add_months(start_date, month)
        if vesting_date == distribution_date:
            return month
        if vesting_date > distribution_date:
            break

    raise MisconfiguredVestingWindowError(
        "distribution_date",
        f"{distribution_date} is not an exact monthly boundary from {start_date} "
        f"within {duration_months} months",
    )


class VestingScheduler:
    """Generates linear monthly vesting schedules."""

    def generate_schedule(
        self,
        total_tokens: float,
        start_date: date,
        distribution_date: date,
        end_date: date,
        duration_months: int,
        distribution_vested_fraction: float,
    ) -> VestingSchedule:
        """
        Generate the vesting schedule for a token allocation.

        Args:
            total_tokens: Tokens granted (>= 0)
            start_date: Vesting start
            distribution_date: Date the distribution fraction becomes available
            end_date: Fully vested date
            duration_months: Number of monthly tranches (> 0)
            distribution_vested_fraction: Share of tokens available at
                distribution (0-1)

        Returns:
            VestingSchedule with events ordered by date

        Raises:
            MisconfiguredVestingWindowError: On inconsistent inputs
        """
        if total_tokens < 0:
            raise MisconfiguredVestingWindowError(
                "total_tokens", f"must be non-negative, got {total_tokens}"
            )
        if not (0.0 <= distribution_vested_fraction <= 1.0):
            raise MisconfiguredVestingWindowError(
                "distribution_vested_fraction",
                f"must be within [0, 1], got {distribution_vested_fraction}",
            )
        distribution_month = ensure_distribution_on_monthly_boundary(
            start_date, distribution_date, end_date, duration_months
        )

        monthly_amount = total_tokens / duration_months
        tokens_at_distribution = total_tokens * distribution_vested_fraction

        events = [
            VestingEvent(
                date=start_date,
                tokens=0.0,
                cumulative_percentage=0.0,
                kind=VestingEventKind.START,
            )
        ]

        for month in range(1, duration_months + 1):
            vesting_date = add_months(start_date, month)
            kind = (
                VestingEventKind.DISTRIBUTION
                if vesting_date == distribution_date
                else VestingEventKind.MONTHLY
            )
            events.append(
                VestingEvent(
                    date=vesting_date,
                    tokens=monthly_amount,
                    cumulative_percentage=100.0 * month / duration_months,
                    kind=kind,
                )
            )

        events.append(
            VestingEvent(
                date=end_date,
                tokens=0.0,
                cumulative_percentage=100.0,
                kind=VestingEventKind.END,
            )
        )

        logger.debug(
            f"Vesting schedule: {total_tokens:,.4f} tokens over {duration_months} months, "
            f"{monthly_amount:,.4f}/month, distribution at month {distribution_month}"
        )

        return VestingSchedule(
            start_date=start_date,
            distribution_date=distribution_date,
            end_date=end_date,
            total_tokens=total_tokens,
            tokens_at_distribution=tokens_at_distribution,
            monthly_vesting_amount=monthly_amount,
            duration_months=duration_months,
            distribution_vested_fraction=distribution_vested_fraction,
            events=events,
        )


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def tokens_available_at(schedule: VestingSchedule, on_date: date) -> float:
    """
    Tokens available on a date.

    Nothing is available before the distribution date, whatever has nominally
    vested. From the distribution date on, every tranche dated on or before
    the date counts.
    """
    on_date = _as_date(on_date)
    if on_date < schedule.distribution_date:
        return 0.0

    return sum(event.tokens for event in schedule.tranches if event.date <= on_date)


def vesting_progress(schedule: VestingSchedule, as_of: date) -> float:
    """Elapsed share of the vesting window in percent, clamped to [0, 100]."""
    as_of = _as_date(as_of)
    if as_of <= schedule.start_date:
        return 0.0
    if as_of >= schedule.end_date:
        return 100.0

    elapsed = (as_of - schedule.start_date).days
    total = (schedule.end_date - schedule.start_date).days
    return min(max(100.0 * elapsed / total, 0.0), 100.0)


def next_vesting_milestone(schedule: VestingSchedule, as_of: date) -> VestingEvent | None:
    """Next distribution or end event strictly after a date, if any."""
    as_of = _as_date(as_of)
    for event in schedule.events:
        if event.date > as_of and event.kind in (
            VestingEventKind.DISTRIBUTION,
            VestingEventKind.END,
        ):
            return event
    return None
