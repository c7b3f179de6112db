"""Tests for the vesting scheduler."""

from datetime import date, datetime

import pytest

from steward_calculator.calculator.vesting import (
    VestingScheduler,
    add_months,
    ensure_distribution_on_monthly_boundary,
    next_vesting_milestone,
    tokens_available_at,
    vesting_progress,
)
from steward_calculator.core.exceptions import MisconfiguredVestingWindowError
from steward_calculator.core.types import VestingEventKind

START = date(2025, 1, 1)
DISTRIBUTION = date(2025, 7, 1)
END = date(2027, 1, 1)


def term_schedule(total_tokens: float = 240.0, fraction: float = 0.25, months: int = 24):
    return VestingScheduler().generate_schedule(
        total_tokens=total_tokens,
        start_date=START,
        distribution_date=DISTRIBUTION,
        end_date=END,
        duration_months=months,
        distribution_vested_fraction=fraction,
    )


class TestScheduleAmounts:
    """Tests for monthly and distribution amounts."""

    def test_monthly_and_distribution_amounts(self):
        """240 tokens over 24 months vests 10 per month, 60 at distribution."""
        schedule = term_schedule(240.0)

        assert schedule.monthly_vesting_amount == pytest.approx(10.0)
        assert schedule.tokens_at_distribution == pytest.approx(60.0)
        assert schedule.total_tokens == 240.0

    @pytest.mark.parametrize("total", [0.0, 1.0, 3794.47, 1e9])
    def test_tranches_sum_to_total(self, total):
        """Monthly tranches add back up to the allocation."""
        schedule = term_schedule(total)
        tranche_sum = sum(e.tokens for e in schedule.tranches)
        assert tranche_sum == pytest.approx(total, rel=1e-9, abs=1e-9)

    def test_distribution_fraction_is_a_policy_value(self):
        """tokens_at_distribution follows the fraction, not elapsed months."""
        assert term_schedule(240.0, fraction=0.5).tokens_at_distribution == pytest.approx(120.0)
        assert term_schedule(240.0, fraction=0.0).tokens_at_distribution == 0.0
        assert term_schedule(240.0, fraction=1.0).tokens_at_distribution == pytest.approx(240.0)

    @pytest.mark.parametrize(
        "duration, distribution_month, fraction",
        [
            (6, 2, 0.1),
            (12, 6, 0.25),
            (24, 6, 0.25),
            (36, 12, 0.3),
            (48, 1, 0.75),
        ],
    )
    def test_distribution_share_ignores_duration(self, duration, distribution_month, fraction):
        """tokens_at_distribution / total_tokens is the fraction for any term length."""
        total = 3794.47
        schedule = VestingScheduler().generate_schedule(
            total_tokens=total,
            start_date=START,
            distribution_date=add_months(START, distribution_month),
            end_date=add_months(START, duration),
            duration_months=duration,
            distribution_vested_fraction=fraction,
        )

        assert schedule.tokens_at_distribution / total == pytest.approx(fraction, rel=1e-12)
        assert schedule.distribution_event.date == add_months(START, distribution_month)

    @pytest.mark.parametrize(
        "duration, distribution_month",
        [(6, 2), (12, 6), (24, 6), (36, 12), (48, 1)],
    )
    def test_available_at_distribution_covers_policy_amount(self, duration, distribution_month):
        """With the fraction matching elapsed months, availability equals the policy amount."""
        total = 3794.47
        schedule = VestingScheduler().generate_schedule(
            total_tokens=total,
            start_date=START,
            distribution_date=add_months(START, distribution_month),
            end_date=add_months(START, duration),
            duration_months=duration,
            distribution_vested_fraction=distribution_month / duration,
        )
        available = tokens_available_at(schedule, schedule.distribution_date)

        assert available == pytest.approx(schedule.tokens_at_distribution, rel=1e-12)
        assert available >= schedule.tokens_at_distribution - 1e-9

    def test_zero_tokens(self):
        schedule = term_schedule(0.0)
        assert schedule.monthly_vesting_amount == 0.0
        assert all(e.tokens == 0.0 for e in schedule.events)


class TestScheduleEvents:
    """Tests for the event ledger."""

    def test_event_structure(self):
        """START, one tranche per month, then END."""
        schedule = term_schedule()
        events = schedule.events

        assert len(events) == 26
        assert events[0].kind == VestingEventKind.START
        assert events[0].date == START
        assert events[0].tokens == 0.0
        assert events[0].cumulative_percentage == 0.0
        assert events[-1].kind == VestingEventKind.END
        assert events[-1].date == END
        assert events[-1].tokens == 0.0
        assert events[-1].cumulative_percentage == 100.0

    def test_single_distribution_event(self):
        """Exactly one tranche is marked as the distribution."""
        schedule = term_schedule()
        distributions = [e for e in schedule.events if e.kind == VestingEventKind.DISTRIBUTION]

        assert len(distributions) == 1
        assert distributions[0].date == DISTRIBUTION
        assert distributions[0].tokens == pytest.approx(10.0)
        assert distributions[0].cumulative_percentage == pytest.approx(25.0)
        assert schedule.distribution_event == distributions[0]

    def test_events_are_date_ordered(self):
        dates = [e.date for e in term_schedule().events]
        assert dates == sorted(dates)

    def test_cumulative_percentage_is_monotonic(self):
        percentages = [e.cumulative_percentage for e in term_schedule().events]
        assert percentages == sorted(percentages)
        assert percentages[-2] == pytest.approx(100.0)

    def test_month_end_start_date(self):
        """Months are added to the start date, clamping to short months."""
        schedule = VestingScheduler().generate_schedule(
            total_tokens=60.0,
            start_date=date(2025, 1, 31),
            distribution_date=date(2025, 3, 31),
            end_date=date(2025, 7, 31),
            duration_months=6,
            distribution_vested_fraction=2 / 6,
        )
        tranche_dates = [e.date for e in schedule.tranches]

        assert tranche_dates[:3] == [date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]
        assert tranche_dates[-1] == date(2025, 7, 31)
        assert schedule.distribution_event.date == date(2025, 3, 31)

    def test_add_months(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 1, 1), 24) == date(2027, 1, 1)


class TestMisconfiguration:
    """Tests for inconsistent vesting inputs."""

    def test_distribution_off_boundary(self):
        with pytest.raises(MisconfiguredVestingWindowError) as exc_info:
            VestingScheduler().generate_schedule(
                240.0, START, date(2025, 7, 15), END, 24, 0.25
            )
        assert exc_info.value.field == "distribution_date"

    def test_distribution_outside_window(self):
        with pytest.raises(MisconfiguredVestingWindowError):
            VestingScheduler().generate_schedule(240.0, START, date(2027, 2, 1), END, 24, 0.25)

    @pytest.mark.parametrize("months", [0, -3])
    def test_non_positive_duration(self, months):
        with pytest.raises(MisconfiguredVestingWindowError) as exc_info:
            VestingScheduler().generate_schedule(240.0, START, DISTRIBUTION, END, months, 0.25)
        assert exc_info.value.field == "duration_months"

    def test_reversed_window(self):
        with pytest.raises(MisconfiguredVestingWindowError):
            VestingScheduler().generate_schedule(240.0, END, DISTRIBUTION, START, 24, 0.25)

    def test_negative_tokens(self):
        with pytest.raises(MisconfiguredVestingWindowError):
            term_schedule(-1.0)

    @pytest.mark.parametrize("fraction", [-0.1, 1.5])
    def test_fraction_out_of_range(self, fraction):
        with pytest.raises(MisconfiguredVestingWindowError):
            term_schedule(fraction=fraction)

    def test_distribution_month_number(self):
        assert ensure_distribution_on_monthly_boundary(START, DISTRIBUTION, END, 24) == 6

    def test_end_before_last_tranche(self):
        """An end date earlier than start + duration would put END out of order."""
        with pytest.raises(MisconfiguredVestingWindowError) as exc_info:
            VestingScheduler().generate_schedule(
                240.0, START, DISTRIBUTION, date(2025, 12, 1), 24, 0.25
            )
        assert exc_info.value.field == "end_date"

    def test_end_after_last_tranche_is_ordered(self):
        """A later end date is allowed and stays the last event."""
        schedule = VestingScheduler().generate_schedule(
            240.0, START, DISTRIBUTION, date(2027, 3, 1), 24, 0.25
        )
        dates = [e.date for e in schedule.events]
        assert dates == sorted(dates)
        assert schedule.events[-1].date == date(2027, 3, 1)


class TestScheduleQueries:
    """Tests for availability, progress and milestones."""

    def test_nothing_available_before_distribution(self):
        schedule = term_schedule()
        assert tokens_available_at(schedule, date(2025, 6, 30)) == 0.0

    def test_available_at_distribution(self):
        schedule = term_schedule()
        assert tokens_available_at(schedule, DISTRIBUTION) == pytest.approx(60.0)

    def test_available_after_distribution(self):
        """Feb 1 through Dec 1 is 11 tranches."""
        schedule = term_schedule()
        assert tokens_available_at(schedule, date(2025, 12, 1)) == pytest.approx(110.0)

    def test_fully_available_after_end(self):
        schedule = term_schedule()
        assert tokens_available_at(schedule, date(2028, 1, 1)) == pytest.approx(240.0)

    def test_available_accepts_datetime(self):
        schedule = term_schedule()
        assert tokens_available_at(schedule, datetime(2025, 7, 1, 15, 30)) == pytest.approx(60.0)

    def test_progress_bounds(self):
        schedule = term_schedule()
        assert vesting_progress(schedule, date(2024, 6, 1)) == 0.0
        assert vesting_progress(schedule, START) == 0.0
        assert vesting_progress(schedule, END) == 100.0
        assert vesting_progress(schedule, date(2030, 1, 1)) == 100.0

    def test_progress_halfway(self):
        """365 of 730 days have elapsed on Jan 1, 2026."""
        schedule = term_schedule()
        assert vesting_progress(schedule, date(2026, 1, 1)) == pytest.approx(50.0)

    def test_progress_is_monotonic(self):
        schedule = term_schedule()
        samples = [
            vesting_progress(schedule, add_months(date(2024, 10, 1), m)) for m in range(0, 30)
        ]
        assert samples == sorted(samples)

    def test_next_milestone(self):
        schedule = term_schedule()

        upcoming = next_vesting_milestone(schedule, date(2025, 3, 1))
        assert upcoming.kind == VestingEventKind.DISTRIBUTION
        assert upcoming.date == DISTRIBUTION

        after_distribution = next_vesting_milestone(schedule, DISTRIBUTION)
        assert after_distribution.kind == VestingEventKind.END

        assert next_vesting_milestone(schedule, END) is None
