"""Pydantic data models for the steward token calculator.

All data structures are immutable (frozen) after creation. Price series and
vesting schedules are point-in-time snapshots recomputed from current inputs,
never mutated in place.
"""

from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .types import (
    DataSource,
    Fraction,
    Percentage,
    PriceOrigin,
    RoleId,
    Severity,
    TokenAmount,
    USDAmount,
    VestingEventKind,
)

# Upper sanity bound for a token price in USD
MAX_REASONABLE_PRICE = 1_000_000.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PricePoint(BaseModel):
    """Price of the token for a single calendar day."""

    date: date
    price: float
    timestamp: datetime  # UTC midnight of `date`
    is_projected: bool = False

    model_config = {"frozen": True}

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        if not (0 < v < MAX_REASONABLE_PRICE):
            raise ValueError(f"Price must be in (0, {MAX_REASONABLE_PRICE:,.0f}), got {v}")
        return v

    @property
    def origin(self) -> PriceOrigin:
        return PriceOrigin.PROJECTED if self.is_projected else PriceOrigin.HISTORICAL


class CalculationPeriod(BaseModel):
    """The closed date window a price series covers."""

    start: date
    end: date
    total_days: int
    historical_days: int
    projected_days: int

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_day_counts(self) -> "CalculationPeriod":
        if self.historical_days + self.projected_days != self.total_days:
            raise ValueError(
                f"historical_days ({self.historical_days}) + projected_days "
                f"({self.projected_days}) != total_days ({self.total_days})"
            )
        if self.total_days != (self.end - self.start).days + 1:
            raise ValueError("total_days does not match the inclusive window length")
        return self

    @property
    def projected_share(self) -> Percentage:
        """Percentage of the window filled with projected prices."""
        return 100.0 * self.projected_days / self.total_days


class PriceSeries(BaseModel):
    """Gap-free daily price series over a pricing window, with its mean."""

    points: list[PricePoint]
    average_price: float
    current_price_snapshot: float
    generated_at: datetime = Field(default_factory=_utcnow)
    period: CalculationPeriod
    # Past days that should have had historical data but did not
    missing_historical_dates: list[date] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def historical_points(self) -> list[PricePoint]:
        return [p for p in self.points if not p.is_projected]

    @property
    def projected_points(self) -> list[PricePoint]:
        return [p for p in self.points if p.is_projected]

    @property
    def has_gaps(self) -> bool:
        return bool(self.missing_historical_dates)

    def running_averages(self) -> list[float]:
        """Mean of all prices up to and including each day, in series order."""
        averages = []
        total = 0.0
        for i, point in enumerate(self.points, 1):
            total += point.price
            averages.append(total / i)
        return averages


class VestingEvent(BaseModel):
    """A dated entry in a vesting schedule."""

    date: date
    tokens: TokenAmount
    cumulative_percentage: Percentage
    kind: VestingEventKind

    model_config = {"frozen": True}

    @property
    def is_tranche(self) -> bool:
        """True for events that actually unlock tokens."""
        return self.kind in (VestingEventKind.MONTHLY, VestingEventKind.DISTRIBUTION)


class VestingSchedule(BaseModel):
    """Monthly vesting ledger for a token allocation."""

    start_date: date
    distribution_date: date
    end_date: date
    total_tokens: TokenAmount
    tokens_at_distribution: TokenAmount
    monthly_vesting_amount: TokenAmount
    duration_months: int
    distribution_vested_fraction: Fraction
    events: list[VestingEvent]

    model_config = {"frozen": True}

    @property
    def tranches(self) -> list[VestingEvent]:
        """Monthly and distribution events, in date order."""
        return [e for e in self.events if e.is_tranche]

    @property
    def distribution_event(self) -> VestingEvent | None:
        for event in self.events:
            if event.kind == VestingEventKind.DISTRIBUTION:
                return event
        return None


class StewardRole(BaseModel):
    """A compensation role a user can select."""

    id: RoleId
    name: str
    annual_compensation: USDAmount
    monthly_compensation: USDAmount | None = None
    description: str = ""

    model_config = {"frozen": True}

    @field_validator("annual_compensation")
    @classmethod
    def validate_compensation(cls, v: USDAmount) -> USDAmount:
        if v < 0:
            raise ValueError(f"Annual compensation must be non-negative, got {v}")
        return v

    @model_validator(mode="before")
    @classmethod
    def fill_monthly(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and data.get("monthly_compensation") is None
            and data.get("annual_compensation") is not None
        ):
            data = {**data, "monthly_compensation": float(data["annual_compensation"]) / 12}
        return data


class AuditEntry(BaseModel):
    """Audit trail entry for a data fetch."""

    timestamp: datetime = Field(default_factory=_utcnow)
    source: DataSource
    action: str  # "fetch", "cache", "fallback"
    endpoint: str | None = None
    success: bool = True
    error_message: str | None = None
    duration_ms: int | None = None
    notes: str | None = None

    model_config = {"frozen": True}


class DataQualityFlag(BaseModel):
    """Flag indicating a data quality issue."""

    field: str
    issue: str
    severity: Severity = "warning"
    suggestion: str | None = None

    model_config = {"frozen": True}


class TokenCalculation(BaseModel):
    """Complete estimate for one role."""

    role: StewardRole
    price_series: PriceSeries
    total_tokens: TokenAmount
    current_value: USDAmount  # total_tokens x average price
    vesting_schedule: VestingSchedule
    tokens_available_now: TokenAmount = 0.0
    vesting_progress: Percentage = 0.0
    next_milestone: VestingEvent | None = None
    price_change_pct: Percentage | None = None  # current price vs. window average
    used_fallback_price: bool = False

    quality_flags: list[DataQualityFlag] = Field(default_factory=list)
    audit_trail: list[AuditEntry] = Field(default_factory=list)

    calculated_at: datetime = Field(default_factory=_utcnow)
    tool_version: str = "0.1.0"

    model_config = {"frozen": True}

    @property
    def average_price(self) -> float:
        return self.price_series.average_price

    def add_quality_flag(
        self, field: str, issue: str, severity: Severity = "warning"
    ) -> "TokenCalculation":
        """Create a new result with an added quality flag (immutable pattern)."""
        new_flags = list(self.quality_flags)
        new_flags.append(DataQualityFlag(field=field, issue=issue, severity=severity))
        return self.model_copy(update={"quality_flags": new_flags})

    def summary(self) -> dict[str, Any]:
        """Headline numbers for quick display."""
        return {
            "role": self.role.id,
            "average_price": self.average_price,
            "total_tokens": self.total_tokens,
            "tokens_at_distribution": self.vesting_schedule.tokens_at_distribution,
            "monthly_vesting": self.vesting_schedule.monthly_vesting_amount,
            "current_value": self.current_value,
        }
