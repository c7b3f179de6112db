"""Core module - data models, types, and exceptions."""

from .models import (
    PricePoint,
    CalculationPeriod,
    PriceSeries,
    VestingEvent,
    VestingSchedule,
    StewardRole,
    AuditEntry,
    DataQualityFlag,
    TokenCalculation,
)
from .types import (
    DataSource,
    PriceOrigin,
    VestingEventKind,
)
from .exceptions import (
    CalculatorError,
    InvalidPriceError,
    InvalidWindowError,
    MisconfiguredVestingWindowError,
    DataSourceError,
    RateLimitError,
    ConfigurationError,
)

__all__ = [
    # Models
    "PricePoint",
    "CalculationPeriod",
    "PriceSeries",
    "VestingEvent",
    "VestingSchedule",
    "StewardRole",
    "AuditEntry",
    "DataQualityFlag",
    "TokenCalculation",
    # Types
    "DataSource",
    "PriceOrigin",
    "VestingEventKind",
    # Exceptions
    "CalculatorError",
    "InvalidPriceError",
    "InvalidWindowError",
    "MisconfiguredVestingWindowError",
    "DataSourceError",
    "RateLimitError",
    "ConfigurationError",
]
