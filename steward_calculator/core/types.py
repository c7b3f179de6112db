"""Type definitions and enums for the steward token calculator."""

from enum import Enum
from typing import Literal


class VestingEventKind(str, Enum):
    """Kinds of entries in a vesting schedule."""

    START = "start"                 # Vesting begins, nothing unlocked
    MONTHLY = "monthly"             # Regular monthly tranche
    DISTRIBUTION = "distribution"   # Monthly tranche falling on the distribution date
    END = "end"                     # Fully vested marker

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        names = {
            self.START: "Vesting Start",
            self.MONTHLY: "Monthly Vest",
            self.DISTRIBUTION: "Distribution",
            self.END: "Fully Vested",
        }
        return names.get(self, self.value)


class DataSource(str, Enum):
    """Data source identifiers."""

    COINGECKO = "coingecko"
    SYNTHETIC = "synthetic"
    FALLBACK = "fallback"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class PriceOrigin(str, Enum):
    """Where a day's price in a series came from."""

    HISTORICAL = "historical"
    PROJECTED = "projected"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


# Type aliases for common patterns
Percentage = float   # 0-100 scale
Fraction = float     # 0-1 scale
TokenAmount = float  # Number of tokens
USDAmount = float    # USD value

# Literal types for specific fields
RoleId = str
OutputFormatType = Literal["json", "csv", "table"]
Severity = Literal["info", "warning", "error"]
