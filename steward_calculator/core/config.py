"""Configuration management for API access and calculator policy.

API settings load from environment variables or a .env file. Calculator
policy (pricing window, vesting terms, roles) loads from an optional YAML
file and is injected into the calculators rather than hardcoded in them.
"""

import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

import yaml
from dateutil.relativedelta import relativedelta
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from ..calculator.vesting import ensure_distribution_on_monthly_boundary
from .exceptions import ConfigurationError, MisconfiguredVestingWindowError
from .models import StewardRole

logger = logging.getLogger(__name__)


@dataclass
class APIConfig:
    """API configuration for the price data provider."""

    # CoinGecko (optional - public API works without key)
    coingecko_api_key: Optional[str] = None
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coin_id: str = "ethereum-name-service"

    # Freshness window for cached upstream responses
    cache_ttl_seconds: int = 15 * 60
    request_timeout_seconds: float = 10.0

    # Used when the current price cannot be fetched at all
    fallback_price: float = 10.0

    @classmethod
    def from_env(cls) -> "APIConfig":
        """Load configuration from environment variables."""
        defaults = cls()
        return cls(
            coingecko_api_key=os.getenv("COINGECKO_API_KEY"),
            coingecko_base_url=os.getenv("COINGECKO_BASE_URL", defaults.coingecko_base_url),
            coin_id=os.getenv("STEWARD_COIN_ID", defaults.coin_id),
            cache_ttl_seconds=int(os.getenv("STEWARD_CACHE_TTL_SECONDS", defaults.cache_ttl_seconds)),
            request_timeout_seconds=float(
                os.getenv("STEWARD_REQUEST_TIMEOUT_SECONDS", defaults.request_timeout_seconds)
            ),
            fallback_price=float(os.getenv("STEWARD_FALLBACK_PRICE", defaults.fallback_price)),
        )

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "APIConfig":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the project root.

        Returns:
            APIConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        try:
            return cls.from_env()
        except ValueError as e:
            raise ConfigurationError("environment", str(e)) from e

    def has_coingecko(self) -> bool:
        """Check if CoinGecko API key is configured (optional)."""
        return bool(self.coingecko_api_key)


class PriceWindow(BaseModel):
    """Closed date interval the average price is computed over."""

    start: date = date(2025, 1, 1)
    end: date = date(2025, 7, 1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_order(self) -> "PriceWindow":
        if self.start > self.end:
            raise ValueError(f"price window start {self.start} is after end {self.end}")
        return self

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1


class VestingPolicy(BaseModel):
    """Vesting terms applied to every role's allocation."""

    start_date: date = date(2025, 1, 1)
    distribution_date: date = date(2025, 7, 1)
    end_date: date = date(2027, 1, 1)
    duration_months: int = 24
    distribution_vested_fraction: float = Field(default=0.25, ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_distribution(self) -> "VestingPolicy":
        # Raises MisconfiguredVestingWindowError directly so callers see the
        # same error the scheduler would raise.
        ensure_distribution_on_monthly_boundary(
            self.start_date, self.distribution_date, self.end_date, self.duration_months
        )
        expected_end = self.start_date + relativedelta(months=self.duration_months)
        if self.end_date > expected_end:
            logger.warning(
                f"Vesting end date {self.end_date} is later than start + "
                f"{self.duration_months} months ({expected_end})"
            )
        return self

    @property
    def months_to_distribution(self) -> int:
        delta = relativedelta(self.distribution_date, self.start_date)
        return delta.years * 12 + delta.months


DEFAULT_ROLES: dict[str, StewardRole] = {
    "steward": StewardRole(
        id="steward",
        name="Steward",
        monthly_compensation=4000,
        annual_compensation=48000,
        description="Regular DAO Steward",
    ),
    "lead_steward": StewardRole(
        id="lead_steward",
        name="Lead Steward",
        monthly_compensation=5500,
        annual_compensation=66000,
        description="Lead DAO Steward",
    ),
}


class CalculatorConfig(BaseModel):
    """Policy constants consumed by the calculators."""

    token_symbol: str = "ENS"
    price_window: PriceWindow = Field(default_factory=PriceWindow)
    vesting: VestingPolicy = Field(default_factory=VestingPolicy)
    roles: dict[str, StewardRole] = Field(default_factory=lambda: dict(DEFAULT_ROLES))
    default_role: str = "steward"

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_default_role(self) -> "CalculatorConfig":
        if self.default_role not in self.roles:
            raise ValueError(f"default_role '{self.default_role}' is not a configured role")
        return self

    def get_role(self, role_id: str | None = None) -> StewardRole:
        """Look up a role by id, falling back to the default role."""
        role_id = role_id or self.default_role
        try:
            return self.roles[role_id]
        except KeyError:
            raise ConfigurationError(
                "roles",
                f"Unknown role '{role_id}' (available: {', '.join(self.roles)})",
            ) from None

    @classmethod
    def load(cls, config_path: Path | str | None = None) -> "CalculatorConfig":
        """
        Load calculator policy from a YAML file.

        Args:
            config_path: Path to YAML configuration. If None, uses defaults.

        Returns:
            CalculatorConfig instance
        """
        if config_path is None:
            return cls()

        config_path = Path(config_path)
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigurationError(str(config_path), "config file not found") from None
        except yaml.YAMLError as e:
            raise ConfigurationError(str(config_path), f"invalid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(str(config_path), "top level must be a mapping")

        # Roles may be given without an explicit id
        roles = data.get("roles")
        if isinstance(roles, dict):
            data["roles"] = {
                role_id: {"id": role_id, **(fields or {})} for role_id, fields in roles.items()
            }

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(str(config_path), str(e)) from e
        except MisconfiguredVestingWindowError:
            logger.error(f"Vesting policy in {config_path} is inconsistent")
            raise

        logger.info(f"Loaded calculator config from {config_path}")
        return config


# Global config instance (lazy loaded)
_config: Optional[APIConfig] = None


def get_config() -> APIConfig:
    """Get the global API configuration instance."""
    global _config
    if _config is None:
        _config = APIConfig.load()
    return _config


def reload_config(env_file: Optional[Path] = None) -> APIConfig:
    """Reload API configuration from environment."""
    global _config
    _config = APIConfig.load(env_file)
    return _config
