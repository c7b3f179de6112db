"""Custom exceptions for the steward token calculator."""


class CalculatorError(Exception):
    """Base exception for all calculator errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidPriceError(CalculatorError):
    """Raised when a supplied price fails the sanity bound."""

    def __init__(self, value: float, reason: str, field: str = "price"):
        message = f"Invalid {field}={value!r}: {reason}"
        super().__init__(message, {"field": field, "value": value, "reason": reason})
        self.field = field
        self.value = value
        self.reason = reason


class InvalidWindowError(CalculatorError):
    """Raised when a pricing window is empty or reversed."""

    def __init__(self, start, end):
        message = f"Invalid price window: start {start} is after end {end}"
        super().__init__(message, {"start": str(start), "end": str(end)})
        self.start = start
        self.end = end


class MisconfiguredVestingWindowError(CalculatorError):
    """Raised when vesting parameters cannot produce a well-formed schedule."""

    def __init__(self, field: str, message: str):
        full_message = f"Misconfigured vesting window [{field}]: {message}"
        super().__init__(full_message, {"field": field})
        self.field = field


class DataSourceError(CalculatorError):
    """Raised when a data source fails or returns invalid data."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(
            full_message,
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitError(DataSourceError):
    """Raised when API rate limit is hit."""

    def __init__(
        self,
        source: str,
        retry_after_seconds: int | None = None,
        endpoint: str | None = None,
    ):
        message = "Rate limit exceeded"
        if retry_after_seconds:
            message += f", retry after {retry_after_seconds}s"
        super().__init__(source, message, endpoint=endpoint, status_code=429)
        self.retry_after_seconds = retry_after_seconds


class ConfigurationError(CalculatorError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
