"""Output formatting module."""

from .formatters import (
    OutputFormatter,
    JSONFormatter,
    PriceSeriesCSVFormatter,
    TableFormatter,
    format_currency,
    format_percentage,
    format_tokens,
)

__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "PriceSeriesCSVFormatter",
    "TableFormatter",
    "format_currency",
    "format_percentage",
    "format_tokens",
]
