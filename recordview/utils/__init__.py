"""Utility modules."""

from recordview.utils.datetime_parsing import (
    format_display_date,
    format_display_datetime,
    parse_datetime_value,
)
from recordview.utils.presentation import (
    format_field_name,
    format_money,
    humanize_identifier,
)

__all__ = [
    # Datetime display
    "format_display_date",
    "format_display_datetime",
    "parse_datetime_value",
    # Presentation
    "format_field_name",
    "format_money",
    "humanize_identifier",
]
