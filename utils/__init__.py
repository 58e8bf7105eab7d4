"""Utility modules for cross-cutting concerns."""

from utils.timezone import (
    now_utc,
    to_utc,
    to_local,
    today_local,
    current_year,
    format_display_date,
)
from utils.currency import get_currency_symbol, format_amount, format_money
