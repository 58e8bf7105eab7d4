"""Currency symbols and amount formatting. Pure lookups, no network."""

from decimal import Decimal, ROUND_HALF_UP

CURRENCY_SYMBOLS = {
    "ILS": "₪",
    "USD": "$",
    "EUR": "€",
}


def get_currency_symbol(currency: str) -> str:
    """Symbol for an ISO currency code, or the code itself when unknown."""
    return CURRENCY_SYMBOLS.get(currency.upper(), currency)


def format_amount(amount: Decimal | int, decimals: int = 2) -> str:
    """
    Format an amount with thousands separators.

    Examples: 1234 -> "1,234.00", Decimal("1234.5") -> "1,234.50"
    """
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:,.{decimals}f}"


def format_money(amount: Decimal | int, currency: str) -> str:
    """Symbol-prefixed amount, e.g. "₪1,234.00"."""
    return f"{get_currency_symbol(currency)}{format_amount(amount)}"
