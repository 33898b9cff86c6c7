"""
Display helpers for the earnings dashboard (fr-FR conventions).

- thousands grouped with a narrow no-break space (U+202F)
- comma as decimal separator
- currency symbol after the amount, separated by a no-break space (U+00A0)
"""

from decimal import ROUND_HALF_UP, Decimal

GROUP_SEPARATOR = "\u202f"
SYMBOL_SEPARATOR = "\u00a0"

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "XOF": "F\u202fCFA",
}


def _group(digits: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return GROUP_SEPARATOR.join(groups)


def format_count(value: int) -> str:
    """format_count(1234567) -> '1 234 567' (narrow no-break spaces)."""
    sign = "-" if value < 0 else ""
    return sign + _group(str(abs(int(value))))


def format_currency(amount: float, currency: str = "EUR") -> str:
    """format_currency(1234.5) -> '1 234,50 €'; two decimals, halves rounded away from zero."""
    quantized = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if quantized < 0 else ""
    units, cents = f"{abs(quantized):.2f}".split(".")
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())
    return f"{sign}{_group(units)},{cents}{SYMBOL_SEPARATOR}{symbol}"
