"""
utils/formatting.py
-------------------
Text formatting helpers shared by handlers and services.
"""

from decimal import Decimal, InvalidOperation

_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£", "CHF": "CHF "}


def format_currency(amount, currency: str = "EUR") -> str:
    """
    Format an amount with its currency symbol, e.g. ``12.50€``.

    Non-numeric or non-finite amounts are rendered as zero.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        value = Decimal("0")
    if not value.is_finite():
        value = Decimal("0")

    symbol = _SYMBOLS.get(currency)
    if symbol is None:
        return f"{value:.2f} {currency}"
    if currency == "EUR":
        return f"{value:.2f}€"
    return f"{symbol}{value:.2f}"


def format_validation_error(errors: dict[str, str]) -> str:
    """Bullet list of field problems, e.g. for a ValidationError reply."""
    lines = ["⚠️ Please fix the following:"]
    lines.extend(f"  • {field.replace('_', ' ')} {message}" for field, message in errors.items())
    return "\n".join(lines)
