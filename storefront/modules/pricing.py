from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, Union

from storefront.modules.models import Recurrence, Currency

# ==========================================
# HELPERS
# ==========================================

CENT = Decimal("0.01")

CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$"}

# Monthly bookings are billed a full year up front. Yearly matches monthly.
DEFAULT_MULTIPLIERS = {
    Recurrence.ONE_TIME.value: 1,
    Recurrence.MONTHLY.value: 12,
    Recurrence.YEARLY.value: 12,
}


def to_dec(v):
    if v is None:
        return Decimal("0.00")
    if isinstance(v, Decimal):
        return v
    if isinstance(v, (int, float)):
        return Decimal(str(v))
    return Decimal(str(v).replace(",", ""))


def money(v) -> Decimal:
    """Rounds to 2 decimal places, half-up."""
    return to_dec(v).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(value):
    try:
        val = money(value)
        return "{:,.2f}".format(val)
    except (ValueError, TypeError, ArithmeticError):
        return str(value)


def currency_symbol(currency: Union[str, Currency]) -> str:
    code = currency.value if isinstance(currency, Currency) else str(currency)
    return CURRENCY_SYMBOLS.get(code, "₹")


def format_amount(value, currency: Union[str, Currency] = "INR") -> str:
    return f"{currency_symbol(currency)}{format_currency(value)}"


# ==========================================
# RECURRING PRICING
# ==========================================


def compute_line_total(
    base_price,
    recurrence: Union[str, Recurrence],
    multipliers: Optional[Dict[str, int]] = None,
) -> Decimal:
    """Expands a base price into the amount charged for its recurrence."""
    key = recurrence.value if isinstance(recurrence, Recurrence) else str(recurrence)
    table = multipliers or DEFAULT_MULTIPLIERS
    return to_dec(base_price) * table.get(key, 1)


def to_minor_units(amount, factor: int = 100) -> int:
    """Converts a major-unit amount to gateway minor units (paise, cents)."""
    return int((to_dec(amount) * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
