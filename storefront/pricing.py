"""
Pure pricing functions over cart lines. No I/O.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from storefront.config import Config
from storefront.models import CartLine


def subtotal(lines: Iterable[CartLine]) -> Decimal:
    """Sum of unit price times quantity over all lines"""
    return sum((line.line_total for line in lines), Decimal("0"))


def vat(amount: Decimal) -> Decimal:
    """VAT at the fixed policy rate"""
    return amount * Config.VAT_RATE


def total(amount: Decimal) -> Decimal:
    return amount + vat(amount)


def item_count(lines: Iterable[CartLine]) -> int:
    return sum(line.quantity for line in lines)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to the gateway's minor unit, rounding half up"""
    scaled = amount * Config.MINOR_UNIT_FACTOR
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(amount: Decimal) -> str:
    """Two-decimal display string, e.g. Decimal('2150.000') -> '2150.00'"""
    return str(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
