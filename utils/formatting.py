"""
Formatting helpers shared by templates and routes
"""

from decimal import Decimal, InvalidOperation


def format_price(value):
    """
    Render a price without trailing zeros

    50.00 -> '50', 49.50 -> '49.5'
    """
    if value is None:
        return '0'

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)

    return '{:f}'.format(amount.normalize())
