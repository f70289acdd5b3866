"""Money helpers using Decimal with cent precision rules."""

from decimal import ROUND_HALF_UP, Decimal

MONEY_PRECISION = Decimal("0.01")
SHARE_PRECISION = Decimal("0.0001")
MONEY_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    """Return value rounded to two decimal places with HALF_UP strategy."""

    return value.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def quantize_share(value: Decimal) -> Decimal:
    """Return a derived participant share rounded to four decimal places."""

    return value.quantize(SHARE_PRECISION, rounding=ROUND_HALF_UP)


def parse_money(value: str) -> Decimal:
    """Parse and normalize input money string into Decimal."""

    return quantize_money(Decimal(value))


def format_money(value: Decimal) -> str:
    """Render money as string with exactly two decimal places."""

    return f"{quantize_money(value):.2f}"


def within_tolerance(value: Decimal, expected: Decimal) -> bool:
    """Return whether value is within one cent of expected."""

    return abs(value - expected) <= MONEY_TOLERANCE


def is_negligible(value: Decimal) -> bool:
    """Return whether value rounds to zero under the cent tolerance."""

    return abs(value) <= MONEY_TOLERANCE
