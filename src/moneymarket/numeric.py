"""
Exact fixed-point helpers for converting raw EVM integers to decimal units.

All arithmetic is performed in a dedicated `decimal.Context` wide enough to hold any uint256 value
with 18 fractional digits, so that no intermediate result is silently rounded.
"""

from decimal import ROUND_DOWN, Context, Decimal

from moneymarket.constants import MANTISSA_DECIMALS, POSITION_TOKEN_DECIMALS
from moneymarket.exceptions.base import MoneyMarketValueError

# 78 digits for a uint256 plus headroom for fractional digits and scale factors
DECIMAL_CONTEXT = Context(prec=120, rounding=ROUND_DOWN)

ZERO = Decimal(0)
ONE = Decimal(1)
_TEN = Decimal(10)


def scale_factor(exponent: int) -> Decimal:
    """
    Return 10**exponent as an exact decimal.
    """

    if exponent < 0:
        msg = f"Exponent must be non-negative, got {exponent}"
        raise MoneyMarketValueError(msg)

    factor = ONE
    for _ in range(exponent):
        factor = DECIMAL_CONTEXT.multiply(factor, _TEN)
    return factor


MANTISSA_FACTOR = scale_factor(MANTISSA_DECIMALS)
POSITION_TOKEN_FACTOR = scale_factor(POSITION_TOKEN_DECIMALS)


def truncate(value: Decimal, digits: int) -> Decimal:
    """
    Drop all fractional digits beyond `digits`, without rounding.

    Matches the behavior of unsigned integer division in the EVM, e.g. 1.23456 -> 1.23 for two
    digits.
    """

    return value.quantize(
        Decimal(1).scaleb(-digits),
        rounding=ROUND_DOWN,
        context=DECIMAL_CONTEXT,
    )


def divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    return DECIMAL_CONTEXT.divide(numerator, denominator)


def multiply(a: Decimal, b: Decimal) -> Decimal:
    return DECIMAL_CONTEXT.multiply(a, b)


def add(a: Decimal, b: Decimal) -> Decimal:
    return DECIMAL_CONTEXT.add(a, b)


def subtract(a: Decimal, b: Decimal) -> Decimal:
    return DECIMAL_CONTEXT.subtract(a, b)


def to_decimal(raw_value: int, decimals: int, truncate_to: int | None = None) -> Decimal:
    """
    Convert a raw integer amount to decimal units by dividing by 10**decimals, optionally
    truncating the result to `truncate_to` fractional digits.
    """

    result = divide(Decimal(raw_value), scale_factor(decimals))
    if truncate_to is not None:
        result = truncate(result, truncate_to)
    return result


def from_mantissa(raw_value: int) -> Decimal:
    """
    Convert an 18-decimal mantissa value (rate, index, factor) to decimal units.
    """

    return truncate(divide(Decimal(raw_value), MANTISSA_FACTOR), MANTISSA_DECIMALS)


def from_position_tokens(raw_value: int) -> Decimal:
    """
    Convert a raw position token amount to decimal units.
    """

    return truncate(divide(Decimal(raw_value), POSITION_TOKEN_FACTOR), POSITION_TOKEN_DECIMALS)


def exchange_rate_from_mantissa(raw_value: int, underlying_decimals: int) -> Decimal:
    """
    Convert a stored exchange rate to underlying units per position token.

    The contract value is scaled by 10**(18 + underlying_decimals - 8), accounting for the mantissa
    and the different decimal places of the underlying and position tokens.
    """

    exponent = MANTISSA_DECIMALS + underlying_decimals - POSITION_TOKEN_DECIMALS
    return truncate(divide(Decimal(raw_value), scale_factor(exponent)), MANTISSA_DECIMALS)
