"""
Amount deltas and price movement for a single liquidity segment.

Within one segment of constant liquidity L:
    amount0 = L * (sqrt_hi - sqrt_lo) / (sqrt_hi * sqrt_lo)    (Q96 scaled)
    amount1 = L * (sqrt_hi - sqrt_lo)                           (Q96 scaled)

Rounding rule (consensus-critical): amounts the caller owes the pool round
up, amounts the pool pays out round down. Reversing either direction lets a
caller drain the pool one unit at a time.
"""

from __future__ import annotations

from ..errors import InvalidSqrtPrice
from .full_math import (
    MAX_UINT160,
    MAX_UINT256,
    Q96,
    RESOLUTION,
    div_rounding_up,
    mul_div,
    mul_div_rounding_up,
)


def _ordered(sqrt_price_a_x96: int, sqrt_price_b_x96: int) -> tuple[int, int]:
    if sqrt_price_a_x96 > sqrt_price_b_x96:
        return sqrt_price_b_x96, sqrt_price_a_x96
    return sqrt_price_a_x96, sqrt_price_b_x96


def amount0_delta(
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """
    Amount of token0 between two prices for `liquidity` (unsigned).

    Computed as `mul_div(L << 96, hi - lo, hi) / lo` rather than dividing by
    `hi * lo` once, because the product of two Q96 prices overflows 256 bits.
    """
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)
    if lo <= 0:
        raise InvalidSqrtPrice("amount0_delta requires a positive lower sqrt price")

    numerator1 = liquidity << RESOLUTION
    numerator2 = hi - lo

    if round_up:
        return div_rounding_up(mul_div_rounding_up(numerator1, numerator2, hi), lo)
    return mul_div(numerator1, numerator2, hi) // lo


def amount1_delta(
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """Amount of token1 between two prices for `liquidity` (unsigned)."""
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)
    if lo <= 0:
        raise InvalidSqrtPrice("amount1_delta requires a positive lower sqrt price")

    if round_up:
        return mul_div_rounding_up(liquidity, hi - lo, Q96)
    return mul_div(liquidity, hi - lo, Q96)


def amount0_delta_signed(sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity_delta: int) -> int:
    """
    Signed token0 delta for a liquidity change.

    Adding liquidity (delta > 0) is owed by the caller and rounds up; removing
    liquidity (delta < 0) is owed to the caller, rounds down and is negative.
    """
    if liquidity_delta < 0:
        return -amount0_delta(sqrt_price_a_x96, sqrt_price_b_x96, -liquidity_delta, False)
    return amount0_delta(sqrt_price_a_x96, sqrt_price_b_x96, liquidity_delta, True)


def amount1_delta_signed(sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity_delta: int) -> int:
    """Signed token1 delta for a liquidity change (see `amount0_delta_signed`)."""
    if liquidity_delta < 0:
        return -amount1_delta(sqrt_price_a_x96, sqrt_price_b_x96, -liquidity_delta, False)
    return amount1_delta(sqrt_price_a_x96, sqrt_price_b_x96, liquidity_delta, True)


def next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96: int, liquidity: int, amount: int) -> int:
    """
    Price after adding `amount` of token0 (price moves down).

    Rounds up so the price never moves further than the input pays for.
    """
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << RESOLUTION

    product = amount * sqrt_price_x96
    if product <= MAX_UINT256:
        denominator = numerator1 + product
        if denominator <= MAX_UINT256:
            return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)

    # Fallback used when the fixed-width product would overflow.
    return div_rounding_up(numerator1, (numerator1 // sqrt_price_x96) + amount)


def next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96: int, liquidity: int, amount: int) -> int:
    """Price after adding `amount` of token1 (price moves up), rounding down."""
    quotient = (amount << RESOLUTION) // liquidity
    result = sqrt_price_x96 + quotient
    if result > MAX_UINT160:
        raise InvalidSqrtPrice("next sqrt price overflows uint160")
    return result


def next_sqrt_price_from_input(sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool) -> int:
    """Price after spending `amount_in` of the input token against `liquidity`."""
    if sqrt_price_x96 <= 0:
        raise InvalidSqrtPrice("sqrt price must be positive")
    if liquidity <= 0:
        raise ValueError("liquidity must be positive")
    if zero_for_one:
        return next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in)
    return next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in)
