"""
Liquidity <-> token amount conversion for a price range.

These are the algebraic inverses of the amount deltas in `sqrt_price_math`:
    L = amount0 * sqrt_a * sqrt_b / (sqrt_b - sqrt_a)
    L = amount1 / (sqrt_b - sqrt_a)
(all prices Q64.96). Results round down, so a depositor never receives more
liquidity than the supplied amounts pay for.
"""

from __future__ import annotations

from ..errors import LiquidityOverflow, LiquidityUnderflow, MathOverflowError
from .full_math import MAX_UINT128, Q96, mul_div


def add_liquidity(x: int, delta: int) -> int:
    """Apply a signed `delta` to unsigned liquidity `x`."""
    if delta < 0:
        if -delta > x:
            raise LiquidityUnderflow(f"cannot remove {-delta} from liquidity {x}")
        return x + delta
    result = x + delta
    if result > MAX_UINT128:
        raise LiquidityOverflow(f"liquidity exceeds uint128: {result}")
    return result


def _to_uint128(value: int) -> int:
    if value > MAX_UINT128:
        raise MathOverflowError(f"liquidity does not fit in uint128: {value}")
    return value


def _ordered(sqrt_a: int, sqrt_b: int) -> tuple[int, int]:
    return (sqrt_b, sqrt_a) if sqrt_a > sqrt_b else (sqrt_a, sqrt_b)


def liquidity_for_amount0(sqrt_price_a_x96: int, sqrt_price_b_x96: int, amount0: int) -> int:
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)
    intermediate = mul_div(lo, hi, Q96)
    return _to_uint128(mul_div(amount0, intermediate, hi - lo))


def liquidity_for_amount1(sqrt_price_a_x96: int, sqrt_price_b_x96: int, amount1: int) -> int:
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)
    return _to_uint128(mul_div(amount1, Q96, hi - lo))


def liquidity_for_amounts(
    sqrt_price_x96: int,
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    amount0: int,
    amount1: int,
) -> int:
    """
    Maximum liquidity that `amount0` and `amount1` can back over [a, b].

    At or below the range only token0 counts, at or above only token1, and
    inside the range the scarcer side wins.
    """
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)

    if sqrt_price_x96 <= lo:
        return liquidity_for_amount0(lo, hi, amount0)
    if sqrt_price_x96 < hi:
        liquidity0 = liquidity_for_amount0(sqrt_price_x96, hi, amount0)
        liquidity1 = liquidity_for_amount1(lo, sqrt_price_x96, amount1)
        return min(liquidity0, liquidity1)
    return liquidity_for_amount1(lo, hi, amount1)


def amount0_for_liquidity(sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity: int) -> int:
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)
    return mul_div(liquidity << 96, hi - lo, hi) // lo


def amount1_for_liquidity(sqrt_price_a_x96: int, sqrt_price_b_x96: int, liquidity: int) -> int:
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)
    return mul_div(liquidity, hi - lo, Q96)


def amounts_for_liquidity(
    sqrt_price_x96: int,
    sqrt_price_a_x96: int,
    sqrt_price_b_x96: int,
    liquidity: int,
) -> tuple[int, int]:
    """Token amounts backing `liquidity` over [a, b] at the current price (rounded down)."""
    lo, hi = _ordered(sqrt_price_a_x96, sqrt_price_b_x96)

    if sqrt_price_x96 <= lo:
        return amount0_for_liquidity(lo, hi, liquidity), 0
    if sqrt_price_x96 < hi:
        return (
            amount0_for_liquidity(sqrt_price_x96, hi, liquidity),
            amount1_for_liquidity(lo, sqrt_price_x96, liquidity),
        )
    return 0, amount1_for_liquidity(lo, hi, liquidity)
