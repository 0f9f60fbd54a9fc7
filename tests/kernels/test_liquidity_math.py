# [TESTER] v1

from __future__ import annotations

import pytest
from hypothesis import assume, given, strategies as st

from tickpool.errors import LiquidityOverflow, LiquidityUnderflow
from tickpool.kernels.full_math import MAX_UINT128
from tickpool.kernels.liquidity_math import (
    add_liquidity,
    amounts_for_liquidity,
    liquidity_for_amount0,
    liquidity_for_amount1,
    liquidity_for_amounts,
)
from tickpool.kernels.tick_math import sqrt_price_at_tick

E18 = 10**18


def test_add_liquidity_bounds() -> None:
    assert add_liquidity(5, -5) == 0
    assert add_liquidity(5, 7) == 12
    with pytest.raises(LiquidityUnderflow):
        add_liquidity(1, -2)
    with pytest.raises(LiquidityOverflow):
        add_liquidity(MAX_UINT128, 1)


def test_liquidity_for_range_around_price() -> None:
    liquidity = liquidity_for_amounts(
        sqrt_price_at_tick(85176),
        sqrt_price_at_tick(84222),
        sqrt_price_at_tick(86129),
        E18,
        5000 * E18,
    )
    assert liquidity == 1518129116516325614066


def test_liquidity_for_range_above_price_uses_token0_only() -> None:
    current = sqrt_price_at_tick(85176)
    lower, upper = sqrt_price_at_tick(85178), sqrt_price_at_tick(87407)
    liquidity = liquidity_for_amounts(current, lower, upper, E18, 0)
    assert liquidity == 670565280937709473686
    assert liquidity == liquidity_for_amount0(lower, upper, E18)


def test_boundaries_pick_a_single_token() -> None:
    lower, upper = sqrt_price_at_tick(-600), sqrt_price_at_tick(600)
    assert liquidity_for_amounts(lower, lower, upper, E18, 1) == liquidity_for_amount0(lower, upper, E18)
    assert liquidity_for_amounts(upper, lower, upper, 1, E18) == liquidity_for_amount1(lower, upper, E18)
    assert amounts_for_liquidity(lower, lower, upper, E18)[1] == 0
    assert amounts_for_liquidity(upper, lower, upper, E18)[0] == 0


def test_price_order_of_range_does_not_matter() -> None:
    lower, upper = sqrt_price_at_tick(-600), sqrt_price_at_tick(600)
    current = sqrt_price_at_tick(17)
    assert liquidity_for_amounts(current, lower, upper, E18, E18) == liquidity_for_amounts(
        current, upper, lower, E18, E18
    )


@given(
    current=st.integers(min_value=-100_000, max_value=100_000),
    lower=st.integers(min_value=-100_000, max_value=100_000),
    width=st.integers(min_value=1, max_value=50_000),
    amount0=st.integers(min_value=0, max_value=10**24),
    amount1=st.integers(min_value=0, max_value=10**24),
)
def test_liquidity_never_needs_more_than_supplied(
    current: int, lower: int, width: int, amount0: int, amount1: int
) -> None:
    upper = lower + width
    assume(upper <= 100_000)
    sqrt_current = sqrt_price_at_tick(current)
    sqrt_lower = sqrt_price_at_tick(lower)
    sqrt_upper = sqrt_price_at_tick(upper)

    liquidity = liquidity_for_amounts(sqrt_current, sqrt_lower, sqrt_upper, amount0, amount1)
    used0, used1 = amounts_for_liquidity(sqrt_current, sqrt_lower, sqrt_upper, liquidity)
    assert used0 <= amount0
    assert used1 <= amount1
