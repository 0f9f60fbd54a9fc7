# [TESTER] v1
# Tick <-> sqrt price conversion: bounds, known values and the round trip.

from __future__ import annotations

from math import isqrt

import pytest
from hypothesis import given, strategies as st

from tickpool.errors import InvalidSqrtPrice, InvalidTick
from tickpool.kernels.full_math import Q96
from tickpool.kernels.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    sqrt_price_at_tick,
    tick_at_sqrt_price,
)


def _price_to_tick(price: int) -> int:
    return tick_at_sqrt_price(isqrt(price << 128) << 32)


def test_sqrt_price_at_bounds_and_zero() -> None:
    assert sqrt_price_at_tick(0) == Q96
    assert sqrt_price_at_tick(MIN_TICK) == MIN_SQRT_RATIO
    assert sqrt_price_at_tick(MAX_TICK) == MAX_SQRT_RATIO


def test_tick_at_sqrt_price_bounds() -> None:
    assert tick_at_sqrt_price(MIN_SQRT_RATIO) == MIN_TICK
    assert tick_at_sqrt_price(MAX_SQRT_RATIO - 1) == MAX_TICK - 1
    assert tick_at_sqrt_price(Q96) == 0


def test_out_of_range_inputs_are_rejected() -> None:
    with pytest.raises(InvalidTick):
        sqrt_price_at_tick(MIN_TICK - 1)
    with pytest.raises(InvalidTick):
        sqrt_price_at_tick(MAX_TICK + 1)
    with pytest.raises(InvalidSqrtPrice):
        tick_at_sqrt_price(MIN_SQRT_RATIO - 1)
    with pytest.raises(InvalidSqrtPrice):
        tick_at_sqrt_price(MAX_SQRT_RATIO)
    with pytest.raises(TypeError):
        sqrt_price_at_tick(True)


@pytest.mark.parametrize(
    "price,tick",
    [(5000, 85176), (4545, 84222), (5500, 86129), (5001, 85178), (6250, 87407), (4000, 82944), (4999, 85174)],
)
def test_tick_for_human_prices(price: int, tick: int) -> None:
    assert _price_to_tick(price) == tick


@given(st.integers(min_value=MIN_TICK, max_value=MAX_TICK - 1))
def test_round_trip(tick: int) -> None:
    assert tick_at_sqrt_price(sqrt_price_at_tick(tick)) == tick


@given(st.integers(min_value=MIN_TICK, max_value=MAX_TICK - 1))
def test_sqrt_price_is_strictly_increasing(tick: int) -> None:
    assert sqrt_price_at_tick(tick) < sqrt_price_at_tick(tick + 1)


@given(st.integers(min_value=MIN_SQRT_RATIO, max_value=MAX_SQRT_RATIO - 1))
def test_tick_brackets_price(sqrt_price_x96: int) -> None:
    tick = tick_at_sqrt_price(sqrt_price_x96)
    assert sqrt_price_at_tick(tick) <= sqrt_price_x96 < sqrt_price_at_tick(tick + 1)
