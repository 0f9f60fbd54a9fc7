# [TESTER] v1

from __future__ import annotations

import pytest

from tickpool.errors import NotInitialized, ObservationTooOld, ValidationError
from tickpool.kernels.tick_math import MIN_SQRT_RATIO


@pytest.fixture
def pool(make_pool, make_payer):
    # Initialized at tick 0 at t=1000.
    pool = make_pool()
    pool.mint("lp", -600, 600, 10**21, callback=make_payer(pool, "lp"))
    return pool


def _sell_token0(pool, make_payer) -> int:
    pool.swap("trader", True, 10**18, MIN_SQRT_RATIO + 1, callback=make_payer(pool, "trader"))
    return pool.slot0.tick


def test_fresh_pool_observes_zero(pool) -> None:
    assert pool.observe([0]) == [0]


def test_consult_after_price_move(pool, make_payer, clock) -> None:
    clock.advance(10)
    tick = _sell_token0(pool, make_payer)
    assert tick < 0

    clock.advance(10)
    assert pool.consult(10) == tick
    # A single slot only remembers the latest write.
    with pytest.raises(ObservationTooOld):
        pool.consult(20)


def test_grown_ring_keeps_history(pool, make_payer, clock) -> None:
    assert pool.increase_observation_cardinality_next(4) == 4
    assert pool.slot0.observation_cardinality == 1

    clock.advance(10)
    tick = _sell_token0(pool, make_payer)
    slot0 = pool.slot0
    assert (slot0.observation_index, slot0.observation_cardinality) == (1, 4)

    clock.advance(10)
    assert pool.observe([20, 10, 0]) == [0, 0, 10 * tick]
    assert pool.consult(20) == (10 * tick) // 20
    with pytest.raises(ObservationTooOld):
        pool.consult(21)


def test_cardinality_target_only_grows(pool) -> None:
    assert pool.increase_observation_cardinality_next(8) == 8
    assert pool.increase_observation_cardinality_next(3) == 8
    with pytest.raises(ValueError):
        pool.increase_observation_cardinality_next(65536)
    assert pool.slot0.observation_cardinality_next == 8


def test_consult_validates_window(pool) -> None:
    with pytest.raises(ValidationError):
        pool.consult(0)


def test_oracle_requires_initialized_pool(make_pool) -> None:
    pool = make_pool(sqrt_price_x96=None)
    with pytest.raises(NotInitialized):
        pool.observe([0])
    with pytest.raises(NotInitialized):
        pool.increase_observation_cardinality_next(2)


def test_timestamp_truncates_to_uint32(pool, clock) -> None:
    clock.now = (1 << 32) + 5
    assert pool.timestamp() == 5
