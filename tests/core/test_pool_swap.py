# [TESTER] v1

from __future__ import annotations

import threading

import pytest

from tickpool.core.swap import compute_swap
from tickpool.errors import (
    InsufficientInputAmount,
    InvalidPriceLimit,
    NotEnoughLiquidity,
    NotInitialized,
    ReentrancyError,
    ZeroAmount,
)
from tickpool.kernels.full_math import MAX_UINT128, Q96, Q128, mul_div
from tickpool.kernels.swap_math import compute_swap_step
from tickpool.kernels.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO, MIN_TICK, sqrt_price_at_tick

E18 = 10**18
L = 10**21


@pytest.fixture
def pool(make_pool, make_payer):
    pool = make_pool()
    pool.mint("lp", -600, 600, L, callback=make_payer(pool, "lp"))
    return pool


def _sell_token0_step(amount: int):
    # Starting exactly on tick 0, the first loop step only moves the tick
    # below it; all input is spent in the second.
    return compute_swap_step(
        sqrt_price_current_x96=Q96,
        sqrt_price_target_x96=sqrt_price_at_tick(-600),
        liquidity=L,
        amount_remaining=amount,
        fee_pips=3000,
    )


def test_exact_input_swap_within_one_range(pool, make_payer, ledger) -> None:
    expected = _sell_token0_step(E18)
    trader = make_payer(pool, "trader")
    balance0, balance1 = pool.balance0(), pool.balance1()

    amount0, amount1 = pool.swap("trader", True, E18, MIN_SQRT_RATIO + 1, b"x", callback=trader)

    assert (amount0, amount1) == (E18, -expected.amount_out)
    assert trader.calls == [("swap", amount0, amount1, b"x")]
    assert pool.balance0() == balance0 + E18
    assert pool.balance1() == balance1 - expected.amount_out
    assert ledger.balance_of("trader", "USDC") == 10**30 + expected.amount_out
    assert pool.slot0.sqrt_price_x96 == expected.sqrt_price_next_x96
    assert -600 < pool.slot0.tick < 0
    assert pool.liquidity == L
    assert pool.fee_growth_global0_x128 == mul_div(expected.fee_amount, Q128, L)
    assert pool.fee_growth_global1_x128 == 0


def test_fees_accrue_to_in_range_liquidity(pool, make_payer) -> None:
    pool.swap("trader", True, E18, MIN_SQRT_RATIO + 1, callback=make_payer(pool, "trader"))
    fee = _sell_token0_step(E18).fee_amount
    assert fee >= mul_div(E18, 3000, 1_000_000)

    pool.burn("lp", -600, 600, 0)
    position = pool.position("lp", -600, 600)
    assert fee - 1 <= position.tokens_owed0 <= fee
    assert position.tokens_owed1 == 0
    assert pool.collect("lp", "lp", -600, 600, MAX_UINT128, MAX_UINT128) == (position.tokens_owed0, 0)


def test_swap_crosses_initialized_ticks(make_pool, make_payer) -> None:
    pool = make_pool()
    lp = make_payer(pool, "lp")
    pool.mint("lp", 60, 600, 10**20, callback=lp)
    pool.mint("lp", 120, 1200, 2 * 10**20, callback=lp)
    assert pool.liquidity == 0

    limit = sqrt_price_at_tick(900)
    simulated = compute_swap(
        pool.copy_state(),
        fee=pool.config.fee,
        zero_for_one=False,
        amount_specified=10**25,
        sqrt_price_limit_x96=limit,
        time=pool.timestamp(),
    )
    assert simulated.initialized_ticks_crossed == 3
    assert simulated.steps == 4

    amount0, amount1 = pool.swap("trader", False, 10**25, limit, callback=make_payer(pool, "trader"))
    assert (amount0, amount1) == (simulated.amount0, simulated.amount1)
    # Stopped at the limit with input left over.
    assert 0 < amount1 < 10**25
    assert amount0 < 0
    assert pool.slot0.sqrt_price_x96 == limit
    assert pool.slot0.tick == 900
    assert pool.liquidity == 2 * 10**20
    assert pool.tick(60).fee_growth_outside1_x128 == 0


def test_swap_through_empty_range_is_free(make_pool, make_payer) -> None:
    pool = make_pool()
    limit = sqrt_price_at_tick(900)
    assert pool.swap("trader", False, E18, limit, callback=make_payer(pool, "trader")) == (0, 0)
    assert pool.slot0.sqrt_price_x96 == limit


def test_swap_with_no_liquidity_anywhere_stops_at_the_limit(make_pool, make_payer) -> None:
    # Nothing is crossed, so the swap walks every empty word down to the
    # limit instead of raising NotEnoughLiquidity.
    pool = make_pool()
    trader = make_payer(pool, "trader")
    assert pool.swap("trader", True, 10**24, MIN_SQRT_RATIO + 1, callback=trader) == (0, 0)
    assert pool.slot0.sqrt_price_x96 == MIN_SQRT_RATIO + 1
    assert pool.slot0.tick == MIN_TICK
    assert pool.liquidity == 0


def test_running_out_of_liquidity_aborts(pool, make_payer, ledger) -> None:
    balances = ledger.get_all_balances()
    slot0 = pool.slot0
    with pytest.raises(NotEnoughLiquidity):
        pool.swap("trader", True, 10**30, MIN_SQRT_RATIO + 1, callback=make_payer(pool, "trader", fund=False))
    assert pool.slot0 == slot0
    assert pool.liquidity == L
    assert ledger.get_all_balances() == balances


@pytest.mark.parametrize(
    "zero_for_one,limit",
    [
        (True, Q96),
        (True, Q96 + 1),
        (True, MIN_SQRT_RATIO),
        (False, Q96),
        (False, Q96 - 1),
        (False, MAX_SQRT_RATIO),
    ],
)
def test_price_limit_must_be_strictly_beyond_current(pool, make_payer, zero_for_one: bool, limit: int) -> None:
    with pytest.raises(InvalidPriceLimit):
        pool.swap("trader", zero_for_one, E18, limit, callback=make_payer(pool, "trader"))


@pytest.mark.parametrize("amount", [0, -1])
def test_swap_requires_positive_input(pool, make_payer, amount: int) -> None:
    with pytest.raises(ZeroAmount):
        pool.swap("trader", True, amount, MIN_SQRT_RATIO + 1, callback=make_payer(pool, "trader"))


def test_swap_requires_initialized_pool(make_pool, make_payer) -> None:
    pool = make_pool(sqrt_price_x96=None)
    with pytest.raises(NotInitialized):
        pool.swap("trader", True, E18, MIN_SQRT_RATIO + 1, callback=make_payer(pool, "trader"))


def test_underpaid_swap_returns_output(pool, make_payer, ledger) -> None:
    trader = make_payer(pool, "trader", shortfall=1)
    balances = ledger.get_all_balances()
    with pytest.raises(InsufficientInputAmount):
        pool.swap("trader", False, E18, MAX_SQRT_RATIO - 1, callback=trader)
    assert pool.slot0.sqrt_price_x96 == Q96
    assert ledger.get_all_balances() == balances


def test_swap_callback_cannot_reenter_same_pool(pool, make_payer) -> None:
    inner = make_payer(pool, "trader")
    outer = make_payer(
        pool, "trader", before_pay=lambda: pool.swap("trader", True, 1000, MIN_SQRT_RATIO + 1, callback=inner)
    )
    with pytest.raises(ReentrancyError):
        pool.swap("trader", False, E18, MAX_SQRT_RATIO - 1, callback=outer)
    assert pool.slot0.sqrt_price_x96 == Q96


def test_swap_callback_may_use_another_pool(pool, make_pool, make_payer) -> None:
    other = make_pool(fee=500, tick_spacing=10, address="other-pool")
    lp = make_payer(other, "lp")
    trader = make_payer(pool, "trader", before_pay=lambda: other.mint("lp", -10, 10, E18, callback=lp))

    pool.swap("trader", True, E18, MIN_SQRT_RATIO + 1, callback=trader)
    assert other.liquidity == E18
    assert pool.slot0.tick < 0


def test_views_wait_for_a_running_operation(pool) -> None:
    seen = []
    reader = threading.Thread(
        target=lambda: seen.append((pool.liquidity, pool.fee_growth_global0_x128, pool.fee_growth_global1_x128))
    )
    with pool._lock:
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
        assert seen == []
    reader.join()
    assert seen == [(L, 0, 0)]
