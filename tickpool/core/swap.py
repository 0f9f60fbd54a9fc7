"""
Exact-input swap stepping over a PoolState.

`compute_swap` walks the price from tick to tick, one bitmap word at a time,
consuming input at the active liquidity of each segment. It mutates `state`
in place (crossed ticks, slot0, liquidity, fee growth, oracle) and performs
no transfers; settlement belongs to the pool. Callers that must not mutate
(the quoter) pass a copy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import InvalidPriceLimit, NotEnoughLiquidity, NotInitialized, ZeroAmount
from ..kernels.full_math import Q128, mul_div, wrapping_add
from ..kernels.liquidity_math import add_liquidity
from ..kernels.swap_math import compute_swap_step
from ..kernels.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    sqrt_price_at_tick,
    tick_at_sqrt_price,
)
from ..state.pools import PoolState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapResult:
    """
    Outcome of a swap from the pool's perspective.

    `amount0`/`amount1` are signed: the input side is positive (owed to the
    pool), the output side negative (paid by the pool).
    """

    amount0: int
    amount1: int
    sqrt_price_x96: int
    tick: int
    liquidity: int
    steps: int
    initialized_ticks_crossed: int


def validate_price_limit(state: PoolState, zero_for_one: bool, sqrt_price_limit_x96: int) -> None:
    current = state.slot0.sqrt_price_x96
    if zero_for_one:
        if not (MIN_SQRT_RATIO < sqrt_price_limit_x96 < current):
            raise InvalidPriceLimit(
                f"limit {sqrt_price_limit_x96} must be in ({MIN_SQRT_RATIO}, {current}) when selling token0"
            )
    elif not (current < sqrt_price_limit_x96 < MAX_SQRT_RATIO):
        raise InvalidPriceLimit(
            f"limit {sqrt_price_limit_x96} must be in ({current}, {MAX_SQRT_RATIO}) when selling token1"
        )


def compute_swap(
    state: PoolState,
    *,
    fee: int,
    zero_for_one: bool,
    amount_specified: int,
    sqrt_price_limit_x96: int,
    time: int,
) -> SwapResult:
    """
    Run the swap loop against `state`.

    Args:
        state: Pool state to mutate.
        fee: Pool fee in pips.
        zero_for_one: True when selling token0 (price moves down).
        amount_specified: Exact input amount (must be positive).
        sqrt_price_limit_x96: Price the swap must not move past.
        time: Oracle timestamp (uint32) for the observation write.

    Price ranges without active liquidity are traversed for free. Only a tick
    crossing that leaves zero active liquidity with input still remaining
    is an error; if nothing is crossed, a pool with no liquidity in the
    trade direction moves straight to the limit and returns (0, 0). The loop
    always terminates: each step either reaches its target tick or the
    limit, or spends all remaining input.

    Raises:
        NotInitialized: If the pool has no price yet.
        ZeroAmount: If `amount_specified` is not positive.
        InvalidPriceLimit: If the limit is on the wrong side or out of bounds.
        NotEnoughLiquidity: If active liquidity runs out with input remaining.
    """
    if not state.initialized:
        raise NotInitialized("pool is not initialized")
    if not isinstance(amount_specified, int) or isinstance(amount_specified, bool) or amount_specified <= 0:
        raise ZeroAmount(f"amount_specified must be a positive int: {amount_specified!r}")
    validate_price_limit(state, zero_for_one, sqrt_price_limit_x96)

    slot0 = state.slot0
    tick_start = slot0.tick
    tick_spacing = state.tick_spacing

    amount_remaining = amount_specified
    amount_calculated = 0
    sqrt_price_x96 = slot0.sqrt_price_x96
    tick = tick_start
    liquidity = state.liquidity
    fee_growth_global_x128 = state.fee_growth_global0_x128 if zero_for_one else state.fee_growth_global1_x128
    steps = 0
    crossed = 0

    while amount_remaining > 0 and sqrt_price_x96 != sqrt_price_limit_x96:
        sqrt_price_start_x96 = sqrt_price_x96

        tick_next, initialized = state.tick_bitmap.next_initialized_tick_within_one_word(
            tick, tick_spacing, zero_for_one
        )
        # The bitmap knows nothing about the price bounds.
        if tick_next < MIN_TICK:
            tick_next = MIN_TICK
        elif tick_next > MAX_TICK:
            tick_next = MAX_TICK

        sqrt_price_next_x96 = sqrt_price_at_tick(tick_next)

        if zero_for_one:
            target = sqrt_price_limit_x96 if sqrt_price_next_x96 < sqrt_price_limit_x96 else sqrt_price_next_x96
        else:
            target = sqrt_price_limit_x96 if sqrt_price_next_x96 > sqrt_price_limit_x96 else sqrt_price_next_x96

        step = compute_swap_step(
            sqrt_price_current_x96=sqrt_price_x96,
            sqrt_price_target_x96=target,
            liquidity=liquidity,
            amount_remaining=amount_remaining,
            fee_pips=fee,
        )
        steps += 1

        amount_remaining -= step.amount_in + step.fee_amount
        amount_calculated += step.amount_out

        if liquidity > 0:
            fee_growth_global_x128 = wrapping_add(
                fee_growth_global_x128, mul_div(step.fee_amount, Q128, liquidity)
            )

        sqrt_price_x96 = step.sqrt_price_next_x96

        if sqrt_price_x96 == sqrt_price_next_x96:
            if initialized:
                if zero_for_one:
                    liquidity_net = state.ticks.cross(tick_next, fee_growth_global_x128, state.fee_growth_global1_x128)
                    liquidity_net = -liquidity_net
                else:
                    liquidity_net = state.ticks.cross(tick_next, state.fee_growth_global0_x128, fee_growth_global_x128)

                liquidity = add_liquidity(liquidity, liquidity_net)
                crossed += 1

                if liquidity == 0 and amount_remaining > 0:
                    raise NotEnoughLiquidity(
                        f"liquidity exhausted at tick {tick_next} with {amount_remaining} input remaining"
                    )

            tick = tick_next - 1 if zero_for_one else tick_next
        elif sqrt_price_x96 != sqrt_price_start_x96:
            tick = tick_at_sqrt_price(sqrt_price_x96)

        logger.debug(
            f"swap step {steps}: price {sqrt_price_start_x96} -> {sqrt_price_x96}, "
            f"in={step.amount_in} out={step.amount_out} fee={step.fee_amount} liquidity={liquidity}"
        )

    if tick != tick_start:
        # The observation records the tick that held *before* this swap.
        observation_index, observation_cardinality = state.observations.write(
            slot0.observation_index,
            time,
            tick_start,
            slot0.observation_cardinality,
            slot0.observation_cardinality_next,
        )
        slot0.observation_index = observation_index
        slot0.observation_cardinality = observation_cardinality
        slot0.tick = tick
    slot0.sqrt_price_x96 = sqrt_price_x96

    state.liquidity = liquidity
    if zero_for_one:
        state.fee_growth_global0_x128 = fee_growth_global_x128
    else:
        state.fee_growth_global1_x128 = fee_growth_global_x128

    amount_in = amount_specified - amount_remaining
    if zero_for_one:
        amount0, amount1 = amount_in, -amount_calculated
    else:
        amount0, amount1 = -amount_calculated, amount_in

    return SwapResult(
        amount0=amount0,
        amount1=amount1,
        sqrt_price_x96=sqrt_price_x96,
        tick=tick,
        liquidity=liquidity,
        steps=steps,
        initialized_ticks_crossed=crossed,
    )
