"""
Single swap step within one segment of constant liquidity (exact input).

Semantics:
- The fee is charged on the *gross* input: the curve only sees
  `remaining * (1e6 - fee) / 1e6` when deciding whether the target price is
  reachable.
- If the target is reachable the step moves exactly to it and the fee is
  `ceil(amount_in * fee / (1e6 - fee))`.
- Otherwise the step consumes the whole remaining input; whatever the curve
  did not absorb is the fee.
- Input amounts round up, output amounts round down.
"""

from __future__ import annotations

from dataclasses import dataclass

from .full_math import mul_div, mul_div_rounding_up
from .sqrt_price_math import amount0_delta, amount1_delta, next_sqrt_price_from_input


FEE_DENOM = 1_000_000


@dataclass(frozen=True)
class SwapStep:
    sqrt_price_next_x96: int
    amount_in: int
    amount_out: int
    fee_amount: int


def compute_swap_step(
    *,
    sqrt_price_current_x96: int,
    sqrt_price_target_x96: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
) -> SwapStep:
    """
    Compute how far one step moves the price and what it costs.

    Args:
        sqrt_price_current_x96: Price at the start of the step.
        sqrt_price_target_x96: Next tick price, already clamped to the swap limit.
        liquidity: Active liquidity for the segment (must be positive).
        amount_remaining: Gross input still to be spent.
        fee_pips: Fee in parts per million.

    Returns:
        SwapStep with the new price and the input/output/fee amounts.
    """
    if not (0 <= fee_pips < FEE_DENOM):
        raise ValueError(f"fee_pips must be in [0, {FEE_DENOM})")
    if amount_remaining < 0:
        raise ValueError("amount_remaining must be non-negative")

    zero_for_one = sqrt_price_current_x96 >= sqrt_price_target_x96

    amount_remaining_less_fee = mul_div(amount_remaining, FEE_DENOM - fee_pips, FEE_DENOM)

    if zero_for_one:
        amount_in = amount0_delta(sqrt_price_target_x96, sqrt_price_current_x96, liquidity, True)
    else:
        amount_in = amount1_delta(sqrt_price_current_x96, sqrt_price_target_x96, liquidity, True)

    if amount_remaining_less_fee >= amount_in:
        sqrt_price_next_x96 = sqrt_price_target_x96
    else:
        sqrt_price_next_x96 = next_sqrt_price_from_input(
            sqrt_price_current_x96, liquidity, amount_remaining_less_fee, zero_for_one
        )

    reached_target = sqrt_price_next_x96 == sqrt_price_target_x96

    if zero_for_one:
        if not reached_target:
            amount_in = amount0_delta(sqrt_price_next_x96, sqrt_price_current_x96, liquidity, True)
        amount_out = amount1_delta(sqrt_price_next_x96, sqrt_price_current_x96, liquidity, False)
    else:
        if not reached_target:
            amount_in = amount1_delta(sqrt_price_current_x96, sqrt_price_next_x96, liquidity, True)
        amount_out = amount0_delta(sqrt_price_current_x96, sqrt_price_next_x96, liquidity, False)

    if reached_target:
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, FEE_DENOM - fee_pips)
    else:
        fee_amount = amount_remaining - amount_in

    return SwapStep(
        sqrt_price_next_x96=sqrt_price_next_x96,
        amount_in=amount_in,
        amount_out=amount_out,
        fee_amount=fee_amount,
    )
