"""
Swap quotes without touching the pool.

The swap loop runs against a deep copy of the pool state; the copy is
discarded afterwards. No transfers, no callbacks, no oracle write on the
real pool.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..kernels.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO
from .pool import Pool
from .swap import compute_swap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    amount_out: int
    amount0: int
    amount1: int
    sqrt_price_x96_after: int
    tick_after: int
    initialized_ticks_crossed: int


def quote_exact_input(
    pool: Pool,
    zero_for_one: bool,
    amount_in: int,
    sqrt_price_limit_x96: Optional[int] = None,
) -> Quote:
    """
    Simulate an exact-input swap on `pool`.

    Without a limit the quote may move the price all the way to the bound.
    Raises the same errors `Pool.swap` would, except settlement errors.
    """
    if sqrt_price_limit_x96 is None:
        sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1

    state = pool.copy_state()
    result = compute_swap(
        state,
        fee=pool.config.fee,
        zero_for_one=zero_for_one,
        amount_specified=amount_in,
        sqrt_price_limit_x96=sqrt_price_limit_x96,
        time=pool.timestamp(),
    )
    amount_out = -(result.amount1 if zero_for_one else result.amount0)
    logger.debug(f"quote zero_for_one={zero_for_one} amount_in={amount_in} amount_out={amount_out}")
    return Quote(
        amount_out=amount_out,
        amount0=result.amount0,
        amount1=result.amount1,
        sqrt_price_x96_after=result.sqrt_price_x96,
        tick_after=result.tick,
        initialized_ticks_crossed=result.initialized_ticks_crossed,
    )
