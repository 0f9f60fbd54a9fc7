"""
Per-tick liquidity and fee-growth bookkeeping.

Each initialized tick stores how much liquidity references it (`gross`), how
active liquidity changes when the price crosses it left-to-right (`net`), and
the fee growth accrued on the *other* side of the tick relative to the current
price ("outside"). Crossing a tick flips which side is outside.

Fee-growth values are Q128 accumulators that wrap modulo 2**256; every
difference is taken with `wrapping_sub`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from ..errors import TickLiquidityOverflow
from ..kernels.full_math import MAX_UINT128, require_int, wrapping_sub
from ..kernels.liquidity_math import add_liquidity
from ..kernels.tick_math import MAX_TICK, MIN_TICK


@dataclass
class TickInfo:
    liquidity_gross: int = 0
    liquidity_net: int = 0
    fee_growth_outside0_x128: int = 0
    fee_growth_outside1_x128: int = 0
    initialized: bool = False


def tick_spacing_to_max_liquidity_per_tick(tick_spacing: int) -> int:
    """
    Cap on gross liquidity per tick so that the sum over all usable ticks
    cannot overflow uint128.
    """
    if tick_spacing <= 0:
        raise ValueError("tick_spacing must be positive")
    # Truncate toward zero on both ends.
    min_tick = -(-MIN_TICK // tick_spacing) * tick_spacing
    max_tick = (MAX_TICK // tick_spacing) * tick_spacing
    num_ticks = (max_tick - min_tick) // tick_spacing + 1
    return MAX_UINT128 // num_ticks


class TickTable:
    """Sparse map tick -> TickInfo for one pool."""

    def __init__(self, tick_spacing: int) -> None:
        self.tick_spacing = tick_spacing
        self.max_liquidity_per_tick = tick_spacing_to_max_liquidity_per_tick(tick_spacing)
        self._ticks: Dict[int, TickInfo] = {}

    def get(self, tick: int) -> TickInfo:
        """Return the record for `tick`, creating an empty one on first access."""
        info = self._ticks.get(tick)
        if info is None:
            info = TickInfo()
            self._ticks[tick] = info
        return info

    def find(self, tick: int) -> Optional[TickInfo]:
        return self._ticks.get(tick)

    def update(
        self,
        tick: int,
        tick_current: int,
        liquidity_delta: int,
        fee_growth_global0_x128: int,
        fee_growth_global1_x128: int,
        upper: bool,
    ) -> bool:
        """
        Apply `liquidity_delta` to a range boundary.

        Returns:
            True if the tick flipped between initialized and uninitialized.

        Raises:
            TickLiquidityOverflow: If gross liquidity would exceed the per-tick cap.
            LiquidityUnderflow: If more gross liquidity is removed than present.
        """
        info = self.get(tick)

        liquidity_gross_before = info.liquidity_gross
        liquidity_gross_after = add_liquidity(liquidity_gross_before, liquidity_delta)
        if liquidity_gross_after > self.max_liquidity_per_tick:
            raise TickLiquidityOverflow(
                f"tick {tick} gross liquidity {liquidity_gross_after} exceeds {self.max_liquidity_per_tick}"
            )

        flipped = (liquidity_gross_after == 0) != (liquidity_gross_before == 0)

        if liquidity_gross_before == 0:
            # By convention all growth before initialization happened below the tick.
            if tick <= tick_current:
                info.fee_growth_outside0_x128 = fee_growth_global0_x128
                info.fee_growth_outside1_x128 = fee_growth_global1_x128
            info.initialized = True

        info.liquidity_gross = liquidity_gross_after
        if upper:
            info.liquidity_net = require_int("liquidity_net", info.liquidity_net - liquidity_delta, 128)
        else:
            info.liquidity_net = require_int("liquidity_net", info.liquidity_net + liquidity_delta, 128)
        return flipped

    def clear(self, tick: int) -> None:
        self._ticks.pop(tick, None)

    def cross(self, tick: int, fee_growth_global0_x128: int, fee_growth_global1_x128: int) -> int:
        """Flip the outside snapshots of `tick` and return its net liquidity."""
        info = self.get(tick)
        info.fee_growth_outside0_x128 = wrapping_sub(fee_growth_global0_x128, info.fee_growth_outside0_x128)
        info.fee_growth_outside1_x128 = wrapping_sub(fee_growth_global1_x128, info.fee_growth_outside1_x128)
        return info.liquidity_net

    def fee_growth_inside(
        self,
        tick_lower: int,
        tick_upper: int,
        tick_current: int,
        fee_growth_global0_x128: int,
        fee_growth_global1_x128: int,
    ) -> Tuple[int, int]:
        """Fee growth per unit of liquidity accrued inside [tick_lower, tick_upper)."""
        lower = self._ticks.get(tick_lower) or TickInfo()
        upper = self._ticks.get(tick_upper) or TickInfo()

        if tick_current >= tick_lower:
            below0 = lower.fee_growth_outside0_x128
            below1 = lower.fee_growth_outside1_x128
        else:
            below0 = wrapping_sub(fee_growth_global0_x128, lower.fee_growth_outside0_x128)
            below1 = wrapping_sub(fee_growth_global1_x128, lower.fee_growth_outside1_x128)

        if tick_current < tick_upper:
            above0 = upper.fee_growth_outside0_x128
            above1 = upper.fee_growth_outside1_x128
        else:
            above0 = wrapping_sub(fee_growth_global0_x128, upper.fee_growth_outside0_x128)
            above1 = wrapping_sub(fee_growth_global1_x128, upper.fee_growth_outside1_x128)

        inside0 = wrapping_sub(wrapping_sub(fee_growth_global0_x128, below0), above0)
        inside1 = wrapping_sub(wrapping_sub(fee_growth_global1_x128, below1), above1)
        return inside0, inside1

    def items(self) -> Iterator[Tuple[int, TickInfo]]:
        """Iterate initialized ticks in ascending order."""
        for tick in sorted(self._ticks):
            yield tick, self._ticks[tick]

    def __contains__(self, tick: int) -> bool:
        return tick in self._ticks

    def __len__(self) -> int:
        return len(self._ticks)

    def __repr__(self) -> str:
        return f"TickTable(spacing={self.tick_spacing}, {len(self._ticks)} ticks)"
