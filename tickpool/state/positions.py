"""
Liquidity positions for one pool.

Positions are keyed by (owner, tick_lower, tick_upper), created lazily and
never deleted. Fees are credited to `tokens_owed{0,1}` by comparing the
range's current fee growth inside against the snapshot taken at the last
update.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from ..errors import EmptyPosition
from ..kernels.full_math import Q128, mul_div, wrapping_add, wrapping_sub
from ..kernels.liquidity_math import add_liquidity
from .balances import Address

PositionKey = Tuple[Address, int, int]


@dataclass
class Position:
    liquidity: int = 0
    fee_growth_inside0_last_x128: int = 0
    fee_growth_inside1_last_x128: int = 0
    tokens_owed0: int = 0
    tokens_owed1: int = 0

    def update(self, liquidity_delta: int, fee_growth_inside0_x128: int, fee_growth_inside1_x128: int) -> None:
        """
        Credit fees earned since the last update and apply `liquidity_delta`.

        Raises:
            EmptyPosition: On a zero delta against a position with no liquidity.
            LiquidityUnderflow: If the delta removes more than the position holds.
        """
        if liquidity_delta == 0:
            if self.liquidity == 0:
                raise EmptyPosition("cannot poke a position with no liquidity")
            liquidity_next = self.liquidity
        else:
            liquidity_next = add_liquidity(self.liquidity, liquidity_delta)

        tokens_owed0 = mul_div(
            wrapping_sub(fee_growth_inside0_x128, self.fee_growth_inside0_last_x128),
            self.liquidity,
            Q128,
        )
        tokens_owed1 = mul_div(
            wrapping_sub(fee_growth_inside1_x128, self.fee_growth_inside1_last_x128),
            self.liquidity,
            Q128,
        )

        if liquidity_delta != 0:
            self.liquidity = liquidity_next
        self.fee_growth_inside0_last_x128 = fee_growth_inside0_x128
        self.fee_growth_inside1_last_x128 = fee_growth_inside1_x128
        # Owed amounts wrap at uint128; the owner must collect before that.
        if tokens_owed0 > 0 or tokens_owed1 > 0:
            self.tokens_owed0 = wrapping_add(self.tokens_owed0, tokens_owed0, 128)
            self.tokens_owed1 = wrapping_add(self.tokens_owed1, tokens_owed1, 128)


class PositionTable:
    """Map (owner, tick_lower, tick_upper) -> Position."""

    def __init__(self) -> None:
        self._positions: Dict[PositionKey, Position] = {}

    def get(self, owner: Address, tick_lower: int, tick_upper: int) -> Position:
        """Return the position, creating a zero-valued record on first access."""
        key = (owner, tick_lower, tick_upper)
        position = self._positions.get(key)
        if position is None:
            position = Position()
            self._positions[key] = position
        return position

    def find(self, owner: Address, tick_lower: int, tick_upper: int) -> Optional[Position]:
        """Look a position up without creating it."""
        return self._positions.get((owner, tick_lower, tick_upper))

    def put(self, key: PositionKey, position: Position) -> None:
        self._positions[key] = position

    def items(self) -> Iterator[Tuple[PositionKey, Position]]:
        """Iterate positions in sorted key order."""
        for key in sorted(self._positions):
            yield key, self._positions[key]

    def __len__(self) -> int:
        return len(self._positions)

    def __repr__(self) -> str:
        return f"PositionTable({len(self._positions)} positions)"
