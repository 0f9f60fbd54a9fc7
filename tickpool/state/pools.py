"""
Pool configuration and mutable per-pool state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from ..errors import UnsupportedFeeTier, ValidationError
from .balances import AssetId
from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from .oracle import ObservationRing
from .positions import PositionTable
from .tick_bitmap import TickBitmap
from .ticks import TickTable


FEE_DENOM = 1_000_000
MAX_TICK_SPACING = 16384

# fee (pips) -> tick spacing
FEE_TIERS: Dict[int, int] = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}


@dataclass(frozen=True)
class PoolConfig:
    """
    Immutable pool parameters.

    Attributes:
        token0: Asset id of token0 (must sort before token1)
        token1: Asset id of token1
        fee: Swap fee in parts per million
        tick_spacing: Distance between usable ticks
    """

    token0: AssetId
    token1: AssetId
    fee: int
    tick_spacing: int

    def __post_init__(self) -> None:
        if not isinstance(self.token0, str) or not isinstance(self.token1, str):
            raise ValidationError("token ids must be strings")
        if self.token0 >= self.token1:
            raise ValidationError(f"Assets must be in canonical order: {self.token0} < {self.token1}")
        if not isinstance(self.fee, int) or isinstance(self.fee, bool) or not (0 <= self.fee < FEE_DENOM):
            raise ValidationError(f"fee must be in [0, {FEE_DENOM}): {self.fee}")
        if (
            not isinstance(self.tick_spacing, int)
            or isinstance(self.tick_spacing, bool)
            or not (1 <= self.tick_spacing < MAX_TICK_SPACING)
        ):
            raise ValidationError(f"tick_spacing must be in [1, {MAX_TICK_SPACING}): {self.tick_spacing}")


def config_for_fee_tier(token0: AssetId, token1: AssetId, fee: int) -> PoolConfig:
    """Build a PoolConfig from a supported fee tier, sorting the token pair."""
    tick_spacing = FEE_TIERS.get(fee)
    if tick_spacing is None:
        raise UnsupportedFeeTier(f"unsupported fee tier: {fee}")
    if token0 > token1:
        token0, token1 = token1, token0
    return PoolConfig(token0=token0, token1=token1, fee=fee, tick_spacing=tick_spacing)


def compute_pool_id(config: PoolConfig) -> str:
    """Deterministic 0x-prefixed sha256 pool id."""
    payload = {
        "fee": config.fee,
        "tick_spacing": config.tick_spacing,
        "token0": config.token0,
        "token1": config.token1,
    }
    return sha256_hex(domain_sep_bytes("pool_id") + canonical_json_bytes(payload))


@dataclass
class Slot0:
    sqrt_price_x96: int = 0
    tick: int = 0
    observation_index: int = 0
    observation_cardinality: int = 0
    observation_cardinality_next: int = 0


@dataclass
class PoolState:
    """
    All mutable state of one pool.

    The tables are owned exclusively by this object; operations receive it
    explicitly, so independent pools never share anything.
    """

    tick_spacing: int
    slot0: Slot0 = field(default_factory=Slot0)
    liquidity: int = 0
    fee_growth_global0_x128: int = 0
    fee_growth_global1_x128: int = 0
    ticks: TickTable = field(init=False)
    tick_bitmap: TickBitmap = field(default_factory=TickBitmap)
    positions: PositionTable = field(default_factory=PositionTable)
    observations: ObservationRing = field(default_factory=ObservationRing)

    def __post_init__(self) -> None:
        self.ticks = TickTable(self.tick_spacing)

    @property
    def initialized(self) -> bool:
        return self.slot0.sqrt_price_x96 != 0

    def __repr__(self) -> str:
        return (
            f"PoolState(sqrt_price_x96={self.slot0.sqrt_price_x96}, tick={self.slot0.tick}, "
            f"liquidity={self.liquidity}, ticks={len(self.ticks)}, positions={len(self.positions)})"
        )
