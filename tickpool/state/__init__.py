"""
Per-pool state tables.
"""

from .balances import BalanceTable, Ledger
from .oracle import Observation, ObservationRing
from .pools import FEE_TIERS, PoolConfig, PoolState, Slot0, compute_pool_id, config_for_fee_tier
from .positions import Position, PositionTable
from .tick_bitmap import TickBitmap
from .ticks import TickInfo, TickTable

__all__ = [
    "BalanceTable",
    "Ledger",
    "Observation",
    "ObservationRing",
    "FEE_TIERS",
    "PoolConfig",
    "PoolState",
    "Slot0",
    "compute_pool_id",
    "config_for_fee_tier",
    "Position",
    "PositionTable",
    "TickBitmap",
    "TickInfo",
    "TickTable",
]
