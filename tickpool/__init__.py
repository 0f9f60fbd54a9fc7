"""
tickpool: an integer-only concentrated-liquidity pool engine.
"""

from .core.pool import Pool
from .core.quoter import Quote, quote_exact_input
from .state.balances import BalanceTable
from .state.pools import PoolConfig, config_for_fee_tier

__version__ = "0.1.0"

__all__ = [
    "Pool",
    "Quote",
    "quote_exact_input",
    "BalanceTable",
    "PoolConfig",
    "config_for_fee_tier",
]
