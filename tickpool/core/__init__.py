"""
Pool orchestration: swap stepping, the pool state machine and the quoter.
"""

from .callbacks import FlashCallback, MintCallback, SwapCallback
from .pool import Pool
from .quoter import Quote, quote_exact_input
from .swap import SwapResult, compute_swap

__all__ = [
    "FlashCallback",
    "MintCallback",
    "SwapCallback",
    "Pool",
    "Quote",
    "quote_exact_input",
    "SwapResult",
    "compute_swap",
]
