"""
Callback interfaces implemented by whoever calls mint, swap or flash.

The pool invokes these synchronously while it holds its lock and before it
verifies its balances. An implementation pays the pool by moving funds on the
ledger; returning without paying makes the operation fail and roll back.
"""

from __future__ import annotations

from typing import Protocol


class MintCallback(Protocol):
    def on_liquidity_received(self, amount0: int, amount1: int, data: bytes) -> None:
        """Pay at least `amount0`/`amount1` to the pool."""
        ...


class SwapCallback(Protocol):
    def on_swap_settled(self, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        """Pay the positive delta to the pool. The negative delta was already sent out."""
        ...


class FlashCallback(Protocol):
    def on_flash_loan_received(self, fee0: int, fee1: int, data: bytes) -> None:
        """Return the borrowed amounts plus `fee0`/`fee1` to the pool."""
        ...
