"""
Shared fixtures: an in-memory ledger, a controllable clock, pool factories
and a payer that settles pool callbacks from a ledger balance.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import pytest

from tickpool.core.pool import Pool
from tickpool.kernels.full_math import Q96
from tickpool.state.balances import BalanceTable
from tickpool.state.pools import PoolConfig

TOKEN0 = "ETH"
TOKEN1 = "USDC"
FUNDING = 10**30


class FakeClock:
    def __init__(self, now: int = 1_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class Payer:
    """
    Settles mint/swap/flash callbacks from `holder`'s ledger balance.

    `shortfall` is withheld from every payment. `before_pay` runs before any
    transfer and is how tests re-enter pools from inside a callback.
    """

    def __init__(
        self,
        ledger: BalanceTable,
        pool: Pool,
        holder: str,
        *,
        shortfall: int = 0,
        principal: Tuple[int, int] = (0, 0),
        before_pay: Optional[Callable[[], object]] = None,
    ) -> None:
        self.ledger = ledger
        self.pool = pool
        self.holder = holder
        self.shortfall = shortfall
        self.principal = principal
        self.before_pay = before_pay
        self.calls: List[Tuple[str, int, int, bytes]] = []

    def on_liquidity_received(self, amount0: int, amount1: int, data: bytes) -> None:
        self.calls.append(("mint", amount0, amount1, data))
        self._pay(amount0, amount1)

    def on_swap_settled(self, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        self.calls.append(("swap", amount0_delta, amount1_delta, data))
        self._pay(max(amount0_delta, 0), max(amount1_delta, 0))

    def on_flash_loan_received(self, fee0: int, fee1: int, data: bytes) -> None:
        self.calls.append(("flash", fee0, fee1, data))
        self._pay(self.principal[0] + fee0, self.principal[1] + fee1)

    def _pay(self, amount0: int, amount1: int) -> None:
        if self.before_pay is not None:
            self.before_pay()
        config = self.pool.config
        for asset, amount in ((config.token0, amount0), (config.token1, amount1)):
            amount = max(amount - self.shortfall, 0) if amount > 0 else 0
            if amount:
                self.ledger.transfer(self.holder, self.pool.address, asset, amount)


@pytest.fixture
def ledger() -> BalanceTable:
    return BalanceTable()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_pool(ledger: BalanceTable, clock: FakeClock) -> Callable[..., Pool]:
    """
    Build a pool; initialized at `sqrt_price_x96` unless it is None.

    Pools share the `ledger` fixture unless another ledger is passed.
    """

    def _make(
        *,
        fee: int = 3000,
        tick_spacing: int = 60,
        sqrt_price_x96: Optional[int] = Q96,
        address: str = "pool",
        ledger: BalanceTable = ledger,
    ) -> Pool:
        config = PoolConfig(token0=TOKEN0, token1=TOKEN1, fee=fee, tick_spacing=tick_spacing)
        pool = Pool(config, ledger, address, clock=clock)
        if sqrt_price_x96 is not None:
            pool.initialize(sqrt_price_x96)
        return pool

    return _make


@pytest.fixture
def make_payer(ledger: BalanceTable) -> Callable[..., Payer]:
    """Build a Payer for `holder`, funded with FUNDING of both pool tokens."""

    def _make(pool: Pool, holder: str, *, ledger: BalanceTable = ledger, fund: bool = True, **kwargs: object) -> Payer:
        if fund:
            ledger.mint(holder, pool.config.token0, FUNDING)
            ledger.mint(holder, pool.config.token1, FUNDING)
        return Payer(ledger, pool, holder, **kwargs)  # type: ignore[arg-type]

    return _make
