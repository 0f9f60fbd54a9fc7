"""
Concentrated-liquidity pool.

`Pool` owns one PoolState and talks to the outside world only through the
ledger (reading its own balances, pushing outbound transfers) and the
callbacks passed to mint/swap/flash.

Every mutating operation is atomic. On entry the pool takes its lock, copies
its state and snapshots the ledger; if anything raises (validation, a
callback, a failed balance check) both are restored before the error
propagates. A callback may call other pools but not the pool that invoked it.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from ..errors import (
    AlreadyInitialized,
    FlashLoanNotPaid,
    InsufficientInputAmount,
    InvalidTickRange,
    NotInitialized,
    ReentrancyError,
    ValidationError,
    ZeroLiquidity,
)
from ..kernels.full_math import mul_div_rounding_up, wrapping_add
from ..kernels.liquidity_math import add_liquidity
from ..kernels.sqrt_price_math import amount0_delta_signed, amount1_delta_signed
from ..kernels.tick_math import MAX_TICK, MIN_TICK, sqrt_price_at_tick, tick_at_sqrt_price
from ..state.balances import Address, Ledger
from ..state.oracle import to_timestamp
from ..state.pools import FEE_DENOM, PoolConfig, PoolState, Slot0, compute_pool_id
from ..state.positions import Position
from ..state.ticks import TickInfo
from .callbacks import FlashCallback, MintCallback, SwapCallback
from .swap import compute_swap

logger = logging.getLogger(__name__)


def _require_amount(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(f"{name} must be a non-negative int: {value!r}")
    return value


class Pool:
    """
    A single token0/token1 pool.

    Args:
        config: Immutable pool parameters.
        ledger: Asset ledger holding the pool's funds.
        address: Ledger address of the pool.
        clock: Returns the current time in seconds; truncated to uint32 for
            the oracle. Defaults to wall-clock time.
        state: Existing state to resume from (e.g. from `state_from_dict`).
    """

    def __init__(
        self,
        config: PoolConfig,
        ledger: Ledger,
        address: Address,
        *,
        clock: Optional[Callable[[], int]] = None,
        state: Optional[PoolState] = None,
    ) -> None:
        if state is not None and state.tick_spacing != config.tick_spacing:
            raise ValidationError("state tick spacing does not match config")
        self.config = config
        self.address = address
        self.pool_id = compute_pool_id(config)
        self._ledger = ledger
        self._clock = clock if clock is not None else (lambda: int(time.time()))
        self._state = state if state is not None else PoolState(tick_spacing=config.tick_spacing)
        self._lock = threading.RLock()
        self._busy = False

    # -- plumbing --------------------------------------------------------------

    @contextmanager
    def _operation(self, name: str) -> Iterator[PoolState]:
        with self._lock:
            if self._busy:
                raise ReentrancyError(f"{name} re-entered pool {self.pool_id[:10]} from a callback")
            self._busy = True
            state_backup = copy.deepcopy(self._state)
            ledger_backup = self._ledger.snapshot()
            try:
                yield self._state
            except Exception as exc:
                self._state = state_backup
                self._ledger.restore(ledger_backup)
                logger.warning(f"{name} rolled back on pool {self.pool_id[:10]}: {type(exc).__name__}: {exc}")
                raise
            finally:
                self._busy = False

    def timestamp(self) -> int:
        """Current oracle timestamp (uint32)."""
        return to_timestamp(self._clock())

    def _require_initialized(self) -> None:
        if not self._state.initialized:
            raise NotInitialized("pool is not initialized")

    def _check_ticks(self, tick_lower: int, tick_upper: int) -> None:
        for name, tick in (("tick_lower", tick_lower), ("tick_upper", tick_upper)):
            if not isinstance(tick, int) or isinstance(tick, bool):
                raise InvalidTickRange(f"{name} must be an int")
            if tick % self.config.tick_spacing != 0:
                raise InvalidTickRange(f"{name} {tick} is not a multiple of {self.config.tick_spacing}")
        if tick_lower >= tick_upper:
            raise InvalidTickRange(f"tick_lower {tick_lower} must be below tick_upper {tick_upper}")
        if tick_lower < MIN_TICK:
            raise InvalidTickRange(f"tick_lower {tick_lower} below {MIN_TICK}")
        if tick_upper > MAX_TICK:
            raise InvalidTickRange(f"tick_upper {tick_upper} above {MAX_TICK}")

    def _update_position(
        self, owner: Address, tick_lower: int, tick_upper: int, liquidity_delta: int, tick: int
    ) -> Position:
        state = self._state
        position = state.positions.get(owner, tick_lower, tick_upper)
        fee_growth_global0_x128 = state.fee_growth_global0_x128
        fee_growth_global1_x128 = state.fee_growth_global1_x128

        flipped_lower = flipped_upper = False
        if liquidity_delta != 0:
            flipped_lower = state.ticks.update(
                tick_lower, tick, liquidity_delta, fee_growth_global0_x128, fee_growth_global1_x128, False
            )
            flipped_upper = state.ticks.update(
                tick_upper, tick, liquidity_delta, fee_growth_global0_x128, fee_growth_global1_x128, True
            )
            if flipped_lower:
                state.tick_bitmap.flip_tick(tick_lower, self.config.tick_spacing)
            if flipped_upper:
                state.tick_bitmap.flip_tick(tick_upper, self.config.tick_spacing)

        fee_growth_inside0_x128, fee_growth_inside1_x128 = state.ticks.fee_growth_inside(
            tick_lower, tick_upper, tick, fee_growth_global0_x128, fee_growth_global1_x128
        )
        position.update(liquidity_delta, fee_growth_inside0_x128, fee_growth_inside1_x128)

        # Ticks that no position references any more are dropped.
        if liquidity_delta < 0:
            if flipped_lower:
                state.ticks.clear(tick_lower)
            if flipped_upper:
                state.ticks.clear(tick_upper)
        return position

    def _modify_position(
        self, owner: Address, tick_lower: int, tick_upper: int, liquidity_delta: int
    ) -> Tuple[Position, int, int]:
        """Apply a signed liquidity change and return the signed token deltas it implies."""
        state = self._state
        slot0 = state.slot0
        position = self._update_position(owner, tick_lower, tick_upper, liquidity_delta, slot0.tick)

        amount0 = amount1 = 0
        if liquidity_delta != 0:
            sqrt_price_lower_x96 = sqrt_price_at_tick(tick_lower)
            sqrt_price_upper_x96 = sqrt_price_at_tick(tick_upper)
            if slot0.tick < tick_lower:
                # Range is above the price: only token0 backs it.
                amount0 = amount0_delta_signed(sqrt_price_lower_x96, sqrt_price_upper_x96, liquidity_delta)
            elif slot0.tick < tick_upper:
                amount0 = amount0_delta_signed(slot0.sqrt_price_x96, sqrt_price_upper_x96, liquidity_delta)
                amount1 = amount1_delta_signed(sqrt_price_lower_x96, slot0.sqrt_price_x96, liquidity_delta)
                state.liquidity = add_liquidity(state.liquidity, liquidity_delta)
            else:
                # Range is below the price: only token1 backs it.
                amount1 = amount1_delta_signed(sqrt_price_lower_x96, sqrt_price_upper_x96, liquidity_delta)
        return position, amount0, amount1

    # -- state transitions -----------------------------------------------------

    def initialize(self, sqrt_price_x96: int) -> None:
        """Set the initial price and write oracle slot 0."""
        with self._operation("initialize") as state:
            if state.initialized:
                raise AlreadyInitialized("pool is already initialized")
            tick = tick_at_sqrt_price(sqrt_price_x96)
            cardinality, cardinality_next = state.observations.initialize(self.timestamp())
            state.slot0 = Slot0(
                sqrt_price_x96=sqrt_price_x96,
                tick=tick,
                observation_index=0,
                observation_cardinality=cardinality,
                observation_cardinality_next=cardinality_next,
            )
            logger.info(f"pool {self.pool_id[:10]} initialized at sqrt_price_x96={sqrt_price_x96} tick={tick}")

    def mint(
        self,
        owner: Address,
        tick_lower: int,
        tick_upper: int,
        amount: int,
        data: bytes = b"",
        *,
        callback: MintCallback,
    ) -> Tuple[int, int]:
        """
        Add `amount` liquidity to `owner`'s position over [tick_lower, tick_upper).

        The callback must pay the returned amounts to the pool.

        Returns:
            (amount0, amount1) deposited, both rounded up.

        Raises:
            InvalidTickRange: If the range is empty, out of bounds or misaligned.
            ZeroLiquidity: If `amount` is not positive.
            InsufficientInputAmount: If the callback underpaid.
        """
        with self._operation("mint"):
            self._require_initialized()
            self._check_ticks(tick_lower, tick_upper)
            if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
                raise ZeroLiquidity(f"mint amount must be a positive int: {amount!r}")

            _, amount0, amount1 = self._modify_position(owner, tick_lower, tick_upper, amount)

            balance0_before = self.balance0() if amount0 > 0 else 0
            balance1_before = self.balance1() if amount1 > 0 else 0
            callback.on_liquidity_received(amount0, amount1, data)
            if amount0 > 0 and balance0_before + amount0 > self.balance0():
                raise InsufficientInputAmount(f"mint expected {amount0} of {self.config.token0}")
            if amount1 > 0 and balance1_before + amount1 > self.balance1():
                raise InsufficientInputAmount(f"mint expected {amount1} of {self.config.token1}")

            logger.debug(
                f"mint owner={owner} range=[{tick_lower}, {tick_upper}) liquidity={amount} "
                f"amount0={amount0} amount1={amount1}"
            )
            return amount0, amount1

    def burn(self, owner: Address, tick_lower: int, tick_upper: int, amount: int) -> Tuple[int, int]:
        """
        Remove `amount` liquidity and credit the freed tokens to the position.

        Nothing is transferred; use `collect` to withdraw. A zero amount only
        settles fees accrued so far.
        """
        with self._operation("burn"):
            self._require_initialized()
            self._check_ticks(tick_lower, tick_upper)
            _require_amount("amount", amount)

            position, amount0_int, amount1_int = self._modify_position(owner, tick_lower, tick_upper, -amount)
            amount0, amount1 = -amount0_int, -amount1_int

            if amount0 > 0 or amount1 > 0:
                position.tokens_owed0 = wrapping_add(position.tokens_owed0, amount0, 128)
                position.tokens_owed1 = wrapping_add(position.tokens_owed1, amount1, 128)

            logger.debug(
                f"burn owner={owner} range=[{tick_lower}, {tick_upper}) liquidity={amount} "
                f"amount0={amount0} amount1={amount1}"
            )
            return amount0, amount1

    def collect(
        self,
        owner: Address,
        recipient: Address,
        tick_lower: int,
        tick_upper: int,
        amount0_requested: int,
        amount1_requested: int,
    ) -> Tuple[int, int]:
        """Pay out up to the requested amounts of what `owner`'s position is owed."""
        with self._operation("collect") as state:
            self._require_initialized()
            _require_amount("amount0_requested", amount0_requested)
            _require_amount("amount1_requested", amount1_requested)

            position = state.positions.find(owner, tick_lower, tick_upper)
            if position is None:
                return 0, 0

            amount0 = min(amount0_requested, position.tokens_owed0)
            amount1 = min(amount1_requested, position.tokens_owed1)

            if amount0 > 0:
                position.tokens_owed0 -= amount0
                self._ledger.transfer(self.address, recipient, self.config.token0, amount0)
            if amount1 > 0:
                position.tokens_owed1 -= amount1
                self._ledger.transfer(self.address, recipient, self.config.token1, amount1)

            logger.debug(f"collect owner={owner} recipient={recipient} amount0={amount0} amount1={amount1}")
            return amount0, amount1

    def swap(
        self,
        recipient: Address,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: int,
        data: bytes = b"",
        *,
        callback: SwapCallback,
    ) -> Tuple[int, int]:
        """
        Swap an exact input amount.

        The output is sent to `recipient` first, then the callback is asked
        to pay the input.

        Returns:
            Signed (amount0, amount1): input positive, output negative.
        """
        with self._operation("swap") as state:
            result = compute_swap(
                state,
                fee=self.config.fee,
                zero_for_one=zero_for_one,
                amount_specified=amount_specified,
                sqrt_price_limit_x96=sqrt_price_limit_x96,
                time=self.timestamp(),
            )
            amount0, amount1 = result.amount0, result.amount1

            if zero_for_one:
                if amount1 < 0:
                    self._ledger.transfer(self.address, recipient, self.config.token1, -amount1)
                balance0_before = self.balance0()
                callback.on_swap_settled(amount0, amount1, data)
                if balance0_before + amount0 > self.balance0():
                    raise InsufficientInputAmount(f"swap expected {amount0} of {self.config.token0}")
            else:
                if amount0 < 0:
                    self._ledger.transfer(self.address, recipient, self.config.token0, -amount0)
                balance1_before = self.balance1()
                callback.on_swap_settled(amount0, amount1, data)
                if balance1_before + amount1 > self.balance1():
                    raise InsufficientInputAmount(f"swap expected {amount1} of {self.config.token1}")

            logger.debug(
                f"swap recipient={recipient} zero_for_one={zero_for_one} amount0={amount0} amount1={amount1} "
                f"tick={result.tick} steps={result.steps}"
            )
            return amount0, amount1

    def flash(
        self,
        recipient: Address,
        amount0: int,
        amount1: int,
        data: bytes = b"",
        *,
        callback: FlashCallback,
    ) -> Tuple[int, int]:
        """
        Lend `amount0`/`amount1` for the duration of the callback.

        Returns:
            (fee0, fee1) that the borrower paid on top of the principal.
        """
        with self._operation("flash"):
            self._require_initialized()
            _require_amount("amount0", amount0)
            _require_amount("amount1", amount1)

            fee0 = mul_div_rounding_up(amount0, self.config.fee, FEE_DENOM)
            fee1 = mul_div_rounding_up(amount1, self.config.fee, FEE_DENOM)
            balance0_before = self.balance0()
            balance1_before = self.balance1()

            if amount0 > 0:
                self._ledger.transfer(self.address, recipient, self.config.token0, amount0)
            if amount1 > 0:
                self._ledger.transfer(self.address, recipient, self.config.token1, amount1)

            callback.on_flash_loan_received(fee0, fee1, data)

            if self.balance0() < balance0_before + fee0:
                raise FlashLoanNotPaid(f"flash loan of {amount0} {self.config.token0} not repaid with fee {fee0}")
            if self.balance1() < balance1_before + fee1:
                raise FlashLoanNotPaid(f"flash loan of {amount1} {self.config.token1} not repaid with fee {fee1}")

            logger.debug(f"flash recipient={recipient} amount0={amount0} amount1={amount1} fee0={fee0} fee1={fee1}")
            return fee0, fee1

    def increase_observation_cardinality_next(self, observation_cardinality_next: int) -> int:
        """Grow the oracle ring target size. Returns the (possibly unchanged) target."""
        with self._operation("increase_observation_cardinality_next") as state:
            self._require_initialized()
            slot0 = state.slot0
            old = slot0.observation_cardinality_next
            new = state.observations.grow(old, observation_cardinality_next)
            slot0.observation_cardinality_next = new
            if new != old:
                logger.info(f"pool {self.pool_id[:10]} observation cardinality next {old} -> {new}")
            return new

    # -- views -----------------------------------------------------------------

    @property
    def slot0(self) -> Slot0:
        with self._lock:
            return replace(self._state.slot0)

    @property
    def liquidity(self) -> int:
        with self._lock:
            return self._state.liquidity

    @property
    def fee_growth_global0_x128(self) -> int:
        with self._lock:
            return self._state.fee_growth_global0_x128

    @property
    def fee_growth_global1_x128(self) -> int:
        with self._lock:
            return self._state.fee_growth_global1_x128

    def position(self, owner: Address, tick_lower: int, tick_upper: int) -> Position:
        with self._lock:
            position = self._state.positions.find(owner, tick_lower, tick_upper)
            return replace(position) if position is not None else Position()

    def tick(self, tick: int) -> TickInfo:
        with self._lock:
            info = self._state.ticks.find(tick)
            return replace(info) if info is not None else TickInfo()

    def observe(self, seconds_agos: Sequence[int]) -> List[int]:
        """Tick cumulatives as of each `seconds_ago` before now."""
        with self._lock:
            self._require_initialized()
            slot0 = self._state.slot0
            return self._state.observations.observe(
                self.timestamp(),
                seconds_agos,
                slot0.tick,
                slot0.observation_index,
                slot0.observation_cardinality,
            )

    def consult(self, seconds_ago: int) -> int:
        """Time-weighted mean tick over the last `seconds_ago` seconds, rounded toward -inf."""
        if not isinstance(seconds_ago, int) or isinstance(seconds_ago, bool) or seconds_ago <= 0:
            raise ValidationError(f"seconds_ago must be a positive int: {seconds_ago!r}")
        tick_cumulative_then, tick_cumulative_now = self.observe([seconds_ago, 0])
        return (tick_cumulative_now - tick_cumulative_then) // seconds_ago

    def balance0(self) -> int:
        return self._ledger.balance_of(self.address, self.config.token0)

    def balance1(self) -> int:
        return self._ledger.balance_of(self.address, self.config.token1)

    def copy_state(self) -> PoolState:
        """Deep copy of the pool state, safe to mutate."""
        with self._lock:
            return copy.deepcopy(self._state)

    def __repr__(self) -> str:
        return (
            f"Pool({self.config.token0}/{self.config.token1} fee={self.config.fee} "
            f"spacing={self.config.tick_spacing} {self._state!r})"
        )
