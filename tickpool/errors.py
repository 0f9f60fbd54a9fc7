"""Exception types for the tickpool engine.

Every failure aborts the whole pool operation. The hierarchy lets callers tell
apart malformed input (`ValidationError`), an undelivered callback payment
(`SettlementError`), exhausted depth or history (`ResourceExhaustedError`) and
fatal misuse (`InvariantViolation`).
"""

from __future__ import annotations


class PoolError(Exception):
    """Base class for all tickpool errors."""


# -- (a) input validation -----------------------------------------------------

class ValidationError(PoolError, ValueError):
    """Raised before any state mutation when an argument is out of domain."""


class InvalidTickRange(ValidationError):
    """Tick range is empty, out of bounds, or not aligned to the tick spacing."""


class InvalidTick(ValidationError):
    """Tick index outside [MIN_TICK, MAX_TICK]."""


class InvalidSqrtPrice(ValidationError):
    """sqrtPriceX96 outside [MIN_SQRT_RATIO, MAX_SQRT_RATIO)."""


class ZeroLiquidity(ValidationError):
    """Mint requested with a zero liquidity amount."""


class ZeroAmount(ValidationError):
    """Swap requested with a non-positive input amount."""


class InvalidPriceLimit(ValidationError):
    """Swap price limit is on the wrong side of the current price or out of bounds."""


class UnsupportedFeeTier(ValidationError):
    """Fee has no entry in the fee-tier table."""


class TickLiquidityOverflow(ValidationError):
    """Gross liquidity on a tick would exceed the per-tick cap."""


class EmptyPosition(ValidationError):
    """Zero-delta update on a position that holds no liquidity."""


class ConfigError(ValidationError):
    """Configuration file or environment value is malformed."""


# -- (b) settlement failure ---------------------------------------------------

class SettlementError(PoolError):
    """Raised when a callback did not deliver the funds the pool requires."""


class InsufficientInputAmount(SettlementError):
    """Pool balance did not increase by the amount owed after a callback."""


class FlashLoanNotPaid(SettlementError):
    """Flash borrower did not return principal plus fee."""


# -- (c) resource exhaustion --------------------------------------------------

class ResourceExhaustedError(PoolError):
    """Raised when the market or the retained history runs out."""


class NotEnoughLiquidity(ResourceExhaustedError):
    """Active liquidity dropped to zero while swap input remained."""


class ObservationTooOld(ResourceExhaustedError):
    """Requested time predates the oldest retained oracle observation."""


# -- (d) invariant violations -------------------------------------------------

class InvariantViolation(PoolError):
    """Raised on fatal caller errors that indicate misuse of the pool."""


class AlreadyInitialized(InvariantViolation):
    """initialize() called on a pool that already has a price."""


class NotInitialized(InvariantViolation):
    """Operation requires an initialized pool."""


class LiquidityUnderflow(InvariantViolation):
    """Removing more liquidity than is present."""


class LiquidityOverflow(InvariantViolation):
    """Liquidity would exceed uint128."""


class ReentrancyError(InvariantViolation):
    """A callback re-entered the pool that invoked it."""


class MathOverflowError(PoolError, ArithmeticError):
    """A fixed-width result does not fit its declared width."""
