"""
Tick <-> sqrt price conversion (Q64.96).

price(tick) = 1.0001 ** tick, and the pool stores sqrt(price) * 2**96.

Both directions are integer-only:
- `sqrt_price_at_tick` multiplies one precomputed Q128 factor per set bit of
  |tick| (factor_i = 1 / sqrt(1.0001) ** (2 ** i)), so no transcendental call
  is made at runtime.
- `tick_at_sqrt_price` computes a fixed-point log2, rescales it to
  log base sqrt(1.0001), and picks between the two candidate ticks the error
  bound allows by evaluating the forward function.

`tick_at_sqrt_price(sqrt_price_at_tick(t)) == t` for every valid `t`.
"""

from __future__ import annotations

from ..errors import InvalidSqrtPrice, InvalidTick
from .full_math import MAX_UINT256


MIN_TICK = -887272
MAX_TICK = -MIN_TICK

# sqrt_price_at_tick(MIN_TICK) and sqrt_price_at_tick(MAX_TICK)
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

_ONE_Q128 = 1 << 128

# Indexed by bit position of |tick| (bit 0 .. bit 19).
_BIT_FACTORS: tuple[int, ...] = (
    0xFFFCB933BD6FAD37AA2D162D1A594001,
    0xFFF97272373D413259A46990580E213A,
    0xFFF2E50F5F656932EF12357CF3C7FDCC,
    0xFFE5CACA7E10E4E61C3624EAA0941CD0,
    0xFFCB9843D60F6159C9DB58835C926644,
    0xFF973B41FA98C081472E6896DFB254C0,
    0xFF2EA16466C96A3843EC78B326B52861,
    0xFE5DEE046A99A2A811C461F1969C3053,
    0xFCBE86C7900A88AEDCFFC83B479AA3A4,
    0xF987A7253AC413176F2B074CF7815E54,
    0xF3392B0822B70005940C7A398E4B70F3,
    0xE7159475A2C29B7443B29C7FA6E889D9,
    0xD097F3BDFD2022B8845AD8F792AA5825,
    0xA9F746462D870FDF8A65DC1F90E061E5,
    0x70D869A156D2A1B890BB3DF62BAF32F7,
    0x31BE135F97D08FD981231505542FCFA6,
    0x9AA508B5B7A84E1C677DE54F3E99BC9,
    0x5D6AF8DEDB81196699C329225EE604,
    0x2216E584F5FA1EA926041BEDFE98,
    0x48A170391F7DC42444E8FA2,
)

# log_sqrt10001(x) = log2(x) * 2**64 / log2(sqrt(1.0001)), scaled by 2**128.
_LOG2_TO_LOG_SQRT10001 = 255738958999603826347141
# Error bounds of the 14-iteration log2 approximation.
_TICK_LOW_OFFSET = 3402992956809132418596140100660247210
_TICK_HIGH_OFFSET = 291339464771989622907027621153398088495


def sqrt_price_at_tick(tick: int) -> int:
    """
    Return sqrt(1.0001 ** tick) * 2**96, rounded up to the next Q64.96 value.

    Raises:
        InvalidTick: If tick is outside [MIN_TICK, MAX_TICK].
    """
    if not isinstance(tick, int) or isinstance(tick, bool):
        raise TypeError("tick must be an int")
    if tick < MIN_TICK or tick > MAX_TICK:
        raise InvalidTick(f"tick out of range: {tick}")

    abs_tick = -tick if tick < 0 else tick

    ratio = _BIT_FACTORS[0] if abs_tick & 0x1 else _ONE_Q128
    for bit in range(1, len(_BIT_FACTORS)):
        if abs_tick & (1 << bit):
            ratio = (ratio * _BIT_FACTORS[bit]) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up so the result is never below the true value.
    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def _most_significant_bit(x: int) -> int:
    return x.bit_length() - 1


def tick_at_sqrt_price(sqrt_price_x96: int) -> int:
    """
    Return the greatest tick whose sqrt price is <= `sqrt_price_x96`.

    Raises:
        InvalidSqrtPrice: If the price is outside [MIN_SQRT_RATIO, MAX_SQRT_RATIO).
    """
    if not isinstance(sqrt_price_x96, int) or isinstance(sqrt_price_x96, bool):
        raise TypeError("sqrt_price_x96 must be an int")
    if sqrt_price_x96 < MIN_SQRT_RATIO or sqrt_price_x96 >= MAX_SQRT_RATIO:
        raise InvalidSqrtPrice(f"sqrt price out of range: {sqrt_price_x96}")

    ratio = sqrt_price_x96 << 32
    msb = _most_significant_bit(ratio)

    if msb >= 128:
        r = ratio >> (msb - 127)
    else:
        r = ratio << (127 - msb)

    log_2 = (msb - 128) << 64

    # 14 bits of fractional precision, from bit 63 down to bit 50.
    for shift in range(63, 49, -1):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << shift
        r >>= f

    log_sqrt10001 = log_2 * _LOG2_TO_LOG_SQRT10001

    tick_low = (log_sqrt10001 - _TICK_LOW_OFFSET) >> 128
    tick_high = (log_sqrt10001 + _TICK_HIGH_OFFSET) >> 128

    if tick_low == tick_high:
        return tick_low
    return tick_high if sqrt_price_at_tick(tick_high) <= sqrt_price_x96 else tick_low
