"""
Full-precision multiply-divide and fixed-width integer helpers.

Python ints never overflow, so the 512-bit intermediate of a fixed-width
mul-div is free here. Result widths are still enforced: values that do not
fit their declared type are errors, and fee-growth accumulators wrap modulo
2**256.
"""

from __future__ import annotations

from ..errors import MathOverflowError


RESOLUTION = 96
Q96 = 1 << 96
Q128 = 1 << 128

MAX_UINT32 = (1 << 32) - 1
MAX_UINT128 = (1 << 128) - 1
MAX_UINT160 = (1 << 160) - 1
MAX_UINT256 = (1 << 256) - 1

INT56_MIN = -(1 << 55)
INT56_MAX = (1 << 55) - 1
INT128_MIN = -(1 << 127)
INT128_MAX = (1 << 127) - 1


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_uint(name: str, value: int, bits: int = 256) -> int:
    """Return `value` if it is an unsigned int of at most `bits` bits."""
    _require_int(name, value)
    if value < 0 or value >> bits:
        raise MathOverflowError(f"{name} must fit in uint{bits}: {value}")
    return value


def require_int(name: str, value: int, bits: int) -> int:
    """Return `value` if it is a signed int of at most `bits` bits."""
    _require_int(name, value)
    bound = 1 << (bits - 1)
    if not (-bound <= value < bound):
        raise MathOverflowError(f"{name} must fit in int{bits}: {value}")
    return value


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Compute `floor(a * b / denominator)`.

    Raises MathOverflowError if the denominator is zero or the result does not
    fit in uint256.
    """
    if denominator == 0:
        raise MathOverflowError("mul_div by zero")
    result = (a * b) // denominator
    if result < 0 or result > MAX_UINT256:
        raise MathOverflowError(f"mul_div result out of uint256 range: {result}")
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """
    Compute `ceil(a * b / denominator)`.

    Raises MathOverflowError if the rounded-up result does not fit in uint256.
    """
    result = mul_div(a, b, denominator)
    if (a * b) % denominator > 0:
        if result >= MAX_UINT256:
            raise MathOverflowError("mul_div_rounding_up result overflows uint256")
        result += 1
    return result


def div_rounding_up(numerator: int, denominator: int) -> int:
    """Compute `ceil(numerator / denominator)` for non-negative operands."""
    if denominator == 0:
        raise MathOverflowError("div_rounding_up by zero")
    if numerator < 0 or denominator < 0:
        raise ValueError("div_rounding_up operands must be non-negative")
    return -(-numerator // denominator)


def div_toward_zero(numerator: int, denominator: int) -> int:
    """Signed integer division that truncates toward zero (not toward -inf)."""
    if denominator == 0:
        raise MathOverflowError("div_toward_zero by zero")
    q = abs(numerator) // abs(denominator)
    return q if (numerator >= 0) == (denominator > 0) else -q


def wrapping_add(a: int, b: int, bits: int = 256) -> int:
    """Unsigned addition modulo 2**bits."""
    return (a + b) & ((1 << bits) - 1)


def wrapping_sub(a: int, b: int, bits: int = 256) -> int:
    """Unsigned subtraction modulo 2**bits."""
    return (a - b) & ((1 << bits) - 1)


def wrap_signed(value: int, bits: int) -> int:
    """Reinterpret `value` modulo 2**bits as a two's-complement signed int."""
    mask = (1 << bits) - 1
    v = value & mask
    if v >> (bits - 1):
        v -= 1 << bits
    return v


def to_int56(value: int) -> int:
    """Wrap a tick cumulative into int56."""
    return wrap_signed(value, 56)
