"""
Packed map of initialized ticks.

Ticks are compressed by the tick spacing (floor division, so negative ticks
round toward -inf) and stored one bit each in 256-bit words. The swap loop
only ever searches within a single word per step, which bounds the work of a
step no matter how sparse the liquidity is.
"""

from __future__ import annotations

from typing import Dict, Iterator, Tuple

from ..errors import InvalidTick
from ..kernels.full_math import MAX_UINT256


def _most_significant_bit(x: int) -> int:
    return x.bit_length() - 1


def _least_significant_bit(x: int) -> int:
    return (x & -x).bit_length() - 1


def position(compressed: int) -> Tuple[int, int]:
    """Return (word_pos, bit_pos) of a compressed tick."""
    return compressed >> 8, compressed & 0xFF


class TickBitmap:
    def __init__(self) -> None:
        self._words: Dict[int, int] = {}

    def word(self, word_pos: int) -> int:
        return self._words.get(word_pos, 0)

    def flip_tick(self, tick: int, tick_spacing: int) -> None:
        """Toggle the initialized bit of `tick`."""
        if tick % tick_spacing != 0:
            raise InvalidTick(f"tick {tick} is not a multiple of spacing {tick_spacing}")
        word_pos, bit_pos = position(tick // tick_spacing)
        value = self.word(word_pos) ^ (1 << bit_pos)
        if value:
            self._words[word_pos] = value
        else:
            self._words.pop(word_pos, None)

    def is_initialized(self, tick: int, tick_spacing: int) -> bool:
        if tick % tick_spacing != 0:
            return False
        word_pos, bit_pos = position(tick // tick_spacing)
        return bool(self.word(word_pos) >> bit_pos & 1)

    def next_initialized_tick_within_one_word(self, tick: int, tick_spacing: int, lte: bool) -> Tuple[int, bool]:
        """
        Find the next initialized tick in the word containing `tick`.

        With `lte=True` the search includes `tick` itself and moves down; with
        `lte=False` it starts strictly above `tick` and moves up. When the word
        has no set bit in that direction the word boundary is returned with
        `initialized=False`.
        """
        compressed = tick // tick_spacing

        if lte:
            word_pos, bit_pos = position(compressed)
            # All bits at or to the right of bit_pos.
            mask = (1 << bit_pos) - 1 + (1 << bit_pos)
            masked = self.word(word_pos) & mask

            initialized = masked != 0
            if initialized:
                next_tick = (compressed - (bit_pos - _most_significant_bit(masked))) * tick_spacing
            else:
                next_tick = (compressed - bit_pos) * tick_spacing
            return next_tick, initialized

        word_pos, bit_pos = position(compressed + 1)
        # All bits at or to the left of bit_pos.
        mask = ~((1 << bit_pos) - 1) & MAX_UINT256
        masked = self.word(word_pos) & mask

        initialized = masked != 0
        if initialized:
            next_tick = (compressed + 1 + (_least_significant_bit(masked) - bit_pos)) * tick_spacing
        else:
            next_tick = (compressed + 1 + (0xFF - bit_pos)) * tick_spacing
        return next_tick, initialized

    def words(self) -> Iterator[Tuple[int, int]]:
        """Iterate non-zero words in ascending word order."""
        for word_pos in sorted(self._words):
            yield word_pos, self._words[word_pos]

    def set_word(self, word_pos: int, value: int) -> None:
        if value < 0 or value > MAX_UINT256:
            raise ValueError(f"bitmap word out of range: {value}")
        if value:
            self._words[word_pos] = value
        else:
            self._words.pop(word_pos, None)

    def __repr__(self) -> str:
        return f"TickBitmap({len(self._words)} words)"
