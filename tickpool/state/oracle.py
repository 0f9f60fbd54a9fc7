"""
Price oracle: a ring buffer of cumulative-tick observations.

Each observation stores `tick_cumulative = sum(tick * seconds)` up to its
timestamp. The time-weighted mean tick over any window the buffer still
covers is the difference of two cumulatives divided by the window length.

Timestamps are uint32 and allowed to wrap; every comparison goes through
`_lte`, which treats values "ahead of now" as belonging to the previous
wrap. Cumulatives wrap into int56.

The ring position and size live in the pool's slot0
(`observation_index`, `observation_cardinality`,
`observation_cardinality_next`); this module only owns the slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple

from ..errors import NotInitialized, ObservationTooOld
from ..kernels.full_math import div_toward_zero, to_int56, wrapping_sub

MAX_CARDINALITY = 65535

_TIMESTAMP_BITS = 32
_TIMESTAMP_MOD = 1 << _TIMESTAMP_BITS


@dataclass(frozen=True)
class Observation:
    timestamp: int = 0
    tick_cumulative: int = 0
    initialized: bool = False


def to_timestamp(time: int) -> int:
    """Truncate a wall-clock value to the uint32 timestamp the ring stores."""
    return time % _TIMESTAMP_MOD


def transform(last: Observation, timestamp: int, tick: int) -> Observation:
    """Extend `last` to `timestamp` assuming `tick` held for the whole gap."""
    delta = wrapping_sub(timestamp, last.timestamp, _TIMESTAMP_BITS)
    return Observation(
        timestamp=timestamp,
        tick_cumulative=to_int56(last.tick_cumulative + tick * delta),
        initialized=True,
    )


def _lte(time: int, a: int, b: int) -> bool:
    """`a <= b` for timestamps that are both at or before `time`, modulo wrap."""
    if a <= time and b <= time:
        return a <= b
    a_adjusted = a if a > time else a + _TIMESTAMP_MOD
    b_adjusted = b if b > time else b + _TIMESTAMP_MOD
    return a_adjusted <= b_adjusted


class ObservationRing:
    def __init__(self) -> None:
        self._slots: Dict[int, Observation] = {}

    def __getitem__(self, index: int) -> Observation:
        return self._slots.get(index, _EMPTY)

    def __setitem__(self, index: int, observation: Observation) -> None:
        if not (0 <= index < MAX_CARDINALITY):
            raise IndexError(f"observation index out of range: {index}")
        self._slots[index] = observation

    def items(self) -> Iterator[Tuple[int, Observation]]:
        for index in sorted(self._slots):
            yield index, self._slots[index]

    def initialize(self, time: int) -> Tuple[int, int]:
        """Write slot 0 and return the initial (cardinality, cardinality_next)."""
        self[0] = Observation(timestamp=time, tick_cumulative=0, initialized=True)
        return 1, 1

    def write(
        self,
        index: int,
        time: int,
        tick: int,
        cardinality: int,
        cardinality_next: int,
    ) -> Tuple[int, int]:
        """
        Record `tick` as having held since the last observation.

        At most one observation is written per timestamp. The ring adopts a
        pre-grown `cardinality_next` only when the write would otherwise wrap
        from the last slot of the current cardinality.

        Returns:
            (index_updated, cardinality_updated)
        """
        last = self[index]
        if last.timestamp == time:
            return index, cardinality

        if cardinality_next > cardinality and index == cardinality - 1:
            cardinality_updated = cardinality_next
        else:
            cardinality_updated = cardinality

        index_updated = (index + 1) % cardinality_updated
        self[index_updated] = transform(last, time, tick)
        return index_updated, cardinality_updated

    def grow(self, current: int, next_: int) -> int:
        """
        Prepare slots up to `next_` and return the new target cardinality.

        New slots get a non-zero placeholder timestamp so the first write to
        them does not look like a fresh slot; they stay uninitialized until
        written.
        """
        if current <= 0:
            raise NotInitialized("oracle is not initialized")
        if next_ > MAX_CARDINALITY:
            raise ValueError(f"cardinality cannot exceed {MAX_CARDINALITY}: {next_}")
        if next_ <= current:
            return current
        for i in range(current, next_):
            self[i] = Observation(timestamp=1, tick_cumulative=0, initialized=False)
        return next_

    def _binary_search(self, time: int, target: int, index: int, cardinality: int) -> Tuple[Observation, Observation]:
        left = (index + 1) % cardinality  # oldest observation
        right = left + cardinality - 1  # newest observation
        while True:
            i = (left + right) // 2

            before_or_at = self[i % cardinality]
            if not before_or_at.initialized:
                # Landed on a grown but never-written slot.
                left = i + 1
                continue

            at_or_after = self[(i + 1) % cardinality]

            target_at_or_after = _lte(time, before_or_at.timestamp, target)
            if target_at_or_after and _lte(time, target, at_or_after.timestamp):
                return before_or_at, at_or_after

            if not target_at_or_after:
                right = i - 1
            else:
                left = i + 1

    def _surrounding_observations(
        self,
        time: int,
        target: int,
        tick: int,
        index: int,
        cardinality: int,
    ) -> Tuple[Observation, Observation]:
        before_or_at = self[index]

        if _lte(time, before_or_at.timestamp, target):
            if before_or_at.timestamp == target:
                return before_or_at, before_or_at
            return before_or_at, transform(before_or_at, target, tick)

        # Oldest slot: the next one, or slot 0 if the ring has not wrapped yet.
        before_or_at = self[(index + 1) % cardinality]
        if not before_or_at.initialized:
            before_or_at = self[0]

        if not _lte(time, before_or_at.timestamp, target):
            raise ObservationTooOld(
                f"target {target} predates oldest observation {before_or_at.timestamp}"
            )

        return self._binary_search(time, target, index, cardinality)

    def observe_single(
        self,
        time: int,
        seconds_ago: int,
        tick: int,
        index: int,
        cardinality: int,
    ) -> int:
        """Return the tick cumulative as of `seconds_ago` before `time`."""
        if seconds_ago == 0:
            last = self[index]
            if last.timestamp != time:
                last = transform(last, time, tick)
            return last.tick_cumulative

        target = wrapping_sub(time, seconds_ago, _TIMESTAMP_BITS)

        before_or_at, at_or_after = self._surrounding_observations(time, target, tick, index, cardinality)

        if target == before_or_at.timestamp:
            return before_or_at.tick_cumulative
        if target == at_or_after.timestamp:
            return at_or_after.tick_cumulative

        observation_time_delta = wrapping_sub(at_or_after.timestamp, before_or_at.timestamp, _TIMESTAMP_BITS)
        target_delta = wrapping_sub(target, before_or_at.timestamp, _TIMESTAMP_BITS)
        slope = div_toward_zero(at_or_after.tick_cumulative - before_or_at.tick_cumulative, observation_time_delta)
        return to_int56(before_or_at.tick_cumulative + slope * target_delta)

    def observe(
        self,
        time: int,
        seconds_agos: Iterable[int],
        tick: int,
        index: int,
        cardinality: int,
    ) -> List[int]:
        if cardinality <= 0:
            raise NotInitialized("oracle is not initialized")
        return [self.observe_single(time, s, tick, index, cardinality) for s in seconds_agos]

    def __repr__(self) -> str:
        return f"ObservationRing({len(self._slots)} slots)"


_EMPTY = Observation()
