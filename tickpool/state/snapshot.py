"""
Plain-dict serialization of PoolState and a canonical state root.

The dict form holds only str/int/bool/list/dict values so it can go through
`canonical_json_bytes` unchanged. Entries of every table are emitted in
sorted key order.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Any, Mapping

from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from .oracle import Observation
from .pools import PoolState, Slot0
from .positions import Position
from .ticks import TickInfo


STATE_VERSION = 1


def _int_fields(cls: type, d: Mapping[str, Any]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        val = d[f.name]
        if isinstance(val, bool):
            kwargs[f.name] = val
        elif isinstance(val, int):
            kwargs[f.name] = int(val)
        else:
            raise TypeError(f"{cls.__name__}.{f.name} must be bool|int, got {type(val).__name__}")
    return kwargs


def state_to_dict(state: PoolState) -> dict[str, Any]:
    """Serialize a PoolState to a plain dict."""
    return {
        "version": STATE_VERSION,
        "tick_spacing": state.tick_spacing,
        "slot0": asdict(state.slot0),
        "liquidity": state.liquidity,
        "fee_growth_global0_x128": state.fee_growth_global0_x128,
        "fee_growth_global1_x128": state.fee_growth_global1_x128,
        "ticks": [{"tick": tick, **asdict(info)} for tick, info in state.ticks.items()],
        "tick_bitmap": [{"word": word_pos, "value": value} for word_pos, value in state.tick_bitmap.words()],
        "positions": [
            {"owner": owner, "tick_lower": lower, "tick_upper": upper, **asdict(position)}
            for (owner, lower, upper), position in state.positions.items()
        ],
        "observations": [{"index": index, **asdict(obs)} for index, obs in state.observations.items()],
    }


def state_from_dict(d: Mapping[str, Any]) -> PoolState:
    """Deserialize a dict produced by `state_to_dict`. Raises KeyError on missing fields."""
    version = d["version"]
    if version != STATE_VERSION:
        raise ValueError(f"unsupported state version: {version!r}")

    state = PoolState(tick_spacing=int(d["tick_spacing"]))
    state.slot0 = Slot0(**_int_fields(Slot0, d["slot0"]))
    state.liquidity = int(d["liquidity"])
    state.fee_growth_global0_x128 = int(d["fee_growth_global0_x128"])
    state.fee_growth_global1_x128 = int(d["fee_growth_global1_x128"])

    for entry in d["ticks"]:
        info = state.ticks.get(int(entry["tick"]))
        for name, value in _int_fields(TickInfo, entry).items():
            setattr(info, name, value)

    for entry in d["tick_bitmap"]:
        state.tick_bitmap.set_word(int(entry["word"]), int(entry["value"]))

    for entry in d["positions"]:
        owner = entry["owner"]
        if not isinstance(owner, str):
            raise TypeError("position owner must be a str")
        key = (owner, int(entry["tick_lower"]), int(entry["tick_upper"]))
        state.positions.put(key, Position(**_int_fields(Position, entry)))

    for entry in d["observations"]:
        state.observations[int(entry["index"])] = Observation(**_int_fields(Observation, entry))

    return state


def compute_state_root(state: PoolState) -> str:
    """sha256 over the canonical JSON of `state_to_dict(state)`."""
    return sha256_hex(domain_sep_bytes("pool_state") + canonical_json_bytes(state_to_dict(state)))
