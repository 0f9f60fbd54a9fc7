"""
Engine configuration: YAML file + environment overrides + logging setup.

Example:

    log_level: INFO
    observation_cardinality: 16
    pools:
      - token0: ETH
        token1: USDC
        fee: 3000
        price: [5000, 1]          # token1 per token0, as amount1/amount0

`tick_spacing` defaults to the fee tier's spacing; `sqrt_price_x96` may be
given instead of `price`. Validation is fail-closed: unknown keys and
non-int numbers are rejected.

Environment overrides:
- TICKPOOL_LOG_LEVEL
- TICKPOOL_OBSERVATION_CARDINALITY
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from math import isqrt
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml

from ..errors import ConfigError, ValidationError
from ..kernels.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO
from ..state.oracle import MAX_CARDINALITY
from ..state.pools import FEE_TIERS, PoolConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TOP_LEVEL_KEYS = {"log_level", "observation_cardinality", "pools"}
_POOL_KEYS = {"token0", "token1", "fee", "tick_spacing", "price", "sqrt_price_x96"}


def encode_price_sqrt(amount1: int, amount0: int) -> int:
    """sqrt(amount1 / amount0) as Q64.96, rounded down."""
    if amount0 <= 0 or amount1 <= 0:
        raise ConfigError("price components must be positive")
    return isqrt((amount1 << 192) // amount0)


@dataclass(frozen=True)
class PoolSpec:
    config: PoolConfig
    sqrt_price_x96: int

    def __post_init__(self) -> None:
        if not (MIN_SQRT_RATIO <= self.sqrt_price_x96 < MAX_SQRT_RATIO):
            raise ConfigError(f"sqrt_price_x96 out of range: {self.sqrt_price_x96}")


@dataclass(frozen=True)
class EngineConfig:
    log_level: str = "INFO"
    # Oracle ring size requested right after initialization (1 = no growth).
    observation_cardinality: int = 1
    pools: Tuple[PoolSpec, ...] = ()

    def __post_init__(self) -> None:
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {_LOG_LEVELS}: {self.log_level!r}")
        if not (1 <= self.observation_cardinality <= MAX_CARDINALITY):
            raise ConfigError(
                f"observation_cardinality must be in [1, {MAX_CARDINALITY}]: {self.observation_cardinality}"
            )


def _require_int(name: str, value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(f"{name} must be an int, got {type(value).__name__}")
    return value


def _require_str(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{name} must be a non-empty string")
    return value.strip()


def _int_env(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip(), 10)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a decimal integer: {raw!r}") from exc


def _parse_pool(index: int, raw: Any) -> PoolSpec:
    where = f"pools[{index}]"
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{where} must be a mapping")
    unknown = set(raw) - _POOL_KEYS
    if unknown:
        raise ConfigError(f"{where} has unknown keys: {sorted(unknown)}")

    token0 = _require_str(f"{where}.token0", raw.get("token0"))
    token1 = _require_str(f"{where}.token1", raw.get("token1"))
    fee = _require_int(f"{where}.fee", raw.get("fee"))

    if "tick_spacing" in raw:
        tick_spacing = _require_int(f"{where}.tick_spacing", raw["tick_spacing"])
    elif fee in FEE_TIERS:
        tick_spacing = FEE_TIERS[fee]
    else:
        raise ConfigError(f"{where}: fee {fee} is not a known tier; set tick_spacing explicitly")

    if ("price" in raw) == ("sqrt_price_x96" in raw):
        raise ConfigError(f"{where} must set exactly one of price or sqrt_price_x96")

    if token0 > token1:
        raise ConfigError(f"{where}: token0 must sort before token1 ({token0!r} > {token1!r})")

    if "sqrt_price_x96" in raw:
        sqrt_price_x96 = _require_int(f"{where}.sqrt_price_x96", raw["sqrt_price_x96"])
    else:
        price = raw["price"]
        if not isinstance(price, (list, tuple)) or len(price) != 2:
            raise ConfigError(f"{where}.price must be [amount1, amount0]")
        amount1 = _require_int(f"{where}.price[0]", price[0])
        amount0 = _require_int(f"{where}.price[1]", price[1])
        sqrt_price_x96 = encode_price_sqrt(amount1, amount0)

    try:
        config = PoolConfig(token0=token0, token1=token1, fee=fee, tick_spacing=tick_spacing)
    except ValidationError as exc:
        raise ConfigError(f"{where}: {exc}") from exc
    return PoolSpec(config=config, sqrt_price_x96=sqrt_price_x96)


def engine_config_from_dict(raw: Any) -> EngineConfig:
    """Validate a decoded YAML document into an EngineConfig."""
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigError("config root must be a mapping")
    unknown = set(raw) - _TOP_LEVEL_KEYS
    if unknown:
        raise ConfigError(f"unknown config keys: {sorted(unknown)}")

    log_level = _require_str("log_level", raw.get("log_level", "INFO")).upper()
    observation_cardinality = _require_int("observation_cardinality", raw.get("observation_cardinality", 1))

    pools_raw = raw.get("pools", [])
    if not isinstance(pools_raw, list):
        raise ConfigError("pools must be a list")
    pools = tuple(_parse_pool(i, p) for i, p in enumerate(pools_raw))

    return EngineConfig(log_level=log_level, observation_cardinality=observation_cardinality, pools=pools)


def apply_env_overrides(config: EngineConfig) -> EngineConfig:
    log_level = os.environ.get("TICKPOOL_LOG_LEVEL", "").strip().upper()
    if log_level:
        config = replace(config, log_level=log_level)
    cardinality = _int_env("TICKPOOL_OBSERVATION_CARDINALITY")
    if cardinality is not None:
        config = replace(config, observation_cardinality=cardinality)
    return config


def load_engine_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load an EngineConfig from a YAML file and apply environment overrides.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation.
    """
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    config = apply_env_overrides(engine_config_from_dict(raw))
    logger.debug(f"loaded config from {path}: {len(config.pools)} pools")
    return config


def configure_logging(level: Optional[str] = None) -> None:
    """Install a root handler. `level` falls back to TICKPOOL_LOG_LEVEL, then INFO."""
    if level is None:
        level = os.environ.get("TICKPOOL_LOG_LEVEL", "").strip().upper() or "INFO"
    if level not in _LOG_LEVELS:
        raise ConfigError(f"unknown log level: {level!r}")
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
