# [TESTER] v1

from __future__ import annotations

import pytest

from tickpool.errors import UnsupportedFeeTier, ValidationError
from tickpool.state.pools import FEE_TIERS, PoolConfig, PoolState, compute_pool_id, config_for_fee_tier


@pytest.mark.parametrize("fee,tick_spacing", sorted(FEE_TIERS.items()))
def test_fee_tiers(fee: int, tick_spacing: int) -> None:
    config = config_for_fee_tier("USDC", "ETH", fee)
    assert (config.token0, config.token1) == ("ETH", "USDC")
    assert config.tick_spacing == tick_spacing


def test_unknown_fee_tier_is_rejected() -> None:
    with pytest.raises(UnsupportedFeeTier):
        config_for_fee_tier("ETH", "USDC", 2500)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"token0": "ETH", "token1": "ETH", "fee": 3000, "tick_spacing": 60},
        {"token0": "USDC", "token1": "ETH", "fee": 3000, "tick_spacing": 60},
        {"token0": "ETH", "token1": "USDC", "fee": 1_000_000, "tick_spacing": 60},
        {"token0": "ETH", "token1": "USDC", "fee": 3000, "tick_spacing": 0},
        {"token0": "ETH", "token1": "USDC", "fee": 3000, "tick_spacing": 16384},
        {"token0": "ETH", "token1": "USDC", "fee": True, "tick_spacing": 60},
    ],
)
def test_invalid_config_is_rejected(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        PoolConfig(**kwargs)


def test_pool_id_is_deterministic_and_parameter_sensitive() -> None:
    a = config_for_fee_tier("ETH", "USDC", 3000)
    b = config_for_fee_tier("USDC", "ETH", 3000)
    c = config_for_fee_tier("ETH", "USDC", 500)
    assert compute_pool_id(a) == compute_pool_id(b)
    assert compute_pool_id(a) != compute_pool_id(c)
    assert compute_pool_id(a).startswith("0x")
    assert len(compute_pool_id(a)) == 66


def test_fresh_state_is_uninitialized() -> None:
    state = PoolState(tick_spacing=60)
    assert not state.initialized
    assert state.ticks.tick_spacing == 60
    assert state.liquidity == 0
