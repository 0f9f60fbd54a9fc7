#!/usr/bin/env python3
"""
Offline pool scenario runner.

Builds every pool listed in a YAML config, seeds it with one liquidity
position around the initial price, quotes and executes a swap, collects the
LP's fees and prints the resulting state root.

    python tools/pool_demo.py --config tools/pool_demo.yaml --swap-in 10000000000000000
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tickpool.core.pool import Pool
from tickpool.core.quoter import quote_exact_input
from tickpool.errors import PoolError
from tickpool.integration.config import PoolSpec, configure_logging, load_engine_config
from tickpool.kernels.liquidity_math import liquidity_for_amounts
from tickpool.kernels.tick_math import MAX_SQRT_RATIO, MIN_SQRT_RATIO, MAX_TICK, MIN_TICK, sqrt_price_at_tick
from tickpool.state.balances import BalanceTable
from tickpool.state.snapshot import compute_state_root

LP = "lp"
TRADER = "trader"


class Payer:
    """Pays whatever the pool asks for from `payer`'s ledger balance."""

    def __init__(self, ledger: BalanceTable, pool: Pool, payer: str) -> None:
        self.ledger = ledger
        self.pool = pool
        self.payer = payer

    def on_liquidity_received(self, amount0: int, amount1: int, data: bytes) -> None:
        self._pay(amount0, amount1)

    def on_swap_settled(self, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        self._pay(max(amount0_delta, 0), max(amount1_delta, 0))

    def _pay(self, amount0: int, amount1: int) -> None:
        config = self.pool.config
        if amount0 > 0:
            self.ledger.transfer(self.payer, self.pool.address, config.token0, amount0)
        if amount1 > 0:
            self.ledger.transfer(self.payer, self.pool.address, config.token1, amount1)


def _range_around(tick: int, tick_spacing: int, width: int) -> tuple[int, int]:
    lower = (tick // tick_spacing - width) * tick_spacing
    upper = (tick // tick_spacing + width + 1) * tick_spacing
    min_usable = -(-MIN_TICK // tick_spacing) * tick_spacing
    max_usable = (MAX_TICK // tick_spacing) * tick_spacing
    return max(lower, min_usable), min(upper, max_usable)


def run_pool(pool_spec: PoolSpec, ledger: BalanceTable, args: argparse.Namespace, cardinality: int, index: int) -> None:
    config = pool_spec.config
    pool = Pool(config, ledger, address=f"pool-{index}", clock=lambda: args.timestamp)
    pool.initialize(pool_spec.sqrt_price_x96)
    if cardinality > 1:
        pool.increase_observation_cardinality_next(cardinality)

    slot0 = pool.slot0
    tick_lower, tick_upper = _range_around(slot0.tick, config.tick_spacing, args.width)
    liquidity = liquidity_for_amounts(
        slot0.sqrt_price_x96,
        sqrt_price_at_tick(tick_lower),
        sqrt_price_at_tick(tick_upper),
        args.deposit0,
        args.deposit1,
    )

    ledger.mint(LP, config.token0, args.deposit0)
    ledger.mint(LP, config.token1, args.deposit1)
    amount0, amount1 = pool.mint(LP, tick_lower, tick_upper, liquidity, callback=Payer(ledger, pool, LP))
    print(f"[pool-demo] {config.token0}/{config.token1} fee={config.fee} pool_id={pool.pool_id}")
    print(f"[pool-demo] minted L={liquidity} over [{tick_lower}, {tick_upper}): amount0={amount0} amount1={amount1}")

    zero_for_one = not args.buy_token0
    limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
    quote = quote_exact_input(pool, zero_for_one, args.swap_in, limit)
    print(f"[pool-demo] quote: in={args.swap_in} out={quote.amount_out} tick_after={quote.tick_after}")

    token_in = config.token0 if zero_for_one else config.token1
    ledger.mint(TRADER, token_in, args.swap_in)
    swap0, swap1 = pool.swap(TRADER, zero_for_one, args.swap_in, limit, callback=Payer(ledger, pool, TRADER))
    print(f"[pool-demo] swap: amount0={swap0} amount1={swap1} tick={pool.slot0.tick}")

    pool.burn(LP, tick_lower, tick_upper, 0)
    position = pool.position(LP, tick_lower, tick_upper)
    fees0, fees1 = pool.collect(LP, LP, tick_lower, tick_upper, position.tokens_owed0, position.tokens_owed1)
    print(f"[pool-demo] LP collected fees: amount0={fees0} amount1={fees1}")
    print(f"[pool-demo] state_root={compute_state_root(pool.copy_state())}")


def main() -> int:
    ap = argparse.ArgumentParser(description="Run a mint/quote/swap/collect scenario on configured pools.")
    ap.add_argument("--config", type=Path, default=ROOT / "tools" / "pool_demo.yaml")
    ap.add_argument("--deposit0", type=int, default=10**18)
    ap.add_argument("--deposit1", type=int, default=5000 * 10**18)
    ap.add_argument("--width", type=int, default=10, help="range half-width in tick spacings")
    ap.add_argument("--swap-in", type=int, default=10**16)
    ap.add_argument("--buy-token0", action="store_true", help="sell token1 instead of token0")
    ap.add_argument("--timestamp", type=int, default=1_700_000_000)
    ap.add_argument("--log-level", type=str, default=None)
    args = ap.parse_args()

    try:
        engine_config = load_engine_config(args.config)
        configure_logging(args.log_level.upper() if args.log_level else engine_config.log_level)
        if not engine_config.pools:
            print("[pool-demo] no pools configured")
            return 1
        ledger = BalanceTable()
        for index, pool_spec in enumerate(engine_config.pools):
            run_pool(pool_spec, ledger, args, engine_config.observation_cardinality, index)
    except PoolError as exc:
        print(f"[pool-demo] FAIL: {type(exc).__name__}: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
