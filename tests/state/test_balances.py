# [TESTER] v1

from __future__ import annotations

import pytest

from tickpool.state.balances import BalanceTable


def test_transfer_moves_funds() -> None:
    table = BalanceTable()
    table.mint("alice", "ETH", 10)
    table.transfer("alice", "bob", "ETH", 4)
    assert table.balance_of("alice", "ETH") == 6
    assert table.balance_of("bob", "ETH") == 4
    assert table.total_supply("ETH") == 10


def test_transfer_rejects_overdraft_without_side_effects() -> None:
    table = BalanceTable()
    table.mint("alice", "ETH", 3)
    with pytest.raises(ValueError, match="Insufficient balance"):
        table.transfer("alice", "bob", "ETH", 4)
    assert table.get_all_balances() == {("alice", "ETH"): 3}


def test_negative_amounts_are_rejected() -> None:
    table = BalanceTable()
    with pytest.raises(ValueError):
        table.transfer("alice", "bob", "ETH", -1)
    with pytest.raises(ValueError):
        table.mint("alice", "ETH", -1)
    with pytest.raises(ValueError):
        table.set("alice", "ETH", -1)


def test_zero_balances_are_not_stored() -> None:
    table = BalanceTable()
    table.mint("alice", "ETH", 2)
    table.transfer("alice", "bob", "ETH", 2)
    table.transfer("alice", "bob", "ETH", 0)
    assert table.get_balances_for_asset("ETH") == {"bob": 2}


def test_snapshot_restore() -> None:
    table = BalanceTable()
    table.mint("alice", "ETH", 5)
    snapshot = table.snapshot()
    table.transfer("alice", "bob", "ETH", 5)
    table.mint("carol", "USDC", 1)
    table.restore(snapshot)
    assert table.get_all_balances() == {("alice", "ETH"): 5}
