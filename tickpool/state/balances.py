"""
Asset ledger contract and an in-memory multi-asset implementation.

The pool never pulls funds. It only reads its own balance and pushes
outbound transfers, so the contract it needs is small: `balance_of`,
`transfer`, and `snapshot`/`restore` so a failed operation can be rolled
back together with the pool's own state.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol, Tuple


# Type aliases
Address = str
AssetId = str
Amount = int  # Non-negative integer (arbitrary precision)


class Ledger(Protocol):
    def balance_of(self, holder: Address, asset: AssetId) -> Amount: ...

    def transfer(self, sender: Address, recipient: Address, asset: AssetId, amount: Amount) -> None: ...

    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...


class BalanceTable:
    """
    Balance table mapping (holder, asset) -> amount.

    Notes:
    - Balances are always non-negative; zero balances are omitted to keep the
      table sparse.
    - Do not rely on dict iteration order; `get_all_balances` returns a copy
      and callers sort keys at serialization boundaries.
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    def balance_of(self, holder: Address, asset: AssetId) -> Amount:
        """Balance of (holder, asset). Returns 0 if not found."""
        return self._balances.get((holder, asset), 0)

    def set(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((holder, asset), None)
        else:
            self._balances[(holder, asset)] = amount

    def add(self, holder: Address, asset: AssetId, delta: int) -> None:
        """
        Add `delta` to a balance (delta may be negative).

        Raises:
            ValueError: If the resulting balance would be negative.
        """
        current = self.balance_of(holder, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance of {asset} for {holder}: {current} + {delta} = {new_balance} < 0"
            )
        self.set(holder, asset, new_balance)

    def mint(self, holder: Address, asset: AssetId, amount: Amount) -> None:
        """Credit freshly issued funds to `holder` (test and demo funding)."""
        if amount < 0:
            raise ValueError(f"Mint amount must be non-negative: {amount}")
        self.add(holder, asset, amount)

    def transfer(self, sender: Address, recipient: Address, asset: AssetId, amount: Amount) -> None:
        """
        Move `amount` of `asset` from `sender` to `recipient`.

        Raises:
            ValueError: If amount is negative or the sender is short.
        """
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative: {amount}")
        if amount == 0:
            return
        self.add(sender, asset, -amount)
        self.add(recipient, asset, amount)

    def snapshot(self) -> Dict[Tuple[Address, AssetId], Amount]:
        return dict(self._balances)

    def restore(self, snapshot: Dict[Tuple[Address, AssetId], Amount]) -> None:
        self._balances = dict(snapshot)

    def get_all_balances(self) -> Dict[Tuple[Address, AssetId], Amount]:
        """Return a copy of all balances."""
        return dict(self._balances)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Address, Amount]:
        return {holder: amount for (holder, a), amount in self._balances.items() if a == asset}

    def total_supply(self, asset: AssetId) -> Amount:
        return sum(self.get_balances_for_asset(asset).values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
