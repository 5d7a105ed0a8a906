"""
vault.py - Asset Vault

Per-asset balances backing a fund's NAV. Balances never go negative:
debit() refuses rather than overdrawing.

The vault is a general mapping keyed by asset identifier. A fund only
credits its base asset today, but nothing here assumes a single entry.
"""

from __future__ import annotations
from typing import List, Optional

from .core import BalanceMap, InsufficientBalance, InvalidAmount


class AssetVault:
    """
    Non-negative balances keyed by asset identifier.

    Example:
        vault = AssetVault()
        vault.credit("SUI", 1000)
        vault.debit("SUI", 400)
        vault.balance("SUI")   # 600
    """

    def __init__(self, balances: Optional[BalanceMap] = None):
        self._balances: BalanceMap = {}
        for asset_id, amount in (balances or {}).items():
            self.credit(asset_id, amount)

    def balance(self, asset_id: str) -> int:
        """Balance held for asset_id (0 if the asset was never credited)."""
        return self._balances.get(asset_id, 0)

    def assets(self) -> List[str]:
        return sorted(self._balances)

    def total(self) -> int:
        """Sum of all balances, in sorted asset order."""
        return sum(self._balances[a] for a in sorted(self._balances))

    def snapshot(self) -> BalanceMap:
        return dict(self._balances)

    def credit(self, asset_id: str, amount: int) -> int:
        """
        Increase the balance of asset_id, creating the entry at zero first.

        Returns:
            The new balance
        """
        _check_amount(amount)
        new_balance = self._balances.get(asset_id, 0) + amount
        self._balances[asset_id] = new_balance
        return new_balance

    def debit(self, asset_id: str, amount: int) -> int:
        """
        Decrease the balance of asset_id.

        Returns:
            The new balance

        Raises:
            InsufficientBalance: If amount exceeds the current balance
        """
        _check_amount(amount)
        current = self._balances.get(asset_id, 0)
        if amount > current:
            raise InsufficientBalance(
                f"vault {asset_id}: cannot debit {amount}, balance is {current}"
            )
        self._balances[asset_id] = current - amount
        return current - amount

    def restore(self, balances: BalanceMap) -> None:
        """Replace every balance with a previously taken snapshot."""
        self._balances = dict(balances)

    def __repr__(self) -> str:
        return f"AssetVault({self._balances!r})"


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidAmount(f"vault amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidAmount(f"vault amount must be non-negative, got {amount}")
