"""
units.py - In-Memory Fungible-Unit Ledger

Reference implementation of the UnitLedger protocol. Funds mint and burn
their shares and move base assets through it.

Key responsibilities:
    - Maintains wallet balances and unit definitions
    - Executes batches of moves atomically (all moves apply or none do)
    - Issues and redeems units through SYSTEM_WALLET, which is exempt from
      balance validation and therefore holds minus the outstanding supply
    - Keeps an append-only log of applied batches
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple, Any
import threading

from .core import (
    Move, Unit, Positions, BalanceMap,
    SYSTEM_WALLET,
    FundError, InsufficientBalance, UnitNotRegistered, WalletNotRegistered,
)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """An applied batch of moves, in execution order."""
    moves: Tuple[Move, ...]
    sequence: int
    exec_id: str


class InMemoryUnitLedger:
    """
    Double-entry unit ledger with full validation and an audit trail.

    Every unit is conserved: summed over all wallets, including the system
    wallet, each unit's balances are zero. Outstanding supply is what the
    non-system wallets hold.

    Thread Safety:
        execute() validates and applies each batch under an internal lock,
        so funds sharing one instance cannot interleave between the balance
        check and the update. Registration and set_balance() are not locked.

    Example:
        units = InMemoryUnitLedger("main")
        units.register_unit(asset("SUI", "Sui"))
        units.register_wallet("alice")
        units.execute([mint_move("SUI", "alice", 1000, "faucet")])
    """

    def __init__(self, name: str, verbose: bool = True, test_mode: bool = False):
        """
        Create a unit ledger.

        Args:
            name: Ledger identifier
            verbose: Print each applied or rejected batch (default: True)
            test_mode: Allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: Dict[str, Dict[str, int]] = {}
        self.units: Dict[str, Unit] = {}
        self.registered_wallets: Set[str] = set()
        self.transaction_log: List[LedgerEntry] = []
        self.verbose = verbose
        self._test_mode = test_mode
        self._next_sequence: int = 0
        self._lock = threading.Lock()

        self.registered_wallets.add(SYSTEM_WALLET)
        self.balances[SYSTEM_WALLET] = defaultdict(int)

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    def get_balance(self, wallet_id: str, unit_symbol: str) -> int:
        """
        Get the balance of a unit in a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
            UnitNotRegistered: If unit is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return self.balances[wallet_id].get(unit_symbol, 0)

    def get_wallet_balances(self, wallet_id: str) -> BalanceMap:
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        return dict(self.balances[wallet_id])

    def get_positions(self, unit_symbol: str) -> Positions:
        """Non-zero holdings of a unit by wallet, excluding the system wallet."""
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return {
            wallet: bals[unit_symbol]
            for wallet, bals in self.balances.items()
            if wallet != SYSTEM_WALLET and bals.get(unit_symbol, 0) != 0
        }

    def has_unit(self, unit_symbol: str) -> bool:
        return unit_symbol in self.units

    def is_registered(self, wallet_id: str) -> bool:
        return wallet_id in self.registered_wallets

    def list_wallets(self) -> Set[str]:
        return self.registered_wallets.copy()

    def list_units(self) -> List[str]:
        return sorted(self.units.keys())

    def total_supply(self, unit_symbol: str) -> int:
        """
        Outstanding supply of a unit: the sum held by non-system wallets.

        Wallets are sorted before summation so accumulation order is fixed.

        Raises:
            UnitNotRegistered: If unit is not registered
        """
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return sum(
            self.balances[w].get(unit_symbol, 0)
            for w in sorted(self.registered_wallets)
            if w != SYSTEM_WALLET
        )

    def verify_double_entry(self) -> Dict[str, Any]:
        """
        Verify that every unit is conserved.

        The system wallet's balance must exactly offset the outstanding supply.

        Returns:
            Dict with keys:
            - 'valid': bool - True if all units are conserved
            - 'supplies': Dict[str, int] - Outstanding supply per unit
            - 'discrepancies': List[Dict] - unit, outstanding, system_balance
        """
        supplies = {}
        discrepancies = []
        for unit_symbol in sorted(self.units):
            outstanding = self.total_supply(unit_symbol)
            supplies[unit_symbol] = outstanding
            system_balance = self.balances[SYSTEM_WALLET].get(unit_symbol, 0)
            if outstanding + system_balance != 0:
                discrepancies.append({
                    'unit': unit_symbol,
                    'outstanding': outstanding,
                    'system_balance': system_balance,
                })
        return {
            'valid': len(discrepancies) == 0,
            'supplies': supplies,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet.

        Raises:
            ValueError: If wallet is already registered or the id is empty
        """
        if not wallet_id or not wallet_id.strip():
            raise ValueError("wallet_id cannot be empty")
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = defaultdict(int)
        return wallet_id

    def register_unit(self, unit: Unit) -> None:
        """
        Register a new unit.

        Raises:
            ValueError: If unit symbol is already registered
        """
        if unit.symbol in self.units:
            raise ValueError(f"Unit {unit.symbol} already registered")
        self.units[unit.symbol] = unit
        if self.verbose:
            print(f"📝 Registered: {unit.symbol} ({unit.name}) [{unit.unit_type}]")

    def set_balance(self, wallet_id: str, unit_symbol: str, quantity: int) -> None:
        """
        Set a wallet's balance directly, offsetting the system wallet.

        Only available in test mode. The system wallet absorbs the difference
        so that verify_double_entry() keeps holding.

        Raises:
            FundError: If called when test_mode is False
        """
        if not self._test_mode:
            raise FundError(
                "set_balance() is disabled in production mode. "
                "Use execute() to modify balances. "
                "Set test_mode=True when creating the ledger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        delta = quantity - self.balances[wallet_id][unit_symbol]
        self.balances[wallet_id][unit_symbol] = quantity
        self.balances[SYSTEM_WALLET][unit_symbol] -= delta

    # ========================================================================
    # EXECUTION (Mutating)
    # ========================================================================

    def execute(self, moves: Sequence[Move]) -> Optional[LedgerEntry]:
        """
        Apply a batch of moves atomically.

        Validation covers registration of every unit and wallet, then the
        net effect of the whole batch on each non-system wallet. Nothing is
        applied unless every check passes.

        Returns:
            The logged LedgerEntry, or None for an empty batch

        Raises:
            UnitNotRegistered: If a move names an unknown unit
            WalletNotRegistered: If a move names an unknown wallet
            InsufficientBalance: If a wallet would drop below the unit minimum
        """
        moves = tuple(moves)
        if not moves:
            return None

        with self._lock:
            try:
                self._validate(moves)
            except FundError as e:
                if self.verbose:
                    print(f"✗ REJECTED: {e}")
                raise

            sequence = self._next_sequence
            self._next_sequence += 1
            entry = LedgerEntry(
                moves=moves,
                sequence=sequence,
                exec_id=f"exec:{self.name}:{sequence:012d}",
            )

            for move in moves:
                self.balances[move.source][move.unit_symbol] -= move.quantity
                self.balances[move.dest][move.unit_symbol] += move.quantity

            self.transaction_log.append(entry)

        if self.verbose:
            for move in moves:
                print(f"✓ {entry.exec_id} {move!r} [{move.reference}]")
        return entry

    def _validate(self, moves: Tuple[Move, ...]) -> None:
        for move in moves:
            if move.unit_symbol not in self.units:
                raise UnitNotRegistered(f"Unit {move.unit_symbol} not registered")
            if move.source not in self.registered_wallets:
                raise WalletNotRegistered(f"Wallet {move.source} not registered")
            if move.dest not in self.registered_wallets:
                raise WalletNotRegistered(f"Wallet {move.dest} not registered")

        net: Dict[Tuple[str, str], int] = {}
        for move in moves:
            key_src = (move.source, move.unit_symbol)
            key_dst = (move.dest, move.unit_symbol)
            net[key_src] = net.get(key_src, 0) - move.quantity
            net[key_dst] = net.get(key_dst, 0) + move.quantity

        # SYSTEM_WALLET is exempt: it goes negative by the issued amount
        for (wallet, unit_sym), delta in net.items():
            if wallet == SYSTEM_WALLET:
                continue
            current = self.balances[wallet].get(unit_sym, 0)
            proposed = current + delta
            unit = self.units[unit_sym]
            if proposed < unit.min_balance:
                raise InsufficientBalance(
                    f"{wallet} {unit_sym}: {proposed} < min {unit.min_balance}"
                )

    # ========================================================================
    # COPIES
    # ========================================================================

    def clone(self) -> InMemoryUnitLedger:
        """
        Create a fully independent copy of this ledger.

        Units are immutable and shared; balances and the log are copied.
        """
        cloned = InMemoryUnitLedger.__new__(InMemoryUnitLedger)
        cloned.name = self.name
        cloned.verbose = self.verbose
        cloned._test_mode = self._test_mode
        cloned.units = dict(self.units)
        cloned.registered_wallets = self.registered_wallets.copy()
        cloned.transaction_log = list(self.transaction_log)
        cloned._next_sequence = self._next_sequence
        cloned._lock = threading.Lock()
        cloned.balances = {
            wallet: defaultdict(int, bals) for wallet, bals in self.balances.items()
        }
        return cloned
