"""
fund.py - Pooled Fund Ledger

FundLedger is the aggregate root of a pooled-investment fund: depositors
contribute the base asset and receive shares, withdrawers redeem shares for
a proportional slice of the pool, and the manager periodically collects a
time-based management fee.

Key responsibilities:
    - Keeps total_nav in lockstep with the asset vault
    - Mints and burns shares through the injected UnitLedger
    - Applies every operation all-or-nothing: on any failure no field of
      the fund, and no balance in the unit ledger, is left changed
    - Serializes mutating calls on one fund (single writer)
    - Publishes committed records to notification sinks, best-effort,
      after the state change
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
from fractions import Fraction
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import threading

from .core import (
    # Types
    FeeSchedule, FundRecord, Move,
    DepositRecord, WithdrawalRecord, FeeAccrualRecord, FeeScheduleUpdate,
    UnitLedger, Clock, NotificationSink,
    # Constants
    DEFAULT_BASE_ASSET, EPOCHS_PER_YEAR, SYSTEM_WALLET,
    # Exceptions
    FundError, InsufficientBalance, InvalidFeeParameter, Unauthorized,
    # Helpers
    asset, share_unit, mint_move, burn_move, transfer_move, require_positive_int,
)
from .clock import LogicalClock
from .fees import (
    compute_epochs_passed, compute_management_fee, compute_performance_fee,
    validate_fee_rates,
)
from .notifications import publish
from .shares import compute_share_price, compute_shares_to_mint, compute_withdraw_amount
from .units import InMemoryUnitLedger
from .vault import AssetVault


class FundLedger:
    """
    Share-accounting engine of a single fund.

    Share price is total_nav / share_supply and is constant within a call.
    Deposits and withdrawals truncate in the pool's favour.

    Thread Safety:
        Mutating operations on one instance are serialized by an internal
        lock. Funds sharing a unit ledger rely on that ledger to apply each
        batch atomically; InMemoryUnitLedger.execute() locks for this. Any
        other UnitLedger shared across threads needs external serialization.

    Example:
        units = InMemoryUnitLedger("chain", verbose=False)
        units.register_unit(asset("SUI", "Sui"))
        units.register_wallet("alice")
        units.execute([mint_move("SUI", "alice", 5000, "faucet")])

        fund = create_fund("manager", name="alpha", units=units)
        record = fund.deposit("alice", 1000)
        record.shares_minted   # 1000
    """

    def __init__(
        self,
        name: str,
        manager: str,
        units: Optional[UnitLedger] = None,
        clock: Optional[Clock] = None,
        base_asset: str = DEFAULT_BASE_ASSET,
        fee_schedule: Optional[FeeSchedule] = None,
        epochs_per_year: int = EPOCHS_PER_YEAR,
        sinks: Optional[Sequence[NotificationSink]] = None,
        verbose: bool = True,
        test_mode: bool = False,
    ):
        """
        Create a fund with zero NAV and no shares outstanding.

        Args:
            name: Fund identifier (also names the share unit, "<name>_SHARES")
            manager: Wallet authorized for fee operations
            units: Unit ledger holding shares and the base asset
                (default: a fresh InMemoryUnitLedger)
            clock: Epoch source for fee accrual (default: LogicalClock at 0)
            base_asset: Symbol of the asset deposits are made in
            fee_schedule: Initial rates (default: FeeSchedule() collected now)
            epochs_per_year: Epochs in one fee year
            sinks: Receivers of committed records
            verbose: Print each applied or rejected operation (default: True)
            test_mode: Allow set_total_nav() and set_vault_balance() (default: False)

        Raises:
            ValueError: If name or manager is empty, the manager is a reserved
                wallet, epochs_per_year is not positive, or the share unit is
                already registered
            InvalidFeeParameter: If fee_schedule exceeds a policy ceiling or
                was last collected after the clock's current epoch
        """
        if not name or not name.strip():
            raise ValueError("Fund name cannot be empty")
        if not manager or not manager.strip():
            raise ValueError("Fund manager cannot be empty")
        if epochs_per_year <= 0:
            raise ValueError(f"epochs_per_year must be positive, got {epochs_per_year}")
        if manager in (SYSTEM_WALLET, f"fund:{name}"):
            raise ValueError(f"Fund manager cannot be the reserved wallet {manager}")

        self.name = name
        self.manager = manager
        self.base_asset = base_asset
        self.epochs_per_year = epochs_per_year
        self.verbose = verbose
        self._test_mode = test_mode
        self.units = units if units is not None else InMemoryUnitLedger(
            name, verbose=verbose, test_mode=test_mode
        )
        self.clock = clock if clock is not None else LogicalClock()
        self.sinks: List[NotificationSink] = list(sinks or [])

        if fee_schedule is not None:
            validate_fee_rates(fee_schedule.management_fee_bps, fee_schedule.performance_fee_bps)
            if fee_schedule.last_fee_collection > self.clock.current_epoch:
                raise InvalidFeeParameter(
                    f"last_fee_collection {fee_schedule.last_fee_collection} is after "
                    f"the current epoch {self.clock.current_epoch}"
                )

        self.custody_wallet = f"fund:{name}"
        shares = share_unit(name)
        self.share_symbol = shares.symbol

        if not self.units.has_unit(base_asset):
            self.units.register_unit(asset(base_asset, base_asset))
        self.units.register_unit(shares)
        for wallet in (self.custody_wallet, manager):
            if not self.units.is_registered(wallet):
                self.units.register_wallet(wallet)

        self.vault = AssetVault()
        self._total_nav: int = 0
        self.fee_schedule = fee_schedule or FeeSchedule(
            last_fee_collection=self.clock.current_epoch
        )
        self.history: List[FundRecord] = []
        self._lock = threading.Lock()

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    @property
    def total_nav(self) -> int:
        """Total pooled value in the base asset."""
        return self._total_nav

    @property
    def share_supply(self) -> int:
        """Outstanding shares, as tracked by the unit ledger."""
        return self.units.total_supply(self.share_symbol)

    def share_price(self) -> Fraction:
        return compute_share_price(self._total_nav, self.share_supply)

    def shares_of(self, wallet_id: str) -> int:
        return self.units.get_balance(wallet_id, self.share_symbol)

    def preview_deposit(self, amount: int) -> int:
        """Shares a deposit of `amount` would mint right now."""
        return compute_shares_to_mint(amount, self._total_nav, self.share_supply)

    def preview_withdraw(self, shares_amount: int) -> int:
        """Base asset a redemption of `shares_amount` would pay right now."""
        return compute_withdraw_amount(shares_amount, self._total_nav, self.share_supply)

    def preview_fees(self) -> Tuple[int, int]:
        """
        Fees accrue_fees() would collect at the current epoch.

        Returns:
            (management_fee, performance_fee)
        """
        epochs = compute_epochs_passed(
            self.clock.current_epoch, self.fee_schedule.last_fee_collection
        )
        management = compute_management_fee(
            self._total_nav, self.fee_schedule.management_fee_bps, epochs, self.epochs_per_year
        )
        performance = compute_performance_fee(
            self._total_nav, self.fee_schedule.performance_fee_bps
        )
        return management, performance

    def verify_invariants(self) -> Dict[str, Any]:
        """
        Check that the cached NAV agrees with the vault and with custody.

        Checks:
        1. total_nav == sum of all vault balances
        2. total_nav and every vault balance are non-negative
        3. the vault's base-asset balance equals what the custody wallet
           holds in the unit ledger

        Returns:
            Dict with keys:
            - 'valid': bool - True if all checks pass
            - 'total_nav': int
            - 'vault_total': int
            - 'custody_balance': int
            - 'discrepancies': List[str] - description of each failed check

        Example:
            result = fund.verify_invariants()
            assert result['valid'], result['discrepancies']
        """
        discrepancies = []
        vault_total = self.vault.total()
        custody_balance = self.units.get_balance(self.custody_wallet, self.base_asset)

        if self._total_nav != vault_total:
            discrepancies.append(f"total_nav {self._total_nav} != vault total {vault_total}")
        if self._total_nav < 0:
            discrepancies.append(f"total_nav {self._total_nav} is negative")
        for asset_id, balance in self.vault.snapshot().items():
            if balance < 0:
                discrepancies.append(f"vault {asset_id} balance {balance} is negative")
        if self.vault.balance(self.base_asset) != custody_balance:
            discrepancies.append(
                f"vault {self.base_asset} {self.vault.balance(self.base_asset)} "
                f"!= custody balance {custody_balance}"
            )

        return {
            'valid': len(discrepancies) == 0,
            'total_nav': self._total_nav,
            'vault_total': vault_total,
            'custody_balance': custody_balance,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # OPERATIONS (Mutating)
    # ========================================================================

    def deposit(self, depositor: str, amount: int) -> DepositRecord:
        """
        Contribute `amount` of the base asset in exchange for shares.

        Shares are priced before the deposit: 1:1 while no shares are
        outstanding, otherwise floor(amount * share_supply / total_nav).

        Raises:
            InvalidAmount: If amount is not a positive integer
            Unauthorized: If depositor is empty or a reserved wallet
            InsufficientBalance: If the depositor does not hold `amount`
            CorruptedLedgerState: If shares are outstanding against zero NAV
        """
        with self._atomic("deposit"):
            self._require_caller(depositor, "deposit")
            require_positive_int("amount", amount)
            supply = self.share_supply
            self.vault.credit(self.base_asset, amount)
            shares = compute_shares_to_mint(amount, self._total_nav, supply)
            self._total_nav += amount

            moves = [transfer_move(self.base_asset, depositor, self.custody_wallet, amount, "deposit")]
            if shares > 0:
                moves.append(mint_move(self.share_symbol, depositor, shares, "deposit"))
            self._settle(moves)

            record = DepositRecord(
                depositor=depositor,
                amount=amount,
                shares_minted=shares,
                total_nav=self._total_nav,
                share_supply=supply + shares,
                epoch=self.clock.current_epoch,
                sequence=len(self.history),
            )
            self.history.append(record)

        if self.verbose:
            print(f"✓ DEPOSIT {depositor}: {amount} {self.base_asset} → "
                  f"{shares} {self.share_symbol} (NAV {self._total_nav})")
        self._notify(record)
        return record

    def withdraw(self, withdrawer: str, shares_amount: int) -> WithdrawalRecord:
        """
        Redeem `shares_amount` shares for floor(shares * total_nav / share_supply)
        of the base asset.

        Raises:
            InvalidAmount: If shares_amount is not a positive integer
            Unauthorized: If withdrawer is empty or a reserved wallet
            InsufficientBalance: If the withdrawer does not hold the shares,
                or the NAV or vault cannot cover the payout
            CorruptedLedgerState: If no shares are outstanding
        """
        with self._atomic("withdraw"):
            self._require_caller(withdrawer, "withdraw")
            require_positive_int("shares_amount", shares_amount)
            supply = self.share_supply
            amount = compute_withdraw_amount(shares_amount, self._total_nav, supply)

            moves = [burn_move(self.share_symbol, withdrawer, shares_amount, "withdraw")]
            if amount > self._total_nav:
                raise InsufficientBalance(
                    f"withdrawal of {amount} exceeds NAV {self._total_nav}"
                )
            self._total_nav -= amount
            if amount > 0:
                self.vault.debit(self.base_asset, amount)
                moves.append(transfer_move(
                    self.base_asset, self.custody_wallet, withdrawer, amount, "withdraw"
                ))
            self._settle(moves)

            record = WithdrawalRecord(
                withdrawer=withdrawer,
                amount=amount,
                shares_burned=shares_amount,
                total_nav=self._total_nav,
                share_supply=supply - shares_amount,
                epoch=self.clock.current_epoch,
                sequence=len(self.history),
            )
            self.history.append(record)

        if self.verbose:
            print(f"✓ WITHDRAW {withdrawer}: {shares_amount} {self.share_symbol} → "
                  f"{amount} {self.base_asset} (NAV {self._total_nav})")
        self._notify(record)
        return record

    def accrue_fees(self, caller: str) -> FeeAccrualRecord:
        """
        Collect management fees for the epochs since the last collection.

        The collection epoch only advances once the fee has been paid to
        the manager.

        Raises:
            Unauthorized: If caller is not the manager
            CorruptedLedgerState: If the clock reads before the last collection
            InsufficientBalance: If the fee exceeds the NAV or the vault
        """
        with self._atomic("accrue_fees"):
            self._require_manager(caller, "accrue_fees")
            now = self.clock.current_epoch
            schedule = self.fee_schedule
            epochs = compute_epochs_passed(now, schedule.last_fee_collection)
            management_fee = compute_management_fee(
                self._total_nav, schedule.management_fee_bps, epochs, self.epochs_per_year
            )
            performance_fee = compute_performance_fee(
                self._total_nav, schedule.performance_fee_bps
            )
            total_fee = management_fee + performance_fee
            if total_fee > self._total_nav:
                raise InsufficientBalance(f"fee {total_fee} exceeds NAV {self._total_nav}")

            if total_fee > 0:
                self.vault.debit(self.base_asset, total_fee)
                self._total_nav -= total_fee
                self._settle([transfer_move(
                    self.base_asset, self.custody_wallet, self.manager, total_fee, "fees"
                )])
            self.fee_schedule = replace(schedule, last_fee_collection=now)

            record = FeeAccrualRecord(
                manager=self.manager,
                management_fee=management_fee,
                performance_fee=performance_fee,
                epochs_passed=epochs,
                total_nav=self._total_nav,
                epoch=now,
                sequence=len(self.history),
            )
            self.history.append(record)

        if self.verbose:
            print(f"✓ FEES {self.manager}: {total_fee} {self.base_asset} over "
                  f"{epochs} epochs (NAV {self._total_nav})")
        self._notify(record)
        return record

    def update_fee_schedule(
        self,
        caller: str,
        management_fee_bps: int,
        performance_fee_bps: int,
    ) -> FeeScheduleUpdate:
        """
        Replace both fee rates. last_fee_collection is left as it is.

        Raises:
            Unauthorized: If caller is not the manager
            InvalidFeeParameter: If a rate exceeds its policy ceiling
        """
        with self._atomic("update_fee_schedule"):
            self._require_manager(caller, "update_fee_schedule")
            validate_fee_rates(management_fee_bps, performance_fee_bps)
            old_schedule = self.fee_schedule
            self.fee_schedule = replace(
                old_schedule,
                management_fee_bps=management_fee_bps,
                performance_fee_bps=performance_fee_bps,
            )
            record = FeeScheduleUpdate(
                manager=self.manager,
                old_schedule=old_schedule,
                new_schedule=self.fee_schedule,
                epoch=self.clock.current_epoch,
                sequence=len(self.history),
            )
            self.history.append(record)

        if self.verbose:
            print(f"✓ FEE SCHEDULE: management {management_fee_bps} bps, "
                  f"performance {performance_fee_bps} bps")
        self._notify(record)
        return record

    # ========================================================================
    # TEST-MODE STATE SEEDING
    # ========================================================================

    def set_total_nav(self, total_nav: int) -> None:
        """
        Overwrite the cached NAV directly.

        WARNING: bypasses the vault lockstep. Only available in test mode.

        Raises:
            FundError: If called when test_mode is False
        """
        self._require_test_mode("set_total_nav")
        self._total_nav = total_nav

    def set_vault_balance(self, asset_id: str, amount: int) -> None:
        """
        Overwrite one vault balance directly. Only available in test mode.

        Raises:
            FundError: If called when test_mode is False
        """
        self._require_test_mode("set_vault_balance")
        balances = self.vault.snapshot()
        balances[asset_id] = amount
        self.vault.restore(balances)

    # ========================================================================
    # COPIES
    # ========================================================================

    def clone(self) -> FundLedger:
        """
        Create an independent copy for what-if analysis.

        The unit ledger is cloned with the fund, so it must provide clone()
        (InMemoryUnitLedger does). The clock is shared; sinks are not copied.
        """
        cloned = FundLedger.__new__(FundLedger)
        cloned.name = self.name
        cloned.manager = self.manager
        cloned.base_asset = self.base_asset
        cloned.epochs_per_year = self.epochs_per_year
        cloned.verbose = self.verbose
        cloned._test_mode = self._test_mode
        cloned.units = self.units.clone()
        cloned.clock = self.clock
        cloned.sinks = []
        cloned.custody_wallet = self.custody_wallet
        cloned.share_symbol = self.share_symbol
        cloned.vault = AssetVault(self.vault.snapshot())
        cloned._total_nav = self._total_nav
        cloned.fee_schedule = self.fee_schedule
        cloned.history = list(self.history)
        cloned._lock = threading.Lock()
        return cloned

    # ========================================================================
    # INTERNALS
    # ========================================================================

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        """
        Run one operation under the fund lock, restoring all fund fields if
        it raises. Unit-ledger moves are settled last, as one atomic batch,
        so they never need undoing.
        """
        with self._lock:
            nav = self._total_nav
            vault = self.vault.snapshot()
            schedule = self.fee_schedule
            history_len = len(self.history)
            try:
                yield
            except Exception as e:
                self._total_nav = nav
                self.vault.restore(vault)
                self.fee_schedule = schedule
                del self.history[history_len:]
                if self.verbose:
                    print(f"✗ REJECTED {operation}: {type(e).__name__}: {e}")
                raise

    def _settle(self, moves: List[Move]) -> None:
        self.units.execute(moves)

    def _require_caller(self, caller: str, operation: str) -> None:
        """Investors must be real wallets, not the issuance or custody wallet."""
        if not caller or caller in (SYSTEM_WALLET, self.custody_wallet):
            raise Unauthorized(f"{caller!r} cannot {operation} in {self.name}")

    def _require_manager(self, caller: str, operation: str) -> None:
        if caller != self.manager:
            raise Unauthorized(f"{caller} is not the manager of {self.name}; cannot {operation}")

    def _require_test_mode(self, method: str) -> None:
        if not self._test_mode:
            raise FundError(
                f"{method}() is disabled in production mode. "
                "Set test_mode=True when creating the fund for testing."
            )

    def _notify(self, record: FundRecord) -> None:
        publish(self.sinks, record, verbose=self.verbose)

    def __repr__(self) -> str:
        return (f"FundLedger({self.name!r}, manager={self.manager!r}, "
                f"nav={self._total_nav}, shares={self.share_supply})")


# ============================================================================
# OPERATION SURFACE
# ============================================================================

def create_fund(creator: str, name: str = "fund", **kwargs) -> FundLedger:
    """
    Create a fund managed by its creator.

    Keyword arguments are passed through to FundLedger.
    """
    return FundLedger(name=name, manager=creator, **kwargs)


def deposit(fund: FundLedger, caller: str, amount: int) -> DepositRecord:
    return fund.deposit(caller, amount)


def withdraw(fund: FundLedger, caller: str, shares_amount: int) -> WithdrawalRecord:
    return fund.withdraw(caller, shares_amount)


def accrue_fees(fund: FundLedger, caller: str) -> FeeAccrualRecord:
    return fund.accrue_fees(caller)


def update_fee_schedule(
    fund: FundLedger,
    caller: str,
    management_fee_bps: int,
    performance_fee_bps: int,
) -> FeeScheduleUpdate:
    return fund.update_fee_schedule(caller, management_fee_bps, performance_fee_bps)
