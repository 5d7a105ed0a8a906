"""
Core types and pure helpers for the pooled-fund share ledger.

This module provides the foundational data structures and protocols:
1. Protocols: UnitLedger, Clock and NotificationSink collaborators
2. Immutable data structures: Move, Unit, FeeSchedule and the fund records
3. Exceptions: FundError and the operation failure taxonomy
4. Move factories: mint, burn and transfer expressed as moves
5. Unit factories: base assets and fund shares

Amounts are plain integers in the smallest denomination of the unit.
Nothing in this module mutates fund or ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import (
    Dict, Protocol, Sequence, Union, runtime_checkable,
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and redemption of units.
# Mints move units out of it, burns move them back in.
SYSTEM_WALLET = "system"

# Base asset of a fund when none is given.
DEFAULT_BASE_ASSET = "SUI"

UNIT_TYPE_ASSET = "ASSET"
UNIT_TYPE_SHARE = "SHARE"

# Rates are expressed in basis points of this denominator.
BPS_DENOMINATOR = 10000

# Epochs are the clock's unit; management fees are annual rates.
EPOCHS_PER_YEAR = 365

# Policy ceilings applied on every fee schedule update.
MAX_MANAGEMENT_FEE_BPS = 1000    # 10%
MAX_PERFORMANCE_FEE_BPS = 3000   # 30%

DEFAULT_MANAGEMENT_FEE_BPS = 200
DEFAULT_PERFORMANCE_FEE_BPS = 2000


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from asset identifier to the amount held for it.
BalanceMap = Dict[str, int]

# Mapping from wallet ID to quantity held by that wallet for a specific unit.
Positions = Dict[str, int]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FundError(Exception):
    """Base exception for all fund ledger errors."""
    pass


class InvalidAmount(FundError):
    """Raised when a quantity is non-positive or not an integer."""
    pass


class InsufficientBalance(FundError):
    """Raised when a vault, the NAV or a wallet cannot cover a debit."""
    pass


class Unauthorized(FundError):
    """Raised when a manager-only operation is called by anyone else."""
    pass


class InvalidFeeParameter(FundError):
    """Raised when a fee rate is outside the policy ceilings."""
    pass


class CorruptedLedgerState(FundError):
    """
    Raised when an internal invariant is found broken.

    Signals a bug: the division guards in share accounting and the
    monotonic clock check should never fire under correct use.
    """
    pass


class UnitNotRegistered(FundError):
    """Raised when operating on a unit the unit ledger does not know."""
    pass


class WalletNotRegistered(FundError):
    """Raised when operating on a wallet the unit ledger does not know."""
    pass


def require_positive_int(name: str, value: object) -> int:
    """
    Validate a caller-supplied quantity.

    Raises:
        InvalidAmount: If value is not an int (bools excluded) or is not > 0
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise InvalidAmount(f"{name} must be positive, got {value}")
    return value


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of units between two wallets.

    Attributes:
        quantity: The amount to transfer (positive integer).
        unit_symbol: The symbol of the unit being transferred.
        source: The wallet ID debited.
        dest: The wallet ID credited.
        reference: Tag of the operation generating this move.
    """
    quantity: int
    unit_symbol: str
    source: str
    dest: str
    reference: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if not self.reference or not self.reference.strip():
            raise ValueError("Move reference cannot be empty")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}→{self.dest})"


def mint_move(unit_symbol: str, wallet_id: str, quantity: int, reference: str) -> Move:
    """Issue new units to a wallet out of the system wallet."""
    return Move(quantity, unit_symbol, SYSTEM_WALLET, wallet_id, reference)


def burn_move(unit_symbol: str, wallet_id: str, quantity: int, reference: str) -> Move:
    """Redeem units held by a wallet back into the system wallet."""
    return Move(quantity, unit_symbol, wallet_id, SYSTEM_WALLET, reference)


def transfer_move(unit_symbol: str, source: str, dest: str, quantity: int, reference: str) -> Move:
    return Move(quantity, unit_symbol, source, dest, reference)


@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of a fungible unit in the unit ledger.

    Attributes:
        symbol: Short identifier (e.g., "SUI", "ALPHA_SHARES").
        name: Human-readable name.
        unit_type: UNIT_TYPE_ASSET or UNIT_TYPE_SHARE.
        min_balance: Minimum balance any non-system wallet may hold.
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: int = 0

    def __post_init__(self):
        if not self.symbol or not self.symbol.strip():
            raise ValueError("Unit symbol cannot be empty")


def asset(symbol: str, name: str) -> Unit:
    """Create a base-asset unit (e.g., asset("SUI", "Sui"))."""
    return Unit(symbol=symbol, name=name, unit_type=UNIT_TYPE_ASSET)


def share_unit(fund_name: str) -> Unit:
    """Create the ownership unit issued by a fund."""
    return Unit(
        symbol=f"{fund_name}_SHARES",
        name=f"{fund_name} fund shares",
        unit_type=UNIT_TYPE_SHARE,
    )


@dataclass(frozen=True, slots=True)
class FeeSchedule:
    """
    Fee rates of a fund and the epoch fees were last collected at.

    Both rates are basis points in [0, BPS_DENOMINATOR]. The tighter policy
    ceilings are applied by fees.validate_fee_rates() on update.
    """
    management_fee_bps: int = DEFAULT_MANAGEMENT_FEE_BPS
    performance_fee_bps: int = DEFAULT_PERFORMANCE_FEE_BPS
    last_fee_collection: int = 0

    def __post_init__(self):
        for name in ("management_fee_bps", "performance_fee_bps"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be int, got {type(value)}")
            if not 0 <= value <= BPS_DENOMINATOR:
                raise ValueError(f"{name} must be in [0, {BPS_DENOMINATOR}], got {value}")
        if self.last_fee_collection < 0:
            raise ValueError("last_fee_collection must be non-negative")


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class DepositRecord:
    """A committed deposit. Returned to the caller and published to sinks."""
    depositor: str
    amount: int
    shares_minted: int
    total_nav: int
    share_supply: int
    epoch: int
    sequence: int


@dataclass(frozen=True, slots=True)
class WithdrawalRecord:
    """A committed withdrawal. `amount` is the base asset paid out."""
    withdrawer: str
    amount: int
    shares_burned: int
    total_nav: int
    share_supply: int
    epoch: int
    sequence: int


@dataclass(frozen=True, slots=True)
class FeeAccrualRecord:
    """A committed fee collection."""
    manager: str
    management_fee: int
    performance_fee: int
    epochs_passed: int
    total_nav: int
    epoch: int
    sequence: int

    @property
    def total_fee(self) -> int:
        return self.management_fee + self.performance_fee


@dataclass(frozen=True, slots=True)
class FeeScheduleUpdate:
    """A committed fee schedule change."""
    manager: str
    old_schedule: FeeSchedule
    new_schedule: FeeSchedule
    epoch: int
    sequence: int


FundRecord = Union[DepositRecord, WithdrawalRecord, FeeAccrualRecord, FeeScheduleUpdate]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class UnitLedger(Protocol):
    """
    Fungible-unit ledger the fund mints, burns and transfers through.

    execute() must apply the whole batch or nothing, and must refuse to take
    a non-system wallet below zero (InsufficientBalance). The fund relies on
    that refusal to enforce that a burner actually holds its shares.
    """

    def get_balance(self, wallet_id: str, unit_symbol: str) -> int:
        """Return the balance of a unit in a wallet (0 if none)."""
        ...

    def total_supply(self, unit_symbol: str) -> int:
        """Return the outstanding units held outside the system wallet."""
        ...

    def has_unit(self, unit_symbol: str) -> bool:
        ...

    def register_unit(self, unit: Unit) -> None:
        ...

    def is_registered(self, wallet_id: str) -> bool:
        ...

    def register_wallet(self, wallet_id: str) -> str:
        ...

    def execute(self, moves: Sequence[Move]) -> None:
        """Apply all moves atomically or raise."""
        ...


@runtime_checkable
class Clock(Protocol):
    """Monotonically non-decreasing source of logical time in epochs."""

    @property
    def current_epoch(self) -> int:
        ...


@runtime_checkable
class NotificationSink(Protocol):
    """Best-effort receiver of committed fund records."""

    def publish(self, record: FundRecord) -> None:
        ...

