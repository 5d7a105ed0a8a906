"""
fundledger - Pooled Fund Share Ledger

Share accounting for pooled-investment funds: deposits buy shares at NAV,
withdrawals redeem them, and the manager accrues time-based fees, without
total claims ever exceeding the pooled assets.

Usage:
    from fundledger import (
        InMemoryUnitLedger, LogicalClock, asset, mint_move, create_fund,
    )

    units = InMemoryUnitLedger("chain")
    units.register_unit(asset("SUI", "Sui"))
    units.register_wallet("alice")
    units.execute([mint_move("SUI", "alice", 10_000, "faucet")])

    clock = LogicalClock()
    fund = create_fund("manager", name="alpha", units=units, clock=clock)

    fund.deposit("alice", 1000)        # 1000 shares at the bootstrap price
    clock.advance_to(365)
    fund.accrue_fees("manager")        # one year of management fee
    fund.withdraw("alice", 500)
"""

# Core types
from .core import (
    Move,
    Unit,
    FeeSchedule,
    DepositRecord,
    WithdrawalRecord,
    FeeAccrualRecord,
    FeeScheduleUpdate,
    FundRecord,
    UnitLedger,
    Clock,
    NotificationSink,
    FundError,
    InvalidAmount,
    InsufficientBalance,
    Unauthorized,
    InvalidFeeParameter,
    CorruptedLedgerState,
    UnitNotRegistered,
    WalletNotRegistered,
    mint_move,
    burn_move,
    transfer_move,
    asset,
    share_unit,
    SYSTEM_WALLET,
    DEFAULT_BASE_ASSET,
    UNIT_TYPE_ASSET,
    UNIT_TYPE_SHARE,
    BPS_DENOMINATOR,
    EPOCHS_PER_YEAR,
    MAX_MANAGEMENT_FEE_BPS,
    MAX_PERFORMANCE_FEE_BPS,
    DEFAULT_MANAGEMENT_FEE_BPS,
    DEFAULT_PERFORMANCE_FEE_BPS,
)

# Collaborators
from .units import InMemoryUnitLedger, LedgerEntry
from .vault import AssetVault
from .clock import LogicalClock
from .notifications import RecordingSink, publish

# Arithmetic
from .shares import (
    compute_shares_to_mint,
    compute_withdraw_amount,
    compute_share_price,
)
from .fees import (
    compute_epochs_passed,
    compute_management_fee,
    compute_performance_fee,
    validate_fee_rates,
)

# Fund
from .fund import (
    FundLedger,
    create_fund,
    deposit,
    withdraw,
    accrue_fees,
    update_fee_schedule,
)

__all__ = [
    # Core
    'Move', 'Unit', 'FeeSchedule',
    'DepositRecord', 'WithdrawalRecord', 'FeeAccrualRecord', 'FeeScheduleUpdate', 'FundRecord',
    'UnitLedger', 'Clock', 'NotificationSink',
    'FundError', 'InvalidAmount', 'InsufficientBalance', 'Unauthorized',
    'InvalidFeeParameter', 'CorruptedLedgerState', 'UnitNotRegistered', 'WalletNotRegistered',
    'mint_move', 'burn_move', 'transfer_move', 'asset', 'share_unit',
    'SYSTEM_WALLET', 'DEFAULT_BASE_ASSET', 'UNIT_TYPE_ASSET', 'UNIT_TYPE_SHARE',
    'BPS_DENOMINATOR', 'EPOCHS_PER_YEAR',
    'MAX_MANAGEMENT_FEE_BPS', 'MAX_PERFORMANCE_FEE_BPS',
    'DEFAULT_MANAGEMENT_FEE_BPS', 'DEFAULT_PERFORMANCE_FEE_BPS',
    # Collaborators
    'InMemoryUnitLedger', 'LedgerEntry', 'AssetVault', 'LogicalClock',
    'RecordingSink', 'publish',
    # Arithmetic
    'compute_shares_to_mint', 'compute_withdraw_amount', 'compute_share_price',
    'compute_epochs_passed', 'compute_management_fee', 'compute_performance_fee',
    'validate_fee_rates',
    # Fund
    'FundLedger', 'create_fund', 'deposit', 'withdraw', 'accrue_fees', 'update_fee_schedule',
]

__version__ = '1.0.0'
