"""
conftest.py - Shared pytest fixtures for fund ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- A funded unit ledger (SUI plus investor wallets)
- A logical clock and a recording notification sink
- A test-mode fund wired to all three
- A state capture helper for all-or-nothing assertions
"""

import pytest

from fundledger import (
    FundLedger,
    InMemoryUnitLedger,
    LogicalClock,
    RecordingSink,
    asset,
)


INVESTORS = ("alice", "bob", "carol")
STARTING_BALANCE = 1_000_000


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def units():
    """Unit ledger with SUI registered and each investor holding 1,000,000."""
    ledger = InMemoryUnitLedger("test", verbose=False, test_mode=True)
    ledger.register_unit(asset("SUI", "Sui"))
    for wallet in INVESTORS:
        ledger.register_wallet(wallet)
        ledger.set_balance(wallet, "SUI", STARTING_BALANCE)
    return ledger


@pytest.fixture
def clock():
    return LogicalClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def fund(units, clock, sink):
    """Empty test-mode fund "alpha" managed by "manager"."""
    return FundLedger(
        "alpha",
        "manager",
        units=units,
        clock=clock,
        sinks=[sink],
        verbose=False,
        test_mode=True,
    )


# =============================================================================
# STATE CAPTURE
# =============================================================================

def capture_state(fund: FundLedger) -> dict:
    """Every externally observable field of a fund and its unit ledger."""
    return {
        "total_nav": fund.total_nav,
        "share_supply": fund.share_supply,
        "vault": fund.vault.snapshot(),
        "fee_schedule": fund.fee_schedule,
        "history": list(fund.history),
        "balances": {
            wallet: fund.units.get_wallet_balances(wallet)
            for wallet in sorted(fund.units.list_wallets())
        },
    }


@pytest.fixture
def state_of():
    """Return capture_state so tests can compare before/after snapshots."""
    return capture_state
