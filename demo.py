#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: A Pooled Fund Step by Step

Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3: Setup       - The unit ledger, funding investors, creating a fund
  4-6: Shares      - First deposit at par, proportional deposits, withdrawals
  7-8: Fees        - Management fee accrual, fee schedule updates
  9:   Safety      - Rejected operations leave nothing behind
  10:  Invariants  - NAV, vault and custody agree

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from fundledger import (
    FundLedger, InMemoryUnitLedger, LogicalClock, RecordingSink,
    FundError, asset, mint_move, create_fund,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    base_asset: str = "SUI"
    initial_balance: int = 1_000_000

    alice_deposit: int = 100_000
    bob_deposit: int = 50_000
    carol_deposit: int = 49_000

    reduced_fee_bps: int = 100


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_fund(fund: FundLedger):
    print(f"NAV:          {fund.total_nav} {fund.base_asset}")
    print(f"Share supply: {fund.share_supply}")
    print(f"Share price:  {float(fund.share_price()):.6f}")


# ============================================================================
# SETUP (Steps 1-3)
# ============================================================================

def step_01_unit_ledger() -> InMemoryUnitLedger:
    step_header(1, "The Unit Ledger",
        "Shares and the base asset both live in a double-entry unit ledger.")

    print(">>> units = InMemoryUnitLedger('chain')")
    units = InMemoryUnitLedger("chain", verbose=True)
    print(f">>> units.register_unit(asset({CONFIG.base_asset!r}, 'Sui'))")
    units.register_unit(asset(CONFIG.base_asset, "Sui"))

    section_header("Key Insight")
    print("""
    The SYSTEM wallet issues every unit. Its balance is the negative of
    everything outstanding, so the sum over all wallets is always zero.
    """)
    wait_for_enter()
    return units


def step_02_fund_investors(units: InMemoryUnitLedger):
    step_header(2, "Funding Investors",
        "Give alice, bob and carol some of the base asset to invest.")

    moves = []
    for wallet in ("alice", "bob", "carol"):
        units.register_wallet(wallet)
        moves.append(mint_move(CONFIG.base_asset, wallet, CONFIG.initial_balance, "faucet"))
    units.execute(moves)

    for wallet in ("alice", "bob", "carol"):
        print(f"{wallet:6s} {units.get_balance(wallet, CONFIG.base_asset)} {CONFIG.base_asset}")
    wait_for_enter()


def step_03_create_fund(units: InMemoryUnitLedger, clock: LogicalClock,
                        sink: RecordingSink) -> FundLedger:
    step_header(3, "Creating a Fund",
        "The creator becomes the manager; the fund starts empty.")

    print(">>> fund = create_fund('manager', name='alpha', units=units, clock=clock)")
    fund = create_fund("manager", name="alpha", units=units, clock=clock, sinks=[sink])

    section_header("Initial State")
    show_fund(fund)
    print(f"Share unit:   {fund.share_symbol}")
    print(f"Custody:      {fund.custody_wallet}")
    print(f"Fee schedule: {fund.fee_schedule}")
    wait_for_enter()
    return fund


# ============================================================================
# SHARES (Steps 4-6)
# ============================================================================

def step_04_first_deposit(fund: FundLedger):
    step_header(4, "First Deposit",
        "With no shares outstanding, shares are minted 1:1.")

    fund.deposit("alice", CONFIG.alice_deposit)
    show_fund(fund)
    wait_for_enter()


def step_05_proportional_deposit(fund: FundLedger):
    step_header(5, "Proportional Deposits",
        "Later deposits buy shares at the current price, rounded down.")

    print(f"Preview: {CONFIG.bob_deposit} buys {fund.preview_deposit(CONFIG.bob_deposit)} shares")
    fund.deposit("bob", CONFIG.bob_deposit)
    show_fund(fund)
    wait_for_enter()


def step_06_withdraw(fund: FundLedger):
    step_header(6, "Withdrawals",
        "Burning shares pays out a proportional slice of the pool.")

    shares = fund.shares_of("bob") // 2
    print(f"Preview: {shares} shares redeem for {fund.preview_withdraw(shares)}")
    fund.withdraw("bob", shares)
    show_fund(fund)
    wait_for_enter()


# ============================================================================
# FEES (Steps 7-8)
# ============================================================================

def step_07_accrue_fees(fund: FundLedger, clock: LogicalClock):
    step_header(7, "Management Fees",
        "A year later the manager collects a time-proportional fee.")

    clock.advance_to(365)
    management, performance = fund.preview_fees()
    print(f"Preview: management {management}, performance {performance}")
    fund.accrue_fees("manager")
    show_fund(fund)

    section_header("Key Insight")
    print("""
    The fee leaves the pool without burning shares, so every holder's
    share price drops by the same proportion.
    """)

    fund.deposit("carol", CONFIG.carol_deposit)
    show_fund(fund)
    wait_for_enter()


def step_08_update_schedule(fund: FundLedger):
    step_header(8, "Fee Schedule Updates",
        "Only the manager may change rates, and only within policy ceilings.")

    fund.update_fee_schedule("manager", CONFIG.reduced_fee_bps, 2000)
    print(f"New schedule: {fund.fee_schedule}")
    wait_for_enter()


# ============================================================================
# SAFETY AND INVARIANTS (Steps 9-10)
# ============================================================================

def step_09_rejections(fund: FundLedger):
    step_header(9, "Rejected Operations",
        "A failing operation changes nothing at all.")

    before = (fund.total_nav, fund.share_supply, len(fund.history))
    attempts = [
        ("alice redeems more shares than held",
         lambda: fund.withdraw("alice", fund.shares_of("alice") + 1)),
        ("bob tries to collect fees", lambda: fund.accrue_fees("bob")),
        ("manager sets a 50% management fee",
         lambda: fund.update_fee_schedule("manager", 5000, 2000)),
        ("carol deposits nothing", lambda: fund.deposit("carol", 0)),
    ]
    for description, attempt in attempts:
        print(f"\n>>> {description}")
        try:
            attempt()
        except FundError:
            pass

    after = (fund.total_nav, fund.share_supply, len(fund.history))
    print(f"\nState before: {before}")
    print(f"State after:  {after}")
    wait_for_enter()


def step_10_invariants(fund: FundLedger, units: InMemoryUnitLedger, sink: RecordingSink):
    step_header(10, "Invariants",
        "The cached NAV always equals the vault and the custody balance.")

    result = fund.verify_invariants()
    print(f"Fund invariants valid:  {result['valid']}")
    print(f"NAV / vault / custody:  {result['total_nav']} / {result['vault_total']} / "
          f"{result['custody_balance']}")
    print(f"Double entry valid:     {units.verify_double_entry()['valid']}")

    section_header("History")
    for record in fund.history:
        print(f"  #{record.sequence} {type(record).__name__}")
    print(f"\nNotifications delivered: {len(sink.records)}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       FUNDLEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)

    clock = LogicalClock()
    sink = RecordingSink()

    units = step_01_unit_ledger()
    step_02_fund_investors(units)
    fund = step_03_create_fund(units, clock, sink)
    step_04_first_deposit(fund)
    step_05_proportional_deposit(fund)
    step_06_withdraw(fund)
    step_07_accrue_fees(fund, clock)
    step_08_update_schedule(fund)
    step_09_rejections(fund)
    step_10_invariants(fund, units, sink)


if __name__ == "__main__":
    main()
