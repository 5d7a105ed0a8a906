"""
Concurrency Conformance Tests

INVARIANT: Mutating calls on one fund behave as if run one at a time.

    ∀ concurrent calls c1..cn on fund F:
        final state of F == state after some serial order of c1..cn

Funds sharing a unit ledger must also never overdraw a wallet they both
debit, however their calls interleave.
"""

import threading

from fundledger import (
    FundLedger, InMemoryUnitLedger, FundError, asset, mint_move,
)


def _make_units(wallets, balance):
    units = InMemoryUnitLedger("test", verbose=False)
    units.register_unit(asset("SUI", "Sui"))
    for wallet in wallets:
        units.register_wallet(wallet)
        units.execute([mint_move("SUI", wallet, balance, "faucet")])
    return units


def _run_threads(targets):
    barrier = threading.Barrier(len(targets))
    errors = []

    def wrap(target):
        barrier.wait()
        try:
            target()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=wrap, args=(t,)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors


class TestSingleWriterPerFund:

    def test_concurrent_deposits(self):
        """Deposits at par from many threads are all accounted for exactly."""
        wallets = [f"investor{i}" for i in range(8)]
        units = _make_units(wallets, 1_000_000)
        fund = FundLedger("alpha", "manager", units=units, verbose=False)
        amounts = {wallet: 100 * (i + 1) for i, wallet in enumerate(wallets)}

        def depositor(wallet):
            def run():
                for _ in range(50):
                    fund.deposit(wallet, amounts[wallet])
            return run

        errors = _run_threads([depositor(w) for w in wallets])

        assert errors == []
        expected = sum(50 * amount for amount in amounts.values())
        assert fund.total_nav == expected
        assert fund.share_supply == expected
        assert fund.share_supply == sum(fund.shares_of(w) for w in wallets)
        assert fund.verify_invariants()['valid']
        assert [r.sequence for r in fund.history] == list(range(len(wallets) * 50))

    def test_concurrent_deposits_and_withdrawals(self):
        wallets = ["alice", "bob", "carol", "dave"]
        units = _make_units(wallets, 1_000_000)
        fund = FundLedger("alpha", "manager", units=units, verbose=False)
        for wallet in wallets:
            fund.deposit(wallet, 10_000)

        def churn(wallet):
            def run():
                for _ in range(50):
                    fund.deposit(wallet, 300)
                    fund.withdraw(wallet, 200)
            return run

        errors = _run_threads([churn(w) for w in wallets])

        assert errors == []
        # Price stays at 1, so each wallet nets 50 * 100 shares
        for wallet in wallets:
            assert fund.shares_of(wallet) == 10_000 + 50 * 100
        assert fund.total_nav == fund.share_supply == 4 * 15_000
        assert fund.verify_invariants()['valid']
        assert units.verify_double_entry()['valid']


class TestSharedUnitLedger:

    def test_two_funds_cannot_overdraw_shared_depositor(self):
        """
        Two funds race to take the same depositor's balance; the unit ledger
        lets exactly as many deposits through as the balance covers.
        """
        units = _make_units(["alice"], 10_000)
        alpha = FundLedger("alpha", "manager", units=units, verbose=False)
        gamma = FundLedger("gamma", "manager", units=units, verbose=False)
        rejected = []

        def depositor(fund):
            def run():
                for _ in range(20):
                    try:
                        fund.deposit("alice", 500)
                    except FundError:
                        rejected.append(fund.name)
            return run

        errors = _run_threads([depositor(alpha), depositor(gamma)] * 2)

        assert errors == []
        assert units.get_balance("alice", "SUI") == 0
        assert alpha.total_nav + gamma.total_nav == 10_000
        assert len(rejected) == 4 * 20 - 20
        assert alpha.verify_invariants()['valid']
        assert gamma.verify_invariants()['valid']
        assert units.verify_double_entry()['valid']
