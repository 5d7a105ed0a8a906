"""
Rounding Conformance Tests

INVARIANT: Truncation never transfers value out of the pool.

    shares minted   = floor(amount * supply / nav)   ≤ exact
    amount paid out = floor(shares * nav / supply)   ≤ exact

Consequences checked here:
1. A deposit immediately followed by a full withdrawal never returns more
   than was deposited
2. Remaining holders' share price never drops because of someone else's
   deposit or withdrawal
3. The first deposit into an empty fund mints 1:1
"""

from fractions import Fraction

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from fundledger import FundLedger, InMemoryUnitLedger, asset, mint_move


def _make_fund(seed_nav: int = 0):
    """
    Fund whose existing holder "seed" deposited `seed_nav` at par.

    "alice" and "bob" each hold 10**12 SUI ready to deposit.
    """
    units = InMemoryUnitLedger("test", verbose=False)
    units.register_unit(asset("SUI", "Sui"))
    for wallet in ("seed", "alice", "bob"):
        units.register_wallet(wallet)
    units.execute([mint_move("SUI", "alice", 10**12, "faucet"),
                   mint_move("SUI", "bob", 10**12, "faucet")])
    fund = FundLedger("alpha", "manager", units=units, verbose=False, test_mode=True)
    if seed_nav:
        units.execute([mint_move("SUI", "seed", seed_nav, "faucet")])
        fund.deposit("seed", seed_nav)
    return fund, units


class TestBootstrap:

    @given(st.integers(min_value=1, max_value=10**12))
    @settings(max_examples=100)
    def test_first_deposit_mints_one_to_one(self, amount):
        fund, _ = _make_fund()
        record = fund.deposit("alice", amount)
        assert record.shares_minted == amount
        assert fund.share_price() == 1

    def test_refilling_emptied_fund_restarts_at_par(self):
        fund, _ = _make_fund()
        fund.deposit("alice", 1000)
        fund.withdraw("alice", 1000)
        assert fund.share_supply == 0
        record = fund.deposit("bob", 777)
        assert record.shares_minted == 777


class TestRoundTrip:
    """Deposit then redeem everything minted."""

    @given(st.integers(min_value=1, max_value=10**12))
    @settings(max_examples=100)
    def test_round_trip_at_par_is_lossless(self, amount):
        fund, units = _make_fund()
        before = units.get_balance("alice", "SUI")
        record = fund.deposit("alice", amount)
        fund.withdraw("alice", record.shares_minted)
        assert units.get_balance("alice", "SUI") == before

    @given(
        seed=st.integers(min_value=1, max_value=10**9),
        gain=st.integers(min_value=0, max_value=10**9),
        amount=st.integers(min_value=1, max_value=10**9),
    )
    @settings(max_examples=200, deadline=None)
    def test_round_trip_never_profits(self, seed, gain, amount):
        """
        PROPERTY: Whatever the share price, depositing and immediately
        withdrawing every minted share never returns more than deposited.
        """
        fund, units = _make_fund(seed_nav=seed)
        _add_gain(fund, units, gain)

        before = units.get_balance("alice", "SUI")
        record = fund.deposit("alice", amount)
        assume(record.shares_minted > 0)
        fund.withdraw("alice", record.shares_minted)
        after = units.get_balance("alice", "SUI")

        assert after <= before
        assert fund.verify_invariants()['valid']


class TestRemainingHolders:

    @given(
        seed=st.integers(min_value=1, max_value=10**9),
        gain=st.integers(min_value=0, max_value=10**9),
        amount=st.integers(min_value=1, max_value=10**9),
    )
    @settings(max_examples=200, deadline=None)
    def test_deposit_never_dilutes(self, seed, gain, amount):
        """PROPERTY: The share price after a deposit is at least the price before."""
        fund, units = _make_fund(seed_nav=seed)
        _add_gain(fund, units, gain)
        price_before = fund.share_price()

        fund.deposit("alice", amount)

        assert fund.share_price() >= price_before

    @given(
        seed=st.integers(min_value=2, max_value=10**9),
        gain=st.integers(min_value=0, max_value=10**9),
        fraction=st.fractions(min_value=0, max_value=1),
    )
    @settings(max_examples=200, deadline=None)
    def test_withdraw_never_dilutes(self, seed, gain, fraction):
        """PROPERTY: The share price after a partial withdrawal is at least the price before."""
        fund, units = _make_fund(seed_nav=seed)
        _add_gain(fund, units, gain)
        shares = int(fraction * (fund.share_supply - 1))
        assume(shares > 0)
        price_before = fund.share_price()

        fund.withdraw("seed", shares)

        assert fund.share_price() >= price_before


class TestProportionality:

    def test_equal_deposits_equal_shares(self):
        fund, _ = _make_fund(seed_nav=1000)
        first = fund.deposit("alice", 500)
        second = fund.deposit("bob", 500)
        assert first.shares_minted == second.shares_minted == 500

    def test_shares_track_price(self):
        """At price 3/2, 300 buys 200 shares and 200 shares redeem for 300."""
        fund, units = _make_fund(seed_nav=1000)
        _add_gain(fund, units, 500)
        assert fund.share_price() == Fraction(3, 2)

        record = fund.deposit("alice", 300)
        assert record.shares_minted == 200
        assert fund.preview_withdraw(200) == 300

    def test_truncated_deposit(self):
        """At price 3/2, 100 buys floor(66.67) = 66 shares."""
        fund, units = _make_fund(seed_nav=1000)
        _add_gain(fund, units, 500)
        assert fund.deposit("alice", 100).shares_minted == 66


def _add_gain(fund: FundLedger, units: InMemoryUnitLedger, gain: int) -> None:
    """Grow the pool by `gain` without minting shares, as a realized gain would."""
    if gain == 0:
        return
    units.execute([mint_move("SUI", fund.custody_wallet, gain, "gain")])
    fund.set_vault_balance(fund.base_asset, fund.vault.balance(fund.base_asset) + gain)
    fund.set_total_nav(fund.total_nav + gain)
