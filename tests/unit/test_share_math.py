"""
test_share_math.py - Unit tests for share conversion arithmetic

Tests:
- 1:1 bootstrap pricing with no shares outstanding
- proportional pricing and truncation on deposit and withdrawal
- division guards raising CorruptedLedgerState
- input validation
"""

from fractions import Fraction

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fundledger import (
    compute_shares_to_mint,
    compute_withdraw_amount,
    compute_share_price,
    CorruptedLedgerState,
    InvalidAmount,
)


class TestSharesToMint:
    """Tests for compute_shares_to_mint."""

    def test_bootstrap_is_one_to_one(self):
        assert compute_shares_to_mint(1000, 0, 0) == 1000

    def test_bootstrap_ignores_leftover_nav(self):
        """With every share redeemed, dust NAV does not change the 1:1 price."""
        assert compute_shares_to_mint(1000, 7, 0) == 1000

    def test_proportional(self):
        # floor(500 * 100 / 1000) = 50
        assert compute_shares_to_mint(500, 1000, 100) == 50

    def test_truncates(self):
        # 10 * 3 / 7 = 4.28...
        assert compute_shares_to_mint(10, 7, 3) == 4

    def test_dust_deposit_mints_nothing(self):
        assert compute_shares_to_mint(9, 1000, 1) == 0

    def test_zero_nav_with_supply_is_corrupt(self):
        with pytest.raises(CorruptedLedgerState):
            compute_shares_to_mint(100, 0, 50)

    @pytest.mark.parametrize("amount", [0, -5, 1.0, True, "100"])
    def test_rejects_invalid_amount(self, amount):
        with pytest.raises(InvalidAmount):
            compute_shares_to_mint(amount, 1000, 100)


class TestWithdrawAmount:
    """Tests for compute_withdraw_amount."""

    def test_proportional(self):
        # floor(50 * 1500 / 150) = 500
        assert compute_withdraw_amount(50, 1500, 150) == 500

    def test_truncates(self):
        # 1 * 10 / 3 = 3.33...
        assert compute_withdraw_amount(1, 10, 3) == 3

    def test_full_redemption_takes_whole_nav(self):
        assert compute_withdraw_amount(300, 1001, 300) == 1001

    def test_zero_supply_is_corrupt(self):
        with pytest.raises(CorruptedLedgerState):
            compute_withdraw_amount(10, 1000, 0)

    def test_rejects_zero_shares(self):
        with pytest.raises(InvalidAmount):
            compute_withdraw_amount(0, 1000, 100)


class TestRoundingFavoursPool:
    """Property-based checks that truncation never leaks value out of the pool."""

    @given(
        st.integers(min_value=1, max_value=10**12),
        st.integers(min_value=1, max_value=10**12),
        st.integers(min_value=1, max_value=10**12),
    )
    @settings(max_examples=200)
    def test_minted_shares_never_exceed_exact_value(self, amount, nav, supply):
        shares = compute_shares_to_mint(amount, nav, supply)
        assert Fraction(shares) <= Fraction(amount * supply, nav)

    @given(
        st.integers(min_value=1, max_value=10**12),
        st.integers(min_value=0, max_value=10**12),
        st.integers(min_value=1, max_value=10**12),
    )
    @settings(max_examples=200)
    def test_payout_never_exceeds_exact_value(self, shares, nav, supply):
        payout = compute_withdraw_amount(shares, nav, supply)
        assert Fraction(payout) <= Fraction(shares * nav, supply)
        assert payout >= 0


class TestSharePrice:
    """Tests for compute_share_price."""

    def test_bootstrap_price(self):
        assert compute_share_price(0, 0) == Fraction(1)

    def test_exact_price(self):
        assert compute_share_price(1000, 300) == Fraction(10, 3)
