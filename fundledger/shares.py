"""
shares.py - Share Accounting Arithmetic

Conversions between base-asset amounts and fund shares.

Core equations:
- Share price: P = NAV / S
- Deposit:     shares = floor(amount * S / NAV)    (S == 0: shares = amount)
- Withdrawal:  amount = floor(shares * NAV / S)

Both directions truncate, so rounding always stays in the pool: a
depositor never receives more shares, and a withdrawer never more assets,
than the exact proportional figure.
"""

from __future__ import annotations
from fractions import Fraction

from .core import CorruptedLedgerState, require_positive_int


def compute_shares_to_mint(amount: int, total_nav: int, share_supply: int) -> int:
    """
    Shares issued for a deposit of `amount`, priced before the deposit.

    The first deposit into a fund with no shares outstanding (including one
    whose shares were all redeemed) is priced 1:1.

    Args:
        amount: base asset deposited (positive)
        total_nav: fund NAV before the deposit
        share_supply: outstanding shares before the deposit

    Returns:
        Shares to mint (may be 0 for dust deposits into a high-priced pool)

    Raises:
        InvalidAmount: if amount is not a positive integer
        CorruptedLedgerState: if shares exist against a zero NAV
    """
    require_positive_int("amount", amount)
    if share_supply == 0:
        return amount
    if total_nav <= 0:
        raise CorruptedLedgerState(
            f"share supply is {share_supply} but NAV is {total_nav}"
        )
    return amount * share_supply // total_nav


def compute_withdraw_amount(shares_amount: int, total_nav: int, share_supply: int) -> int:
    """
    Base asset paid out for redeeming `shares_amount`.

    Raises:
        InvalidAmount: if shares_amount is not a positive integer
        CorruptedLedgerState: if no shares are outstanding
    """
    require_positive_int("shares_amount", shares_amount)
    if share_supply <= 0:
        raise CorruptedLedgerState(
            f"cannot redeem {shares_amount} shares: share supply is {share_supply}"
        )
    return shares_amount * total_nav // share_supply


def compute_share_price(total_nav: int, share_supply: int) -> Fraction:
    """Exact NAV per share. With no shares outstanding the bootstrap price of 1 applies."""
    if share_supply == 0:
        return Fraction(1)
    return Fraction(total_nav, share_supply)
