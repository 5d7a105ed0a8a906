"""
fees.py - Fee Accrual Arithmetic and Policy

Management fees accrue linearly on NAV over elapsed epochs:

    fee = floor(NAV * bps * epochs / (BPS_DENOMINATOR * epochs_per_year))

The performance fee has no profit baseline (high-water mark) defined yet,
so it always contributes zero.
"""

from __future__ import annotations

from .core import (
    BPS_DENOMINATOR, EPOCHS_PER_YEAR,
    MAX_MANAGEMENT_FEE_BPS, MAX_PERFORMANCE_FEE_BPS,
    CorruptedLedgerState, InvalidFeeParameter,
)


def compute_epochs_passed(current_epoch: int, last_fee_collection: int) -> int:
    """
    Epochs elapsed since fees were last collected.

    Raises:
        CorruptedLedgerState: if the clock reads earlier than the last collection
    """
    epochs = current_epoch - last_fee_collection
    if epochs < 0:
        raise CorruptedLedgerState(
            f"clock went backwards: epoch {current_epoch} < last fee collection {last_fee_collection}"
        )
    return epochs


def compute_management_fee(
    total_nav: int,
    management_fee_bps: int,
    epochs_passed: int,
    epochs_per_year: int = EPOCHS_PER_YEAR,
) -> int:
    """
    Management fee owed for `epochs_passed` epochs at an annual rate.

    Example:
        compute_management_fee(36500, 100, 365)  # 365 (1% of 36500 for a year)
    """
    if epochs_per_year <= 0:
        raise ValueError(f"epochs_per_year must be positive, got {epochs_per_year}")
    return (total_nav * management_fee_bps * epochs_passed) // (BPS_DENOMINATOR * epochs_per_year)


def compute_performance_fee(total_nav: int, performance_fee_bps: int) -> int:
    # No profit baseline is defined, so nothing accrues.
    return 0


def validate_fee_rates(management_fee_bps: int, performance_fee_bps: int) -> None:
    """
    Check proposed rates against the policy ceilings.

    Raises:
        InvalidFeeParameter: if a rate is not an integer, is negative, or
            exceeds MAX_MANAGEMENT_FEE_BPS / MAX_PERFORMANCE_FEE_BPS
    """
    for name, value, ceiling in (
        ("management_fee_bps", management_fee_bps, MAX_MANAGEMENT_FEE_BPS),
        ("performance_fee_bps", performance_fee_bps, MAX_PERFORMANCE_FEE_BPS),
    ):
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidFeeParameter(f"{name} must be an integer, got {type(value).__name__}")
        if value < 0:
            raise InvalidFeeParameter(f"{name} must be non-negative, got {value}")
        if value > ceiling:
            raise InvalidFeeParameter(f"{name} {value} exceeds ceiling {ceiling}")
