"""
clock.py - Logical Epoch Clock

A manually advanced clock for funds, simulations and tests. Time only
moves forward.
"""

from __future__ import annotations


class LogicalClock:
    """
    Monotonic integer epoch counter implementing the Clock protocol.

    Example:
        clock = LogicalClock()
        clock.advance_to(30)
        clock.tick()          # epoch 31
    """

    def __init__(self, initial_epoch: int = 0):
        if initial_epoch < 0:
            raise ValueError(f"initial_epoch must be non-negative, got {initial_epoch}")
        self._epoch = initial_epoch

    @property
    def current_epoch(self) -> int:
        return self._epoch

    def advance_to(self, epoch: int) -> None:
        """
        Move the clock to `epoch`.

        Raises:
            ValueError: If epoch is before the current epoch
        """
        if epoch < self._epoch:
            raise ValueError(f"Cannot move time backwards: {epoch} < {self._epoch}")
        self._epoch = epoch

    def tick(self, epochs: int = 1) -> int:
        """Advance by `epochs` and return the new epoch."""
        self.advance_to(self._epoch + epochs)
        return self._epoch

    def __repr__(self) -> str:
        return f"LogicalClock(epoch={self._epoch})"
