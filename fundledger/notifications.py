"""
notifications.py - Best-Effort Record Delivery

Committed fund records are fanned out to sinks after the state change.
A failing sink never undoes or fails the operation that produced the record.
"""

from __future__ import annotations
from typing import Iterable, List, Type

from .core import FundRecord, NotificationSink


class RecordingSink:
    """
    NotificationSink that keeps every record it receives.

    Example:
        sink = RecordingSink()
        fund = create_fund("manager", sinks=[sink])
        ...
        sink.of_type(DepositRecord)
    """

    def __init__(self):
        self.records: List[FundRecord] = []

    def publish(self, record: FundRecord) -> None:
        self.records.append(record)

    def of_type(self, record_type: Type) -> List[FundRecord]:
        return [r for r in self.records if isinstance(r, record_type)]

    def clear(self) -> None:
        self.records.clear()


def publish(sinks: Iterable[NotificationSink], record: FundRecord, verbose: bool = False) -> int:
    """
    Deliver `record` to every sink.

    Returns:
        Number of sinks that failed
    """
    failures = 0
    for sink in sinks:
        try:
            sink.publish(record)
        except Exception as e:
            failures += 1
            if verbose:
                print(f"⚠️  NOTIFICATION FAILED: {type(sink).__name__}: {e!r}")
    return failures
