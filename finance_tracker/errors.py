"""Exception types raised by the analytics engine."""

from __future__ import annotations


class FinanceTrackerError(Exception):
    """Base class for finance tracker errors."""


class InvalidFrequency(FinanceTrackerError, ValueError):
    """Raised for an unrecognized recurrence frequency."""

    def __init__(self, frequency: object):
        self.frequency = frequency
        super().__init__(f"Unsupported recurrence frequency '{frequency}'.")


class InvalidAmount(FinanceTrackerError, ValueError):
    """Raised when a negative or non-finite amount reaches a calculation."""

    def __init__(self, amount: object, record_id: str | None = None):
        self.amount = amount
        self.record_id = record_id
        target = f" on record '{record_id}'" if record_id else ''
        super().__init__(f"Invalid amount {amount!r}{target}.")
