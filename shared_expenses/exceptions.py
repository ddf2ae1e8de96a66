"""
Domain exceptions for Shared Expenses.

The settlement engine has a narrow error surface:
- An expense naming someone outside the roster is a caller error.
- A residual balance the matcher could not pair off means the
  zero-sum invariant was broken. That is an internal error and is
  never absorbed into a partial result.

Input validation and import errors live here too so callers can
catch everything from one place.
"""

from decimal import Decimal
from typing import Optional


class SettlementError(Exception):
    """Base exception for settlement engine failures."""
    pass


class UnknownParticipantError(SettlementError):
    """A name that is not on the roster reached the engine."""

    def __init__(self, name: str, roster: tuple[str, ...] = ()):
        self.name = name
        self.roster = roster
        allowed = ", ".join(roster) if roster else "none configured"
        super().__init__(f"'{name}' is not on the roster (allowed: {allowed})")


class SettlementInvariantError(SettlementError):
    """
    The matcher exhausted one side with balances left on the other.

    This only happens if the balances did not sum to zero, which means
    a bug in the balance calculation or runaway rounding.
    """

    def __init__(
        self,
        residual: dict[str, Decimal],
        tolerance: Decimal,
    ):
        self.residual = residual
        self.tolerance = tolerance
        total = sum(residual.values(), Decimal(0))
        super().__init__(
            f"Unmatched residual of {total} left after settlement "
            f"(tolerance {tolerance}): {residual}"
        )


class ExpenseValidationError(ValueError):
    """An expense draft failed validation and cannot reach the engine."""

    def __init__(self, message: str, result: Optional[object] = None):
        self.result = result
        super().__init__(message)


class ImportFormatError(ValueError):
    """Imported expense data is not a valid expense list."""

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        if index is not None:
            message = f"Item {index}: {message}"
        super().__init__(message)
