"""
Balance Calculator

Reduces a list of expense records to one net balance per roster member.

For each expense the payer is credited the full amount and every
participant is debited an equal share. If the payer is also a
participant their net effect is amount - share, i.e. they still owe
their own share.

DESIGN DECISION: Shares are accumulated as exact fractions and only
converted to Decimal at the end. Fraction addition is associative, so
the result does not depend on the order of the expenses, and the exact
balances sum to exactly zero.
"""

from decimal import Decimal
from fractions import Fraction
from typing import Iterable

import structlog

from shared_expenses.models.expense import Expense, Roster


logger = structlog.get_logger(__name__)


def _to_decimal(value: Fraction) -> Decimal:
    return Decimal(value.numerator) / Decimal(value.denominator)


def _is_chargeable(expense: Expense) -> bool:
    """
    Records that would corrupt balances are treated as no-ops.

    Input validation rejects them before they get here; this is the
    engine's own guard.
    """
    if not expense.participants:
        logger.debug(
            "expense_skipped",
            expense_id=str(expense.id),
            reason="no_participants",
        )
        return False
    if not expense.amount.is_finite() or expense.amount <= 0:
        logger.debug(
            "expense_skipped",
            expense_id=str(expense.id),
            reason="non_positive_amount",
            amount=str(expense.amount),
        )
        return False
    return True


def compute_net_balances(
    roster: Roster,
    expenses: Iterable[Expense],
) -> dict[str, Decimal]:
    """
    Compute the net balance of every roster member.

    Args:
        roster: The fixed group. Every member appears in the result,
                in roster order, even with no activity.
        expenses: Expense records. Not mutated.

    Returns:
        {name: balance}. Positive = is owed money, negative = owes money.

    Raises:
        UnknownParticipantError: If a payer or participant is not on
                                 the roster.
    """
    exact = {name: Fraction(0) for name in roster.members}

    for expense in expenses:
        if not _is_chargeable(expense):
            continue

        # Check every name before touching any balance
        payer = roster.require(expense.payer)
        participants = [roster.require(name) for name in expense.participants]

        amount = Fraction(expense.amount)
        share = amount / len(participants)

        exact[payer] += amount
        for name in participants:
            exact[name] -= share

    return {name: _to_decimal(balance) for name, balance in exact.items()}
