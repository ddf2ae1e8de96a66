"""
Spending Summaries

Read-only views over the expense list for display: how much was spent in
total, how much each person fronted, and settlement lines in plain words.
Nothing here affects balances or transfers.
"""

from decimal import Decimal
from typing import Iterable, Optional

from shared_expenses.config import get_settings
from shared_expenses.models.expense import (
    ContributionSummary,
    Expense,
    Roster,
    Transfer,
    round_amount,
)


def summarize_contributions(
    roster: Roster,
    expenses: Iterable[Expense],
) -> ContributionSummary:
    """
    Total spent and the amount each roster member paid, in roster order.

    Members who paid nothing still appear with 0.
    """
    contributions = {name: Decimal(0) for name in roster.members}
    total = Decimal(0)

    for expense in expenses:
        total += expense.amount
        roster.require(expense.payer)
        contributions[expense.payer] += expense.amount

    return ContributionSummary(total_expenses=total, contributions=contributions)


def format_settlement(transfer: Transfer, places: Optional[int] = None) -> str:
    """
    One settlement line, e.g. 'Youssef pays Ismail 30.00'.

    Amounts are rounded to SETTLEMENT_DISPLAY_PLACES unless places is given.
    """
    if places is None:
        places = get_settings().settlement.display_places
    amount = round_amount(transfer.amount, places)
    return f"{transfer.from_participant} pays {transfer.to_participant} {amount}"


def format_settlements(
    transfers: Iterable[Transfer],
    places: Optional[int] = None,
) -> str:
    lines = [format_settlement(t, places) for t in transfers]
    if not lines:
        return "All settled up. Nobody owes anybody."
    return "\n".join(lines)
