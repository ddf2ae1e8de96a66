"""
Settlement Engine

Chains the two phases:

    expenses -> compute_net_balances -> match_transfers -> transfers

DESIGN DECISION: The engine is a pure function of (roster, expenses).
It keeps no cache and no state between calls. Callers that want to
memoize can do so by hashing their own input snapshot.
"""

from decimal import Decimal
from typing import Optional, Sequence

import structlog

from shared_expenses.engine.balances import compute_net_balances
from shared_expenses.engine.matcher import match_transfers, resolve_epsilon
from shared_expenses.models.expense import (
    BalanceSheet,
    Expense,
    Roster,
    SettlementResult,
    Transfer,
)


logger = structlog.get_logger(__name__)


def settle(
    roster: Roster,
    expenses: Sequence[Expense],
    epsilon: Optional[Decimal] = None,
) -> list[Transfer]:
    """
    Compute the transfers that settle all debts for these expenses.

    Returns an empty list when there are no expenses or everyone is
    already even.
    """
    balances = compute_net_balances(roster, expenses)
    return match_transfers(balances, roster=roster, epsilon=epsilon)


class SettlementEngine:
    """
    Settlement engine bound to one roster and tolerance.

    Holds configuration only. Every method recomputes from scratch,
    so one instance can be shared between concurrent callers.
    """

    def __init__(
        self,
        roster: Optional[Roster] = None,
        epsilon: Optional[Decimal] = None,
    ):
        self._roster = roster or Roster.from_settings()
        self._epsilon = resolve_epsilon(epsilon)

    @property
    def roster(self) -> Roster:
        return self._roster

    @property
    def epsilon(self) -> Decimal:
        return self._epsilon

    def balances(self, expenses: Sequence[Expense]) -> BalanceSheet:
        """Net balance per roster member."""
        return BalanceSheet(
            balances=compute_net_balances(self._roster, expenses)
        )

    def transfers(self, expenses: Sequence[Expense]) -> list[Transfer]:
        """Transfers that settle the expenses."""
        return settle(self._roster, expenses, self._epsilon)

    def compute(
        self,
        expenses: Sequence[Expense],
        request_id: int = 0,
    ) -> SettlementResult:
        """
        Compute balances and transfers together.

        Either a complete result is returned or an error is raised.
        """
        sheet = self.balances(expenses)
        transfers = match_transfers(
            sheet.balances,
            roster=self._roster,
            epsilon=self._epsilon,
        )

        logger.debug(
            "settlement_computed",
            request_id=request_id,
            expenses=len(expenses),
            transfers=len(transfers),
        )

        return SettlementResult(
            request_id=request_id,
            expense_count=len(expenses),
            balances=sheet,
            transfers=transfers,
        )
