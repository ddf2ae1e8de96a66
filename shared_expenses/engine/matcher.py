"""
Transfer Matcher

Turns net balances into an ordered list of transfers using a greedy
single pass over debtors and creditors.

ALGORITHM:
1. Partition members into creditors (balance > epsilon) and debtors
   (balance < -epsilon), keeping roster order within each list.
   Balances inside [-epsilon, epsilon] are already settled.
2. Walk one cursor over debtors and one over creditors.
3. At each step the debtor pays the creditor min(owed, due).
4. A cursor advances once its remaining amount drops below epsilon.
   Both can advance in the same step.
5. Stop when either list runs out.

Roster order is the only tie-break, so the output is fully determined
by the balances and the roster.

GUARANTEES:
- No self-transfers
- Every transfer amount is greater than epsilon
- At most |creditors| + |debtors| - 1 transfers
- Applying the transfers leaves every balance within epsilon of zero
"""

from decimal import Decimal
from typing import Mapping, Optional

import structlog

from shared_expenses.config import get_settings
from shared_expenses.exceptions import SettlementInvariantError
from shared_expenses.models.expense import Roster, Transfer


logger = structlog.get_logger(__name__)


class _Party:
    """A creditor or debtor with the amount still to be matched."""

    __slots__ = ("name", "remaining")

    def __init__(self, name: str, remaining: Decimal):
        self.name = name
        self.remaining = remaining


def resolve_epsilon(epsilon: Optional[Decimal] = None) -> Decimal:
    """Use the given tolerance, or the configured one."""
    if epsilon is None:
        return get_settings().settlement.epsilon
    # str() keeps a float like 0.01 from turning into its binary expansion
    return Decimal(str(epsilon))


def _ordered_balances(
    balances: Mapping[str, Decimal],
    roster: Optional[Roster],
) -> list[tuple[str, Decimal]]:
    if roster is None:
        return list(balances.items())

    for name in balances:
        roster.require(name)
    return [(name, balances.get(name, Decimal(0))) for name in roster.members]


def match_transfers(
    balances: Mapping[str, Decimal],
    roster: Optional[Roster] = None,
    epsilon: Optional[Decimal] = None,
) -> list[Transfer]:
    """
    Compute the transfers that settle the given balances.

    Args:
        balances: Net balance per participant (positive = is owed).
        roster: Iteration order. Defaults to the mapping's own order.
        epsilon: Dead-zone tolerance. Defaults to SETTLEMENT_EPSILON.

    Returns:
        Transfers in the order they were matched. Empty if everyone
        is already within epsilon of zero.

    Raises:
        UnknownParticipantError: If a balance belongs to someone
                                 not on the roster.
        SettlementInvariantError: If the balances do not net to zero,
                                  leaving an unmatched residual.
    """
    epsilon = resolve_epsilon(epsilon)
    ordered = _ordered_balances(balances, roster)

    creditors = [
        _Party(name, balance) for name, balance in ordered if balance > epsilon
    ]
    debtors = [
        _Party(name, -balance) for name, balance in ordered if balance < -epsilon
    ]

    transfers: list[Transfer] = []
    debtor_index = 0
    creditor_index = 0

    while debtor_index < len(debtors) and creditor_index < len(creditors):
        debtor = debtors[debtor_index]
        creditor = creditors[creditor_index]
        amount = min(debtor.remaining, creditor.remaining)

        if amount > epsilon:
            transfers.append(Transfer(
                from_participant=debtor.name,
                to_participant=creditor.name,
                amount=amount,
            ))

        debtor.remaining -= amount
        creditor.remaining -= amount

        if debtor.remaining < epsilon:
            debtor_index += 1
        if creditor.remaining < epsilon:
            creditor_index += 1

    _check_residual(
        debtors[debtor_index:] + creditors[creditor_index:],
        epsilon * max(len(ordered), 1),
    )

    logger.debug(
        "transfers_matched",
        creditors=len(creditors),
        debtors=len(debtors),
        transfers=len(transfers),
    )
    return transfers


def _check_residual(unmatched: list[_Party], tolerance: Decimal) -> None:
    """
    Fail loudly if one side ran out while the other still has money due.

    Each advanced cursor may leave up to epsilon behind, and each
    dead-zone balance shifts the totals by up to epsilon, so the
    allowance is epsilon per participant. Anything beyond that means
    the balances were not zero-sum.
    """
    residual = {
        party.name: party.remaining
        for party in unmatched
        if party.remaining > 0
    }
    if sum(residual.values(), Decimal(0)) <= tolerance:
        return

    error = SettlementInvariantError(residual, tolerance)
    logger.error(
        "settlement_invariant_violated",
        residual={name: str(amount) for name, amount in residual.items()},
        tolerance=str(tolerance),
    )
    raise error
