"""Settlement engine package."""

from shared_expenses.engine.balances import compute_net_balances
from shared_expenses.engine.matcher import match_transfers, resolve_epsilon
from shared_expenses.engine.settlement import SettlementEngine, settle

__all__ = [
    "SettlementEngine",
    "compute_net_balances",
    "match_transfers",
    "resolve_epsilon",
    "settle",
]
