"""
Shared Expenses - Source Package

A shared-expense tracker: a small fixed group logs who paid what for whom,
and the settlement engine computes the transfers that settle every debt.

DESIGN PRINCIPLES:
1. The settlement engine is a pure function of (roster, expenses)
2. Fail early, fail visibly
3. No silent corrections
4. Every change to the expense list is auditable
5. Derived state (balances, transfers) is never stored, only recomputed
"""

__version__ = "1.0.0"
__author__ = "Shared Expenses Team"
