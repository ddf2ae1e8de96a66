"""
Data Models Package

This package contains all Pydantic models used in the Shared Expenses system.
All data flowing through the system must conform to these schemas.
"""

from shared_expenses.models.expense import (
    BalanceSheet,
    ContributionSummary,
    Expense,
    ExpenseDraft,
    Roster,
    SettlementResult,
    Transfer,
    ValidationIssue,
    ValidationResult,
    as_utc,
    new_expense_id,
    round_amount,
    utc_now,
)
from shared_expenses.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "BalanceSheet",
    "ContributionSummary",
    "Expense",
    "ExpenseDraft",
    "Roster",
    "SettlementResult",
    "Transfer",
    "ValidationIssue",
    "ValidationResult",
    "as_utc",
    "new_expense_id",
    "round_amount",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
