"""Expense validation package."""

from shared_expenses.validation.validator import ExpenseValidator

__all__ = ["ExpenseValidator"]
