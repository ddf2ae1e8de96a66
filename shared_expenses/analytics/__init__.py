"""Spending summaries package."""

from shared_expenses.analytics.summary import (
    format_settlement,
    format_settlements,
    summarize_contributions,
)

__all__ = ["format_settlement", "format_settlements", "summarize_contributions"]
