"""Shared fixtures for the test suite."""

from decimal import Decimal

import pytest

from shared_expenses.config import get_settings
from shared_expenses.models.expense import Expense, Roster


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test sees settings built from its own environment."""
    monkeypatch.delenv("ROSTER_MEMBERS", raising=False)
    monkeypatch.delenv("SETTLEMENT_EPSILON", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def roster() -> Roster:
    return Roster.of("A", "B", "C")


def make_expense(amount, payer, participants, description="Test expense", **kwargs) -> Expense:
    return Expense(
        description=description,
        amount=Decimal(str(amount)),
        payer=payer,
        participants=tuple(participants),
        **kwargs,
    )
