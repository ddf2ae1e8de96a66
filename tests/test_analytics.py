"""Tests for spending summaries and settlement formatting."""

from decimal import Decimal

import pytest

from conftest import make_expense
from shared_expenses.analytics import (
    format_settlement,
    format_settlements,
    summarize_contributions,
)
from shared_expenses.exceptions import UnknownParticipantError
from shared_expenses.models.expense import Transfer


class TestContributions:
    """Tests for summarize_contributions."""

    def test_empty(self, roster):
        summary = summarize_contributions(roster, [])
        assert summary.total_expenses == 0
        assert list(summary.contributions) == ["A", "B", "C"]

    def test_totals_by_payer(self, roster):
        expenses = [
            make_expense(60, "A", ["A", "B"]),
            make_expense(40, "B", ["B", "C"]),
            make_expense(20, "A", ["C"]),
        ]
        summary = summarize_contributions(roster, expenses)

        assert summary.total_expenses == Decimal(120)
        assert summary.contributions == {
            "A": Decimal(80), "B": Decimal(40), "C": Decimal(0),
        }
        assert summary.percentage("B") == pytest.approx(100 / 3)

    def test_unknown_payer(self, roster):
        with pytest.raises(UnknownParticipantError):
            summarize_contributions(roster, [make_expense(5, "Z", ["A"])])


class TestFormatting:
    """Tests for human-readable settlement lines."""

    def test_format_settlement_rounds(self):
        transfer = Transfer(
            from_participant="Youssef",
            to_participant="Ismail",
            amount=Decimal(100) / 3,
        )
        assert format_settlement(transfer) == "Youssef pays Ismail 33.33"

    def test_format_settlement_places(self):
        transfer = Transfer(
            from_participant="B", to_participant="A", amount=Decimal("30"),
        )
        assert format_settlement(transfer, places=0) == "B pays A 30"
        assert format_settlement(transfer) == "B pays A 30.00"

    def test_format_settlements(self):
        transfers = [
            Transfer(from_participant="B", to_participant="A", amount=Decimal(10)),
            Transfer(from_participant="C", to_participant="A", amount=Decimal(20)),
        ]
        assert format_settlements(transfers) == "B pays A 10.00\nC pays A 20.00"

    def test_format_no_settlements(self):
        assert format_settlements([]) == "All settled up. Nobody owes anybody."

    def test_display_places_from_settings(self, monkeypatch):
        monkeypatch.setenv("SETTLEMENT_DISPLAY_PLACES", "1")
        transfer = Transfer(
            from_participant="B", to_participant="A", amount=Decimal("12.25"),
        )
        assert format_settlement(transfer) == "B pays A 12.3"
