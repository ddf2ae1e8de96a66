"""
Tests for Shared Expenses models

Test strategy:
1. Unit tests for individual components (models, validators, engine)
2. Integration tests for flows (in-memory, no external services)
3. The engine is pure, so tests compare exact values
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from shared_expenses.exceptions import UnknownParticipantError
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
    round_amount,
)
from shared_expenses.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestRoster:
    """Tests for the Roster model."""

    def test_roster_keeps_order(self):
        """Test that roster order is preserved."""
        roster = Roster.of("Youssef", "Ismail", "Ahmed")
        assert roster.members == ("Youssef", "Ismail", "Ahmed")
        assert roster.index("Ahmed") == 2
        assert len(roster) == 3

    def test_roster_strips_whitespace(self):
        """Test that whitespace is stripped from names."""
        roster = Roster.of("  Ismail ", "Ahmed")
        assert "Ismail" in roster

    def test_roster_rejects_duplicates(self):
        """Test that the same name cannot appear twice."""
        with pytest.raises(ValueError):
            Roster.of("Ismail", "Ismail")

    def test_roster_rejects_empty(self):
        """Test that a roster needs at least one member."""
        with pytest.raises(ValueError):
            Roster.of()

    def test_roster_require(self):
        """Test that require raises for strangers."""
        roster = Roster.of("A", "B")
        assert roster.require("A") == "A"
        with pytest.raises(UnknownParticipantError) as exc_info:
            roster.require("Z")
        assert exc_info.value.name == "Z"
        assert exc_info.value.roster == ("A", "B")

    def test_roster_from_settings(self, monkeypatch):
        """Test that the configured roster is used."""
        monkeypatch.setenv("ROSTER_MEMBERS", "Sara,Omar")
        assert Roster.from_settings().members == ("Sara", "Omar")

    def test_default_roster(self):
        """Test the default three-person group."""
        assert Roster.from_settings().members == ("Ismail", "Youssef", "Ahmed")


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_expense_creation(self):
        """Test Expense model creation."""
        expense = Expense(
            description="Groceries",
            amount=Decimal("90.00"),
            payer="Ismail",
            participants=("Ismail", "Youssef", "Ahmed"),
        )
        assert expense.amount == Decimal("90.00")
        assert expense.share == Decimal("30")
        assert len(expense.id) == 32
        assert isinstance(expense.created_at, datetime)

    def test_expense_ids_are_unique(self):
        """Test that generated ids are not reused."""
        ids = {Expense(amount=Decimal(1), payer="A").id for _ in range(50)}
        assert len(ids) == 50

    def test_expense_keeps_imported_id(self):
        """Test that any opaque id is accepted."""
        expense = Expense(id="1714000000000", amount=Decimal(5), payer="A")
        assert expense.id == "1714000000000"

    def test_expense_is_frozen(self):
        """Test that expenses cannot be changed after creation."""
        expense = Expense(amount=Decimal(10), payer="A", participants=("B",))
        with pytest.raises(ValidationError):
            expense.amount = Decimal(20)

    def test_expense_rejects_duplicate_participants(self):
        """Test that a participant cannot share twice."""
        with pytest.raises(ValueError):
            Expense(amount=Decimal(10), payer="A", participants=("B", "B"))

    def test_expense_share_without_participants(self):
        """Test that an unshared expense has no share."""
        expense = Expense(amount=Decimal(10), payer="A")
        assert expense.share is None

    def test_expense_json_amount_is_number(self):
        """Test that JSON output carries the amount as a number."""
        expense = Expense(amount=Decimal("12.5"), payer="A", participants=("A",))
        assert '"amount":12.5' in expense.model_dump_json()

    def test_expense_timestamps_are_aware_utc(self):
        """Test that naive and offset timestamps are normalized to UTC."""
        naive = Expense(
            amount=Decimal(1), payer="A", created_at=datetime(2024, 5, 1, 10),
        )
        offset = Expense(
            amount=Decimal(1),
            payer="A",
            created_at=datetime(2024, 5, 1, 12, tzinfo=timezone(timedelta(hours=2))),
        )
        assert naive.created_at == offset.created_at
        assert naive.created_at.tzinfo == timezone.utc
        assert offset.created_at.tzinfo == timezone.utc
        assert Expense(amount=Decimal(1), payer="A").created_at.tzinfo is not None

    def test_draft_timestamp_is_aware_utc(self):
        """Test that a naive draft timestamp is read as UTC."""
        draft = ExpenseDraft(created_at="2024-05-01T10:00:00")
        assert draft.created_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
        assert ExpenseDraft().created_at is None

    def test_draft_accepts_partial_input(self):
        """Test that drafts hold incomplete data for the validator."""
        draft = ExpenseDraft(description="  Taxi ")
        assert draft.description == "Taxi"
        assert draft.amount is None
        assert draft.participants == []

    def test_draft_accepts_non_finite_amount(self):
        """Test that NaN reaches the validator instead of failing parsing."""
        draft = ExpenseDraft(amount="NaN")
        assert not draft.amount.is_finite()


class TestSettlementModels:
    """Tests for transfer and settlement models."""

    def test_transfer_creation(self):
        """Test Transfer model creation."""
        transfer = Transfer(
            from_participant="B",
            to_participant="A",
            amount=Decimal("33.333333"),
        )
        assert transfer.rounded() == Decimal("33.33")

    def test_transfer_rejects_self_transfer(self):
        """Test that nobody pays themselves."""
        with pytest.raises(ValueError):
            Transfer(from_participant="A", to_participant="A", amount=Decimal(1))

    def test_transfer_rejects_non_positive_amount(self):
        """Test that zero transfers are rejected."""
        with pytest.raises(ValueError):
            Transfer(from_participant="A", to_participant="B", amount=Decimal(0))

    def test_round_amount_half_up(self):
        """Test that display rounding is half-up."""
        assert round_amount(Decimal("0.125")) == Decimal("0.13")
        assert round_amount(Decimal("2.5"), 0) == Decimal("3")

    def test_balance_sheet(self):
        """Test BalanceSheet totals and settled check."""
        sheet = BalanceSheet(balances={
            "A": Decimal("0.004"), "B": Decimal("-0.004"),
        })
        assert sheet.total == 0
        assert sheet.is_settled()
        assert not BalanceSheet(balances={"A": Decimal(1)}).is_settled()

    def test_settlement_result(self):
        """Test SettlementResult settled property."""
        result = SettlementResult(
            request_id=1,
            expense_count=0,
            balances=BalanceSheet(),
        )
        assert result.is_settled

    def test_contribution_percentage(self):
        """Test percentage of total fronted."""
        summary = ContributionSummary(
            total_expenses=Decimal(200),
            contributions={"A": Decimal(150), "B": Decimal(50)},
        )
        assert summary.percentage("A") == 75.0
        assert summary.percentage("C") == 0.0
        assert ContributionSummary().percentage("A") == 0.0


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Test expense added",
        )
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPUTED,
            description="Settlement computed",
            details={"request_id": 3, "transfer_count": 2},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "settlement_computed"
        assert log_dict["details"]["transfer_count"] == 2
        assert log_dict["correlation_id"] is None

    def test_audit_event_builder_expense_added(self):
        """Test AuditEventBuilder.expense_added."""
        correlation_id = uuid4()

        event = AuditEventBuilder.expense_added(
            expense_id="abc123",
            payer="Ismail",
            amount="90.00",
            participants=["Ismail", "Ahmed"],
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.entity_id == "abc123"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_settlement_failed(self):
        """Test AuditEventBuilder.settlement_failed."""
        event = AuditEventBuilder.settlement_failed(
            request_id=4,
            error_message="residual left",
        )

        assert event.event_type == AuditEventType.SETTLEMENT_FAILED
        assert event.severity == AuditSeverity.CRITICAL
        assert event.error_code == "SETTLEMENT_INVARIANT"
        assert event.is_user_action is False

    def test_audit_event_builder_settlement_discarded(self):
        """Test that stale results are logged at debug level."""
        event = AuditEventBuilder.settlement_discarded(
            request_id=1,
            latest_request_id=2,
        )
        assert event.severity == AuditSeverity.DEBUG
        assert event.details == {"request_id": 1, "latest_request_id": 2}


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            expense_id="e1",
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message="Amount seems unusually low",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_validation_issue_severity_pattern(self):
        """Test that unknown severities are rejected."""
        with pytest.raises(ValueError):
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="x",
                severity="fatal",
            )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
