"""Tests for the audit logger."""

import asyncio
import logging
import sys
from uuid import uuid4

import pytest

from shared_expenses.audit import (
    AuditLogger,
    configure_logging,
    create_correlation_id,
)
from shared_expenses.models.audit import (
    AuditEvent,
    AuditEventType,
    AuditSeverity,
)
from shared_expenses.orchestrator import create_app_components


class TestAuditLogger:
    """Tests for the in-memory audit trail."""

    def test_log_appends_to_history(self):
        audit_logger = AuditLogger()
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            description="Expense deleted",
        )

        asyncio.run(audit_logger.log(event))

        assert audit_logger.history == [event]

    def test_history_is_bounded(self):
        """Test that the oldest events are dropped first."""
        audit_logger = AuditLogger(history_limit=2)

        async def scenario():
            for count in range(3):
                await audit_logger.log_expenses_exported(count=count)

        asyncio.run(scenario())

        assert [e.details["count"] for e in audit_logger.history] == [1, 2]

    def test_history_limit_from_settings(self, monkeypatch):
        monkeypatch.setenv("AUDIT_HISTORY_LIMIT", "1")

        audit_logger = AuditLogger()

        async def scenario():
            await audit_logger.log_expense_deleted(expense_id="a")
            await audit_logger.log_expense_deleted(expense_id="b")

        asyncio.run(scenario())

        assert [e.entity_id for e in audit_logger.history] == ["b"]

    def test_events_for_correlation_id(self):
        audit_logger = AuditLogger()
        correlation_id = create_correlation_id()

        async def scenario():
            await audit_logger.log_expense_added(
                expense_id="e1",
                payer="A",
                amount="10",
                participants=["A", "B"],
                correlation_id=correlation_id,
            )
            await audit_logger.log_settlement_computed(
                request_id=1,
                expense_count=1,
                transfer_count=1,
                correlation_id=correlation_id,
            )
            await audit_logger.log_expenses_cleared(count=1, correlation_id=uuid4())

        asyncio.run(scenario())

        related = audit_logger.events_for(correlation_id)
        assert [e.event_type for e in related] == [
            AuditEventType.EXPENSE_ADDED,
            AuditEventType.SETTLEMENT_COMPUTED,
        ]

    def test_error_events(self):
        audit_logger = AuditLogger()

        async def scenario():
            await audit_logger.log_settlement_failed(
                request_id=3, error_message="residual"
            )
            await audit_logger.log_error(
                error_type="Unexpected", error_message="boom"
            )
            await audit_logger.log_import_failed(error_message="Item 0: bad")
            await audit_logger.log_validation_failed(
                issues=[{"field": "amount"}], expense_id="e1"
            )

        asyncio.run(scenario())

        severities = [e.severity for e in audit_logger.history]
        assert severities == [
            AuditSeverity.CRITICAL,
            AuditSeverity.ERROR,
            AuditSeverity.WARNING,
            AuditSeverity.WARNING,
        ]

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()


class TestConfigureLogging:
    """Tests for the package log handler."""

    @pytest.fixture
    def package_logger(self):
        package_logger = logging.getLogger("shared_expenses")
        saved_handlers = list(package_logger.handlers)
        saved_level = package_logger.level
        package_logger.handlers = []
        yield package_logger
        package_logger.handlers = saved_handlers
        package_logger.setLevel(saved_level)

    def test_adds_one_stream_handler(self, package_logger):
        """Test that INFO audit events have a handler to reach."""
        configure_logging()
        configure_logging()

        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0], logging.StreamHandler)
        assert package_logger.isEnabledFor(logging.INFO)

    def test_level_from_settings(self, package_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        configure_logging()
        assert not package_logger.isEnabledFor(logging.INFO)

    def test_app_components_configure_logging(self, package_logger, roster):
        create_app_components(roster)
        assert package_logger.handlers

    def test_info_event_is_emitted(self, package_logger, capsys):
        """Test that an INFO audit event is printed as JSON."""
        configure_logging()
        package_logger.handlers[0].stream = sys.stderr
        audit_logger = AuditLogger()

        asyncio.run(audit_logger.log_expenses_exported(count=3))

        assert '"event_type": "expenses_exported"' in capsys.readouterr().err
