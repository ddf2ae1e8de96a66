"""
Audit Logger

DESIGN DECISION: Every change to the expense list is logged, and so is
every settlement computation, including the ones thrown away because
a newer request overtook them. This provides:
1. Traceability
2. Debugging capability
3. A history the user can look back through

The audit logger:
- Is async so flows can await it without blocking
- Keeps a bounded, append-only trail in memory
- Supports correlation IDs to trace related events
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from shared_expenses.config import get_settings
from shared_expenses.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Give the package logger a stream handler and level.

    structlog renders each event to a JSON string, so the handler only
    prints the message. Calling this more than once adds no extra handler.
    """
    package_logger = logging.getLogger("shared_expenses")
    package_logger.setLevel(level or get_settings().app.log_level)

    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)

    return package_logger


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory trail (for the UI and for tests)
    """

    def __init__(self, history_limit: Optional[int] = None):
        """
        Initialize audit logger.

        Args:
            history_limit: How many events to keep. Oldest are dropped
                           first. Defaults to AUDIT_HISTORY_LIMIT.
        """
        settings = get_settings().app
        logging.getLogger("shared_expenses").setLevel(settings.log_level)

        limit = history_limit or settings.audit_history_limit
        self._history: deque[AuditEvent] = deque(maxlen=limit)
        self._logger = structlog.get_logger(__name__)

    @property
    def history(self) -> list[AuditEvent]:
        """Events in the order they were logged."""
        return list(self._history)

    def events_for(self, correlation_id: UUID) -> list[AuditEvent]:
        """All retained events sharing a correlation ID."""
        return [e for e in self._history if e.correlation_id == correlation_id]

    async def log(self, event: AuditEvent) -> None:
        """
        Log an audit event locally and append it to the trail.
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)

    async def log_expense_added(
        self,
        expense_id: str,
        payer: str,
        amount: str,
        participants: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new expense."""
        await self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            payer=payer,
            amount=amount,
            participants=participants,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_expenses_cleared(
        self,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expenses_cleared(
            count=count,
            correlation_id=correlation_id,
        ))

    async def log_expenses_imported(
        self,
        count: int,
        replaced: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expenses_imported(
            count=count,
            replaced=replaced,
            correlation_id=correlation_id,
        ))

    async def log_expenses_exported(
        self,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expenses_exported(
            count=count,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        issues: list[dict],
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected expense draft."""
        await self.log(AuditEventBuilder.validation_failed(
            issues=issues,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_import_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.import_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_settlement_computed(
        self,
        request_id: int,
        expense_count: int,
        transfer_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_computed(
            request_id=request_id,
            expense_count=expense_count,
            transfer_count=transfer_count,
            correlation_id=correlation_id,
        ))

    async def log_settlement_discarded(
        self,
        request_id: int,
        latest_request_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a stale result that was superseded before it finished."""
        await self.log(AuditEventBuilder.settlement_discarded(
            request_id=request_id,
            latest_request_id=latest_request_id,
            correlation_id=correlation_id,
        ))

    async def log_settlement_failed(
        self,
        request_id: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_failed(
            request_id=request_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., an import).
    Pass it through all subsequent operations.
    """
    return uuid4()
