"""
Audit Models for Shared Expenses

Every change to the expense list and every settlement computation
is logged for audit purposes. This provides:
1. Traceability of who changed what
2. Debugging information when a settlement fails
3. A record of discarded (stale) recomputations

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from shared_expenses.models.expense import utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Expense list changes
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSES_CLEARED = "expenses_cleared"
    EXPENSES_IMPORTED = "expenses_imported"
    EXPENSES_EXPORTED = "expenses_exported"

    # Validation
    VALIDATION_FAILED = "validation_failed"
    IMPORT_FAILED = "import_failed"

    # Settlement
    SETTLEMENT_COMPUTED = "settlement_computed"
    SETTLEMENT_DISCARDED = "settlement_discarded"
    SETTLEMENT_FAILED = "settlement_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'settlement')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one import)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(
            expense_id=expense.id,
            payer=expense.payer,
            amount=str(expense.amount),
            participants=list(expense.participants),
            correlation_id=correlation_id,
        )
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        payer: str,
        amount: str,
        participants: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense of {amount} paid by {payer} added",
            details={
                "payer": payer,
                "amount": amount,
                "participants": participants,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def expenses_cleared(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="expense_list",
            correlation_id=correlation_id,
            description=f"All {count} expenses cleared",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def expenses_imported(
        count: int,
        replaced: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_IMPORTED,
            entity_type="expense_list",
            correlation_id=correlation_id,
            description=f"Imported {count} expenses, replacing {replaced}",
            details={"count": count, "replaced": replaced},
            is_user_action=True,
        )

    @staticmethod
    def expenses_exported(
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_EXPORTED,
            entity_type="expense_list",
            correlation_id=correlation_id,
            description=f"Exported {count} expenses",
            details={"count": count},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense rejected with {len(issues)} issue(s)",
            details={"issues": issues},
        )

    @staticmethod
    def import_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense_list",
            correlation_id=correlation_id,
            description="Expense import rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def settlement_computed(
        request_id: int,
        expense_count: int,
        transfer_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPUTED,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=(
                f"Settlement #{request_id}: {transfer_count} transfer(s) "
                f"for {expense_count} expense(s)"
            ),
            details={
                "request_id": request_id,
                "expense_count": expense_count,
                "transfer_count": transfer_count,
            },
        )

    @staticmethod
    def settlement_discarded(
        request_id: int,
        latest_request_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_DISCARDED,
            severity=AuditSeverity.DEBUG,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=(
                f"Settlement #{request_id} discarded, "
                f"superseded by #{latest_request_id}"
            ),
            details={
                "request_id": request_id,
                "latest_request_id": latest_request_id,
            },
        )

    @staticmethod
    def settlement_failed(
        request_id: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_FAILED,
            severity=AuditSeverity.CRITICAL,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=f"Settlement #{request_id} failed",
            details={"request_id": request_id},
            error_code="SETTLEMENT_INVARIANT",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_code=error_type,
            error_message=error_message,
        )
