"""
Main Orchestrator for Shared Expenses

This module ties the components together and defines the two flows
an interactive front end needs:
1. Expense list (draft → validate → add; delete; clear; import; export)
2. Settlement (expense snapshot → background computation → transfers)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the engine without passing validation
- Settlement results are derived, never stored with the expenses
- Every change is audited

RECOMPUTATION: Every change to the expense list triggers a fresh
settlement. The computation runs off the event loop and the flow reports
PENDING until it finishes. Each request gets an increasing request id;
a result is published only if no newer request was made in the meantime,
otherwise it is discarded (last writer wins, no queueing).
"""

import asyncio
from enum import Enum
from typing import Optional, Sequence
from uuid import UUID

from shared_expenses.analytics import summarize_contributions
from shared_expenses.audit import (
    AuditLogger,
    configure_logging,
    create_correlation_id,
)
from shared_expenses.engine import SettlementEngine
from shared_expenses.exceptions import (
    ExpenseValidationError,
    ImportFormatError,
    SettlementError,
)
from shared_expenses.models.expense import (
    ContributionSummary,
    Expense,
    ExpenseDraft,
    Roster,
    SettlementResult,
    ValidationResult,
)
from shared_expenses.serialization import (
    export_expenses,
    import_expenses,
    newest_first,
)
from shared_expenses.validation import ExpenseValidator


class SettlementState(str, Enum):
    """Where the latest settlement request stands."""
    IDLE = "idle"          # Nothing requested yet
    PENDING = "pending"    # Latest request still computing
    READY = "ready"        # Latest request finished
    FAILED = "failed"      # Latest request hit an internal error


class SettlementFlow:
    """
    Orchestrates background settlement recomputation.

    Flow:
    1. submit() → assign request id, mark PENDING
    2. Compute in a worker thread (the engine is pure and thread-safe)
    3. On completion → publish if still the latest request, else discard
    """

    def __init__(
        self,
        engine: Optional[SettlementEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._engine = engine or SettlementEngine()
        self._audit_logger = audit_logger

        self._latest_request_id = 0
        self._latest: Optional[SettlementResult] = None
        self._state = SettlementState.IDLE
        self._error: Optional[SettlementError] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def engine(self) -> SettlementEngine:
        return self._engine

    @property
    def state(self) -> SettlementState:
        return self._state

    @property
    def latest(self) -> Optional[SettlementResult]:
        """The most recent published result, if any."""
        return self._latest

    @property
    def error(self) -> Optional[SettlementError]:
        return self._error

    @property
    def latest_request_id(self) -> int:
        return self._latest_request_id

    def submit(
        self,
        expenses: Sequence[Expense],
        correlation_id: Optional[UUID] = None,
    ) -> asyncio.Task:
        """
        Start a settlement computation in the background.

        The request id is assigned here, synchronously, so submission
        order decides which result wins. Must be called from within a
        running event loop.

        Returns:
            Task resolving to the SettlementResult, or None if the
            result was superseded before it finished.
        """
        self._latest_request_id += 1
        request_id = self._latest_request_id
        snapshot = tuple(expenses)

        self._state = SettlementState.PENDING
        self._task = asyncio.create_task(
            self._run(request_id, snapshot, correlation_id)
        )
        return self._task

    async def request(
        self,
        expenses: Sequence[Expense],
        correlation_id: Optional[UUID] = None,
    ) -> Optional[SettlementResult]:
        """Submit and wait for the result."""
        return await self.submit(expenses, correlation_id)

    async def wait(self) -> Optional[SettlementResult]:
        """
        Wait for the most recent submission to finish.

        Returns the latest published result.
        """
        if self._task is not None:
            await self._task
        return self._latest

    def _is_stale(self, request_id: int) -> bool:
        return request_id != self._latest_request_id

    async def _run(
        self,
        request_id: int,
        snapshot: tuple[Expense, ...],
        correlation_id: Optional[UUID],
    ) -> Optional[SettlementResult]:
        correlation_id = correlation_id or create_correlation_id()

        try:
            if snapshot:
                result = await asyncio.to_thread(
                    self._engine.compute, snapshot, request_id
                )
            else:
                # Nothing to settle, no need to leave the loop
                result = self._engine.compute(snapshot, request_id)
        except SettlementError as e:
            if self._audit_logger:
                await self._audit_logger.log_settlement_failed(
                    request_id=request_id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            if not self._is_stale(request_id):
                self._state = SettlementState.FAILED
                self._error = e
            raise

        if self._is_stale(request_id):
            if self._audit_logger:
                await self._audit_logger.log_settlement_discarded(
                    request_id=request_id,
                    latest_request_id=self._latest_request_id,
                    correlation_id=correlation_id,
                )
            return None

        self._latest = result
        self._error = None
        self._state = SettlementState.READY

        if self._audit_logger:
            await self._audit_logger.log_settlement_computed(
                request_id=request_id,
                expense_count=result.expense_count,
                transfer_count=len(result.transfers),
                correlation_id=correlation_id,
            )

        return result


class ExpenseFlow:
    """
    Orchestrates changes to the expense list.

    Holds the current list in memory. Every change is validated,
    audited, and (when a SettlementFlow is attached) triggers a
    settlement recomputation.
    """

    def __init__(
        self,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settlement_flow: Optional[SettlementFlow] = None,
    ):
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger
        self._settlement_flow = settlement_flow
        self._expenses: list[Expense] = []

    @property
    def roster(self) -> Roster:
        return self._validator.roster

    def snapshot(self) -> tuple[Expense, ...]:
        """Immutable view of the current expenses, newest first."""
        return tuple(newest_first(self._expenses))

    def _ids(self) -> set[str]:
        return {e.id for e in self._expenses}

    def _recompute(self, correlation_id: Optional[UUID]) -> None:
        if self._settlement_flow is not None:
            self._settlement_flow.submit(self.snapshot(), correlation_id)

    def validate(
        self,
        draft: ExpenseDraft,
    ) -> tuple[ValidationResult, str]:
        """
        Validate a draft without adding it.

        Returns:
            (validation_result, user_message)
        """
        result = self._validator.validate(draft, existing_ids=self._ids())
        return result, self._validator.get_user_friendly_summary(result)

    async def add_expense(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and add an expense.

        Raises:
            ExpenseValidationError: If the draft is invalid. Nothing
                                    is added in that case.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            expense = self._validator.to_expense(draft, existing_ids=self._ids())
        except ExpenseValidationError as e:
            if self._audit_logger and e.result is not None:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in e.result.issues
                    if i.severity == "error"
                ]
                await self._audit_logger.log_validation_failed(
                    issues=issues,
                    expense_id=draft.id,
                    correlation_id=correlation_id,
                )
            raise

        self._expenses.append(expense)

        if self._audit_logger:
            await self._audit_logger.log_expense_added(
                expense_id=expense.id,
                payer=expense.payer,
                amount=str(expense.amount),
                participants=list(expense.participants),
                correlation_id=correlation_id,
            )

        self._recompute(correlation_id)
        return expense

    async def delete_expense(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete an expense by ID.

        Returns:
            True if an expense was deleted, False if none had that ID
        """
        correlation_id = correlation_id or create_correlation_id()

        remaining = [e for e in self._expenses if e.id != expense_id]
        if len(remaining) == len(self._expenses):
            return False
        self._expenses = remaining

        if self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )

        self._recompute(correlation_id)
        return True

    async def clear_all(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Remove every expense.

        Returns:
            How many expenses were removed
        """
        count = len(self._expenses)
        if count == 0:
            return 0

        correlation_id = correlation_id or create_correlation_id()
        self._expenses = []

        if self._audit_logger:
            await self._audit_logger.log_expenses_cleared(
                count=count,
                correlation_id=correlation_id,
            )

        self._recompute(correlation_id)
        return count

    async def import_json(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[Expense]:
        """
        Replace the expense list with the contents of an export file.

        Raises:
            ImportFormatError: If the file is invalid. The current list
                               is left untouched in that case.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            imported = import_expenses(text, self._validator)
        except ImportFormatError as e:
            if self._audit_logger:
                await self._audit_logger.log_import_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        replaced = len(self._expenses)
        self._expenses = list(imported)

        if self._audit_logger:
            await self._audit_logger.log_expenses_imported(
                count=len(imported),
                replaced=replaced,
                correlation_id=correlation_id,
            )

        self._recompute(correlation_id)
        return imported

    async def export_json(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Serialize the current expense list, newest first."""
        text = export_expenses(self._expenses)

        if self._audit_logger:
            await self._audit_logger.log_expenses_exported(
                count=len(self._expenses),
                correlation_id=correlation_id,
            )

        return text

    def summary(self) -> ContributionSummary:
        """Total spent and how much each person fronted."""
        return summarize_contributions(self.roster, self._expenses)


def create_app_components(
    roster: Optional[Roster] = None,
) -> tuple[ExpenseFlow, SettlementFlow, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        roster: Group to use. Defaults to the configured roster.

    Returns:
        (expense_flow, settlement_flow, audit_logger)
    """
    configure_logging()
    roster = roster or Roster.from_settings()
    audit_logger = AuditLogger()

    settlement_flow = SettlementFlow(
        engine=SettlementEngine(roster),
        audit_logger=audit_logger,
    )
    expense_flow = ExpenseFlow(
        validator=ExpenseValidator(roster),
        audit_logger=audit_logger,
        settlement_flow=settlement_flow,
    )

    return expense_flow, settlement_flow, audit_logger
