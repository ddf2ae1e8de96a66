"""
Two-Stage Expense Validation

The settlement engine assumes every expense has a positive, finite
amount and a non-empty set of participants drawn from the roster.
This module is where those preconditions are enforced, before a
draft ever becomes an Expense.

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Amount is finite and greater than zero
- At least one participant, none repeated

STAGE 2 - SEMANTIC VALIDATION:
- Payer and participants are on the roster
- Unusually large or small amounts
- Duplicate expense IDs

Stage 2 only runs if stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the entry.
"""

from decimal import Decimal
from typing import Collection, Optional

from shared_expenses.config import get_settings
from shared_expenses.exceptions import ExpenseValidationError
from shared_expenses.models.expense import (
    Expense,
    ExpenseDraft,
    Roster,
    ValidationIssue,
    ValidationResult,
    new_expense_id,
    utc_now,
)


MAX_DESCRIPTION_LENGTH = 200


class ExpenseValidator:
    """
    Validates expense drafts through a two-stage pipeline.
    """

    def __init__(self, roster: Optional[Roster] = None):
        """
        Initialize validator.

        Args:
            roster: The roster expenses must be drawn from.
                    Defaults to the configured roster.
        """
        self._roster = roster or Roster.from_settings()
        self._settings = get_settings().app

    @property
    def roster(self) -> Roster:
        return self._roster

    def _validate_schema(
        self,
        draft: ExpenseDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Describe what the money was spent on",
            ))
        elif len(draft.description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=(
                    f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters"
                ),
                severity="error",
            ))

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif not draft.amount.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount must be a finite number, got {draft.amount}",
                severity="error",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the total that was paid",
            ))

        if not draft.payer:
            issues.append(ValidationIssue(
                field="payer",
                issue_type="missing",
                message="Payer is required",
                severity="error",
            ))

        if not draft.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="missing",
                message="At least one participant must share the expense",
                severity="error",
                suggested_fix="Select who shared this expense",
            ))
        elif len(set(draft.participants)) != len(draft.participants):
            issues.append(ValidationIssue(
                field="participants",
                issue_type="duplicate",
                message="The same participant is listed more than once",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        draft: ExpenseDraft,
        existing_ids: Collection[str],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        allowed = ", ".join(self._roster.members)

        if draft.payer not in self._roster:
            issues.append(ValidationIssue(
                field="payer",
                issue_type="unknown_participant",
                message=f"Payer '{draft.payer}' is not in the group",
                severity="error",
                suggested_fix=f"Choose one of: {allowed}",
            ))

        unknown = [name for name in draft.participants if name not in self._roster]
        if unknown:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="unknown_participant",
                message=f"Not in the group: {', '.join(unknown)}",
                severity="error",
                suggested_fix=f"Choose from: {allowed}",
            ))

        if draft.id is not None and draft.id in existing_ids:
            issues.append(ValidationIssue(
                field="id",
                issue_type="duplicate",
                message=f"An expense with id {draft.id} already exists",
                severity="error",
            ))

        # Absurd amount check
        max_amount = self._settings.max_expense_amount
        if draft.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if draft.amount < Decimal("1"):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount}) seems unusually low",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if draft.payer not in draft.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="payer_not_sharing",
                message=f"{draft.payer} paid but does not share this expense",
                severity="info",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        draft: ExpenseDraft,
        existing_ids: Collection[str] = (),
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The expense draft to validate
            existing_ids: IDs already in use, for duplicate detection

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(
                draft, existing_ids
            )
            all_issues.extend(semantic_issues)

        warnings = [
            issue.message for issue in all_issues if issue.severity == "warning"
        ]

        return ValidationResult(
            expense_id=draft.id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def to_expense(
        self,
        draft: ExpenseDraft,
        existing_ids: Collection[str] = (),
    ) -> Expense:
        """
        Validate a draft and convert it to an Expense.

        Raises:
            ExpenseValidationError: If validation finds any error.
                                    The ValidationResult is attached.
        """
        result = self.validate(draft, existing_ids)
        if not result.is_valid:
            errors = [i.message for i in result.issues if i.severity == "error"]
            raise ExpenseValidationError("; ".join(errors), result=result)

        return Expense(
            id=draft.id or new_expense_id(),
            created_at=draft.created_at or utc_now(),
            description=draft.description,
            amount=draft.amount,
            payer=draft.payer,
            participants=tuple(draft.participants),
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ Expense looks good."

        lines = []

        if result.has_errors:
            lines.append("❌ This expense cannot be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
