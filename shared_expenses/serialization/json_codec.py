"""
JSON Import / Export

The expense list can be saved to and restored from a JSON file: an array
of objects with `id`, `description`, `amount`, `payer` and `participants`
(plus `created_at` when we wrote the file ourselves).

DESIGN DECISION: Import is all-or-nothing. An import replaces the whole
expense list, so a file with one bad record is rejected outright rather
than half-loaded. Every record goes through ExpenseValidator exactly
like a hand-entered expense.
"""

from datetime import date, timedelta
from typing import Any, Iterable

from pydantic import TypeAdapter, ValidationError

from shared_expenses.exceptions import ExpenseValidationError, ImportFormatError
from shared_expenses.models.expense import Expense, ExpenseDraft, utc_now
from shared_expenses.validation import ExpenseValidator


REQUIRED_FIELDS = ("id", "description", "amount", "payer", "participants")

_raw_records = TypeAdapter(list[dict[str, Any]])
_expense_list = TypeAdapter(list[Expense])


def newest_first(expenses: Iterable[Expense]) -> list[Expense]:
    """Most recently logged expenses first."""
    return sorted(expenses, key=lambda e: e.created_at, reverse=True)


def export_expenses(expenses: Iterable[Expense]) -> str:
    """
    Serialize expenses to pretty-printed JSON, newest first.

    Non-ASCII names are written as-is.
    """
    return _expense_list.dump_json(newest_first(expenses), indent=2).decode("utf-8")


def export_filename(today: date) -> str:
    """Suggested file name for an export made on the given day."""
    return f"expenses-data-{today.isoformat()}.json"


def import_expenses(text: str, validator: ExpenseValidator) -> list[Expense]:
    """
    Parse and validate an exported expense list.

    Args:
        text: JSON text. Must be an array; an empty array is valid.
        validator: Validator bound to the roster the expenses must use.

    Returns:
        The validated expenses, newest first.

    Raises:
        ImportFormatError: If the text is not a JSON array of expense
                           objects, or any record fails validation.
                           Nothing is returned in that case.
    """
    try:
        records = _raw_records.validate_json(text)
    except ValidationError as e:
        raise ImportFormatError(
            "File is not a JSON array of expense objects"
        ) from e

    expenses: list[Expense] = []
    seen_ids: set[str] = set()
    imported_at = utc_now()

    for index, record in enumerate(records):
        missing = [name for name in REQUIRED_FIELDS if name not in record]
        if missing:
            raise ImportFormatError(
                f"missing field(s): {', '.join(missing)}", index=index
            )

        try:
            draft = ExpenseDraft.model_validate(record)
        except ValidationError as e:
            raise ImportFormatError(
                f"malformed record ({e.error_count()} error(s))", index=index
            ) from e

        # Files are written newest first; undated records keep that order
        if draft.created_at is None:
            draft = draft.model_copy(
                update={"created_at": imported_at - timedelta(microseconds=index)}
            )

        try:
            expense = validator.to_expense(draft, existing_ids=seen_ids)
        except ExpenseValidationError as e:
            raise ImportFormatError(str(e), index=index) from e

        seen_ids.add(expense.id)
        expenses.append(expense)

    return newest_first(expenses)
