"""Expense list import/export package."""

from shared_expenses.serialization.json_codec import (
    REQUIRED_FIELDS,
    export_expenses,
    export_filename,
    import_expenses,
    newest_first,
)

__all__ = [
    "REQUIRED_FIELDS",
    "export_expenses",
    "export_filename",
    "import_expenses",
    "newest_first",
]
