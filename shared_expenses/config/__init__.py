"""Configuration package."""

from shared_expenses.config.settings import (
    AppSettings,
    RosterSettings,
    SettlementSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "RosterSettings",
    "SettlementSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
