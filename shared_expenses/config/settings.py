"""
Configuration Management for Shared Expenses

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The roster is fixed at configuration time, so it lives here too
and is validated once at startup.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ROSTER = "Ismail,Youssef,Ahmed"


class RosterSettings(BaseSettings):
    """The fixed group of people who share expenses."""

    model_config = SettingsConfigDict(
        env_prefix="ROSTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    members: str = Field(
        default=DEFAULT_ROSTER,
        description="Comma-separated participant names, in display order"
    )

    @field_validator('members')
    @classmethod
    def validate_members(cls, v: str) -> str:
        """Reject empty rosters, blank names and duplicates."""
        names = [name.strip() for name in v.split(",")]
        if not names or any(not name for name in names):
            raise ValueError("Roster members must be non-empty names")
        if len(set(names)) != len(names):
            raise ValueError(f"Roster contains duplicate names: {v}")
        return v

    @property
    def members_list(self) -> list[str]:
        """Get roster members as an ordered list."""
        return [name.strip() for name in self.members.split(",")]


class SettlementSettings(BaseSettings):
    """Settlement engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SETTLEMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Balances and transfers within this tolerance are treated as zero
    epsilon: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Dead-zone tolerance for balances and transfer amounts"
    )
    display_places: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Decimal places used when rounding amounts for display"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local structured logs"
    )

    # Validation thresholds
    max_expense_amount: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Maximum reasonable expense amount (for sanity checking)"
    )

    # Audit trail
    audit_history_limit: int = Field(
        default=500,
        ge=1,
        description="How many audit events to keep in memory"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def roster(self) -> RosterSettings:
        return RosterSettings()

    @property
    def settlement(self) -> SettlementSettings:
        return SettlementSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("roster", "settlement", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
