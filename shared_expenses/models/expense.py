"""
Core Data Models for Shared Expenses

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for import/export and logging

DESIGN DECISION: Amounts are Decimal, never float.
Balances are accumulated exactly and converted to Decimal once, so the
zero-sum check never has to absorb binary rounding error.

DESIGN DECISION: Expense records are frozen. The settlement engine only
ever reads them, and a frozen snapshot makes that checkable.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from shared_expenses.config import get_settings
from shared_expenses.exceptions import UnknownParticipantError


def round_amount(value: Decimal, places: int = 2) -> Decimal:
    """Round an amount for display (half-up, like a till receipt)."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def new_expense_id() -> str:
    """Generate a fresh expense identifier."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are always aware UTC. Naive input is taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# ROSTER - Fixed, closed set of participants
# =============================================================================

class Roster(BaseModel):
    """
    The fixed group of people who share expenses.

    DESIGN DECISION: The roster is a closed, ordered set loaded from
    configuration, not an open user-management system. Roster order is
    the tie-break order of the settlement engine.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    members: tuple[str, ...] = Field(
        ...,
        min_length=1,
        description="Participant names in roster order"
    )

    @field_validator('members')
    @classmethod
    def validate_members(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Names must be non-blank and unique."""
        if any(not name for name in v):
            raise ValueError("Roster names cannot be blank")
        if len(set(v)) != len(v):
            raise ValueError(f"Roster contains duplicate names: {list(v)}")
        return v

    @classmethod
    def of(cls, *names: str) -> "Roster":
        return cls(members=names)

    @classmethod
    def from_settings(cls) -> "Roster":
        """Build the roster configured in ROSTER_MEMBERS."""
        return cls(members=tuple(get_settings().roster.members_list))

    def __contains__(self, name: object) -> bool:
        return name in self.members

    def __len__(self) -> int:
        return len(self.members)

    def index(self, name: str) -> int:
        return self.members.index(self.require(name))

    def require(self, name: str) -> str:
        """Return the name if it is on the roster, else raise."""
        if name not in self.members:
            raise UnknownParticipantError(name, self.members)
        return name


# =============================================================================
# EXPENSE RECORDS
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    An expense as typed in by a user, imported from a file,
    or proposed by a text parser.

    CRITICAL: This is UNVALIDATED data. Every field may be missing or
    wrong. It must pass ExpenseValidator before it becomes an Expense.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = Field(
        default=None,
        allow_inf_nan=True,
        description="Total cost; checked for sign and finiteness by the validator"
    )
    payer: Optional[str] = None
    participants: list[str] = Field(default_factory=list)

    @field_validator('created_at')
    @classmethod
    def validate_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class Expense(BaseModel):
    """
    One shared cost: who fronted it, and who shares it.

    The model intentionally does not enforce amount > 0 or a non-empty
    participant set. Those are preconditions enforced by ExpenseValidator
    before records reach the engine, and the engine skips records that
    violate them anyway.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    # Identity
    id: str = Field(
        default_factory=new_expense_id,
        min_length=1,
        description="Opaque caller-assigned token, never reused"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the expense was logged (recency ordering only)"
    )

    description: str = Field(
        default="",
        max_length=200,
        description="Free-form text, no meaning to the engine"
    )
    amount: Decimal = Field(
        ...,
        description="Total cost"
    )
    payer: str = Field(
        ...,
        min_length=1,
        description="Who fronted the money"
    )
    participants: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Who shares the cost (may or may not include the payer)"
    )

    @field_validator('created_at')
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        """Recency ordering compares timestamps, so they must all be aware."""
        return as_utc(v)

    @field_validator('participants')
    @classmethod
    def validate_participants(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Participants are a set: the same person cannot share twice."""
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate participants: {list(v)}")
        return v

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> float:
        """Exported files carry amounts as plain JSON numbers."""
        return float(v)

    @property
    def share(self) -> Optional[Decimal]:
        """Each participant's share, or None when nobody shares it."""
        if not self.participants:
            return None
        return self.amount / len(self.participants)


# =============================================================================
# SETTLEMENT MODELS
# =============================================================================

class Transfer(BaseModel):
    """
    A settlement instruction: from_participant pays to_participant.

    Derived, never stored. Recomputed every time the expense list changes.
    """
    model_config = ConfigDict(frozen=True)

    from_participant: str
    to_participant: str
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount to pay"
    )

    @model_validator(mode='after')
    def validate_direction(self) -> 'Transfer':
        """Nobody pays themselves."""
        if self.from_participant == self.to_participant:
            raise ValueError(
                f"Self-transfer is not allowed: {self.from_participant}"
            )
        return self

    def rounded(self, places: int = 2) -> Decimal:
        """Amount rounded for display."""
        return round_amount(self.amount, places)


class BalanceSheet(BaseModel):
    """
    Net balance per participant, in roster order.

    Positive = is owed money. Negative = owes money.
    """

    balances: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        """Sum of all balances. Zero (within tolerance) by construction."""
        return sum(self.balances.values(), Decimal(0))

    def is_settled(self, epsilon: Decimal = Decimal("0.01")) -> bool:
        """True when every balance is inside the dead zone."""
        return all(abs(b) <= epsilon for b in self.balances.values())


class SettlementResult(BaseModel):
    """
    Output of one settlement computation.

    request_id ties a result back to the request that produced it, so
    callers can discard results that are already stale.
    """

    request_id: int = Field(ge=0)
    computed_at: datetime = Field(
        default_factory=utc_now
    )
    expense_count: int = Field(ge=0)
    balances: BalanceSheet
    transfers: list[Transfer] = Field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        return not self.transfers


class ContributionSummary(BaseModel):
    """How much each participant has fronted, out of the total spent."""

    total_expenses: Decimal = Decimal(0)
    contributions: dict[str, Decimal] = Field(default_factory=dict)

    def percentage(self, name: str) -> float:
        """Share of the total fronted by name, 0-100."""
        if self.total_expenses <= 0:
            return 0.0
        paid = self.contributions.get(name, Decimal(0))
        return float(paid / self.total_expenses * 100)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_participant')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (presence, sign, finiteness)
    Stage 2: Semantic validation (roster membership, sanity checks)
    """

    expense_id: Optional[str] = Field(
        default=None,
        description="ID of the draft being validated, if it has one"
    )
    validated_at: datetime = Field(
        default_factory=utc_now
    )

    # Stage results
    schema_valid: bool
    semantic_valid: bool

    # Overall result
    is_valid: bool

    # Issues found
    issues: list[ValidationIssue] = Field(default_factory=list)

    # Warnings don't block but should be shown
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
