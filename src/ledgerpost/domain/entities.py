"""Domain model entities for ledgerpost.

These are pure data classes representing business concepts, independent of
database schema. The ORM layer converts to and from these in
``ledgerpost.database.mappers``.
"""

from dataclasses import dataclass, replace
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union


class AccountType(str, Enum):
    """Logical account categories a journal line can post to."""

    REVENUE = "revenue"
    SHIPPING_INCOME = "shipping_income"
    FEES_EXPENSE = "fees_expense"
    REFUNDS_CONTRA = "refunds_contra"
    CHARGEBACKS_EXPENSE = "chargebacks_expense"
    SHIPPING_COST = "shipping_cost"
    SALES_TAX_LIABILITY = "sales_tax_liability"
    CLEARING = "clearing"


ALL_ACCOUNT_TYPES: tuple[AccountType, ...] = tuple(AccountType)


class Direction(str, Enum):
    """Side of the ledger a line posts to."""

    DEBIT = "debit"
    CREDIT = "credit"

    def flipped(self) -> "Direction":
        return Direction.CREDIT if self is Direction.DEBIT else Direction.DEBIT


class RecordKind(str, Enum):
    SALE = "sale"
    EXPENSE = "expense"


class ExportStatus(str, Enum):
    """Terminal states of one submission attempt."""

    PREVIEWED = "previewed"
    COMMITTED = "committed"
    ERROR = "error"


@dataclass(frozen=True)
class LogicalAccount:
    """Account referenced by category, resolved later through a mapping."""

    account_type: AccountType

    def __str__(self) -> str:
        return self.account_type.value


@dataclass(frozen=True)
class ExternalAccount:
    """Account already expressed as a provider identifier."""

    external_id: str

    def __str__(self) -> str:
        return self.external_id


AccountRef = Union[LogicalAccount, ExternalAccount]


def account_ref_from_str(value: str) -> AccountRef:
    """Classify a loose account string once, at journal construction.

    Known account type names become ``LogicalAccount``; anything else is
    taken as an already-resolved provider id.
    """
    try:
        return LogicalAccount(AccountType(value))
    except ValueError:
        return ExternalAccount(str(value))


@dataclass(frozen=True)
class JournalLine:
    """One posting of a journal."""

    account: AccountRef
    amount_cents: int
    direction: Direction
    memo: Optional[str] = None
    marketplace: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.amount_cents, int) or isinstance(self.amount_cents, bool):
            raise TypeError(f"amount_cents must be int, got {type(self.amount_cents).__name__}")
        if self.amount_cents < 0:
            raise ValueError(f"amount_cents must be >= 0, got {self.amount_cents}")
        # Accept plain strings ("debit"/"credit") from loosely typed callers
        object.__setattr__(self, "direction", Direction(self.direction))


@dataclass(frozen=True)
class Journal:
    """Ordered lines for one date/marketplace, or one order."""

    date: str
    marketplace: str
    lines: tuple[JournalLine, ...]
    order_ref: Optional[str] = None
    record_id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def total_debits(self) -> int:
        return sum(l.amount_cents for l in self.lines if l.direction is Direction.DEBIT)

    @property
    def total_credits(self) -> int:
        return sum(l.amount_cents for l in self.lines if l.direction is Direction.CREDIT)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    @property
    def label(self) -> str:
        """Human-readable identifier used in messages and notes."""
        if self.order_ref:
            return f"{self.date}/{self.marketplace}/{self.order_ref}"
        return f"{self.date}/{self.marketplace}"

    def with_lines(self, lines) -> "Journal":
        return replace(self, lines=tuple(lines))


@dataclass(frozen=True)
class TransactionRecord:
    """Imported sale or expense."""

    id: int
    org_id: str
    kind: RecordKind
    occurred_at: int
    amount_cents: int
    category: str
    vendor: Optional[str]
    order_ref: Optional[str]
    source_label: str
    row_hash: str
    imported_at: datetime
    mileage_miles: Optional[Decimal] = None
    vehicle_rate: Optional[Decimal] = None
    sale_price_cents: int = 0
    shipping_charged_cents: int = 0
    shipping_cost_cents: int = 0
    platform_fees_cents: int = 0
    discounts_cents: int = 0
    refunds_cents: int = 0
    chargebacks_cents: int = 0
    tax_collected_cents: int = 0


@dataclass(frozen=True)
class AccountMapping:
    """Org-specific binding from an account type to a provider account id."""

    id: int
    org_id: str
    provider: str
    account_type: AccountType
    external_account_id: str
    active: bool
    updated_at: datetime


@dataclass(frozen=True)
class ProviderCredential:
    """Stored access credential for one org/provider pair."""

    org_id: str
    provider: str
    access_token: str
    realm_id: Optional[str]
    expires_at: datetime
    refresh_token: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class ExportRecord:
    """Provenance of one previewed or committed journal submission."""

    id: int
    org_id: str
    provider: str
    period_start: date
    period_end: date
    status: ExportStatus
    preview: Optional[dict[str, Any]]
    payload: Optional[dict[str, Any]]
    created_at: datetime
    external_id: Optional[str] = None
    http_status: Optional[int] = None
