"""Account mapping domain service."""

import logging
from dataclasses import replace
from typing import Any, Iterable, Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.entities import (
    ALL_ACCOUNT_TYPES,
    AccountMapping,
    AccountType,
    ExternalAccount,
    Journal,
    LogicalAccount,
)
from ledgerpost.domain.errors import MissingMappingError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

QUICKBOOKS = "quickbooks"
XERO = "xero"
PROVIDERS = (QUICKBOOKS, XERO)


def parse_account_type(value: str) -> AccountType:
    """Parse an account type name, raising a validation error listing valid names."""
    try:
        return AccountType(value.strip().lower())
    except ValueError:
        valid = ", ".join(t.value for t in ALL_ACCOUNT_TYPES)
        raise ValidationError(f"Unknown account type '{value}'. Valid types: {valid}")


def required_account_types(journals: Iterable[Journal]) -> list[AccountType]:
    """Logical account types referenced by a batch of journals, in vocabulary order."""
    used = {
        line.account.account_type
        for journal in journals
        for line in journal.lines
        if isinstance(line.account, LogicalAccount)
    }
    return [t for t in ALL_ACCOUNT_TYPES if t in used]


def resolve_account_ids(journal: Journal, mapping: dict[AccountType, str]) -> Journal:
    """Return a copy of the journal with logical accounts replaced by provider ids.

    Lines that already carry an ``ExternalAccount`` pass through unchanged.

    Raises:
        MissingMappingError: If a logical account has no entry in ``mapping``
    """
    missing = [
        line.account.account_type.value
        for line in journal.lines
        if isinstance(line.account, LogicalAccount) and line.account.account_type not in mapping
    ]
    if missing:
        raise MissingMappingError(list(dict.fromkeys(missing)))

    lines = []
    for line in journal.lines:
        if isinstance(line.account, LogicalAccount):
            external = ExternalAccount(mapping[line.account.account_type])
            lines.append(replace(line, account=external))
        else:
            lines.append(line)
    return journal.with_lines(lines)


class AccountMappingService:
    """Service for managing and resolving account mappings."""

    def __init__(self, db: Database):
        """Initialize account mapping service.

        Args:
            db: Database instance
        """
        self.db = db

    @staticmethod
    def _check_provider(provider: str) -> str:
        provider = provider.strip().lower()
        if provider not in PROVIDERS:
            raise ValidationError(f"Unknown provider '{provider}'. Valid providers: {', '.join(PROVIDERS)}")
        return provider

    def set_mapping(
        self, org_id: str, provider: str, account_type: str | AccountType, external_account_id: str
    ) -> int:
        """Bind an account type to a provider account id, replacing any previous binding.

        Returns:
            Mapping ID

        Raises:
            ValidationError: If provider, account type or id is invalid
        """
        provider = self._check_provider(provider)
        if not isinstance(account_type, AccountType):
            account_type = parse_account_type(account_type)
        external_account_id = (external_account_id or "").strip()
        if not external_account_id:
            raise ValidationError("External account id is required")

        mapping_id = self.db.upsert_account_mapping(
            org_id=org_id,
            provider=provider,
            account_type=account_type.value,
            external_account_id=external_account_id,
        )
        logger.info("Mapped %s/%s %s -> %s", org_id, provider, account_type.value, external_account_id)
        return mapping_id

    def remove_mapping(self, org_id: str, provider: str, account_type: str | AccountType) -> None:
        """Deactivate the mapping for an account type.

        Raises:
            NotFoundError: If there is no active mapping
        """
        provider = self._check_provider(provider)
        if not isinstance(account_type, AccountType):
            account_type = parse_account_type(account_type)
        if not self.db.deactivate_account_mapping(org_id, provider, account_type.value):
            raise NotFoundError(f"No active {provider} mapping for '{account_type.value}'")

    def list_mappings(self, org_id: str, provider: str) -> list[AccountMapping]:
        """List active mappings for an org/provider pair."""
        return self.db.list_account_mappings(org_id, self._check_provider(provider))

    def resolve_mappings(
        self,
        org_id: str,
        provider: str,
        required_keys: Optional[Iterable[str | AccountType]] = None,
    ) -> dict[AccountType, str]:
        """Load active mappings and verify every required key is present.

        Mappings are read from the store on every call.

        Args:
            org_id: Organization ID
            provider: Provider name
            required_keys: Account types that must be mapped (default: all)

        Returns:
            Dict of account type to external account id

        Raises:
            MissingMappingError: Naming exactly the missing account types
        """
        provider = self._check_provider(provider)
        required = ALL_ACCOUNT_TYPES if required_keys is None else [
            k if isinstance(k, AccountType) else parse_account_type(k) for k in required_keys
        ]

        mapping = {m.account_type: m.external_account_id for m in self.db.list_account_mappings(org_id, provider)}

        missing = [t.value for t in ALL_ACCOUNT_TYPES if t in set(required) and t not in mapping]
        if missing:
            logger.warning("Org %s is missing %s mappings: %s", org_id, provider, ", ".join(missing))
            raise MissingMappingError(missing, provider=provider)
        return mapping


# QuickBooks account types that suit each bucket
RECOMMENDED_QBO_TYPES: dict[AccountType, tuple[str, ...]] = {
    AccountType.REVENUE: ("Income", "Other Income"),
    AccountType.SHIPPING_INCOME: ("Income", "Other Income"),
    AccountType.FEES_EXPENSE: ("Expense", "Other Expense"),
    AccountType.REFUNDS_CONTRA: ("Income", "Other Income", "Expense"),
    AccountType.CHARGEBACKS_EXPENSE: ("Expense", "Other Expense"),
    AccountType.SHIPPING_COST: ("Expense", "Cost of Goods Sold", "Other Expense"),
    AccountType.SALES_TAX_LIABILITY: ("Other Current Liability", "Long Term Liability"),
    AccountType.CLEARING: ("Bank", "Other Current Asset"),
}


def audit_account_mappings(
    mapping: dict[AccountType, str], accounts: Iterable[dict[str, Any]]
) -> list[str]:
    """Compare mapped ids against a provider's active chart of accounts.

    Returns one warning per mapped id that is not an active account or whose
    account type does not suit the bucket, in vocabulary order.
    """
    chart = {str(account.get("Id")): account for account in accounts}
    warnings = []
    for account_type in ALL_ACCOUNT_TYPES:
        external_id = mapping.get(account_type)
        if external_id is None:
            continue
        account = chart.get(external_id)
        if account is None:
            warnings.append(f"{account_type.value} -> {external_id}: not an active account")
            continue
        kind = account.get("AccountType")
        recommended = RECOMMENDED_QBO_TYPES[account_type]
        if kind not in recommended:
            warnings.append(
                f"{account_type.value} -> {external_id} ({account.get('Name')}): "
                f"account type {kind} is not one of {', '.join(recommended)}"
            )
    return warnings
