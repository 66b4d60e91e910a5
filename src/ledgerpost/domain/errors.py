"""Shared domain error messages and error types."""

from typing import Iterable, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidDateError(ValidationError):
    """A date value matched none of the accepted formats."""


class UnbalancedJournalError(ValidationError):
    """Journal debits and credits do not net to zero."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class MissingMappingError(DomainError):
    """One or more account types have no mapping for an org/provider pair.

    ``missing_keys`` lists exactly the unmapped account types so callers can
    prompt for configuration instead of showing a generic failure.
    """

    def __init__(self, missing_keys: Iterable[str], provider: Optional[str] = None):
        self.missing_keys = list(missing_keys)
        self.provider = provider
        super().__init__(missing_mappings(self.missing_keys, provider))


class NotConnectedError(DomainError):
    """No usable provider credential for the organization."""

    def __init__(self, org_id: str, provider: str, reason: str = "not connected"):
        self.org_id = org_id
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} is {reason} for org '{org_id}'")


class ProviderError(Exception):
    """Base exception for failures talking to an external ledger provider."""


class ProviderRejectedError(ProviderError):
    """Provider answered with a non-2xx response."""

    def __init__(
        self,
        status_code: int,
        message: str,
        body: Optional[dict] = None,
        fault: Optional[dict] = None,
    ):
        self.status_code = status_code
        self.message = message
        self.body = body or {}
        self.fault = fault
        super().__init__(f"Provider rejected request ({status_code}): {message}")


class ProviderTimeoutError(ProviderError):
    """Provider call exceeded its deadline."""


class ProviderConnectionError(ProviderError):
    """Provider could not be reached."""


def missing_mappings(missing_keys: list[str], provider: Optional[str] = None) -> str:
    """Return message for unmapped account types."""
    where = f" for {provider}" if provider else ""
    return f"Missing account mappings{where}: {', '.join(missing_keys)}"


def duplicate_row(row_num: int, row_hash: str) -> str:
    """Return skip reason for a row that was already imported."""
    return f"Row {row_num}: duplicate row skipped ({row_hash[:12]})"


def unbalanced_journal(label: str, debits: int, credits: int) -> str:
    """Return message for a journal whose sides differ."""
    return f"Journal {label} does not balance: debits={debits}, credits={credits}"
