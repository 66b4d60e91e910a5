"""QuickBooks Online API client and journal entry wire format."""

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ledgerpost.domain.entities import Direction, ExternalAccount, Journal, JournalLine
from ledgerpost.domain.errors import (
    ProviderConnectionError,
    ProviderError,
    ProviderRejectedError,
    ProviderTimeoutError,
    ValidationError,
)
from ledgerpost.utils.money_parser import cents_to_amount

logger = logging.getLogger(__name__)

POSTING_TYPES = {Direction.DEBIT: "Debit", Direction.CREDIT: "Credit"}


def _wire_line(line: JournalLine, class_id: Optional[str], location_id: Optional[str]) -> dict[str, Any]:
    if not isinstance(line.account, ExternalAccount):
        raise ValidationError(f"Line '{line.memo}' still references unresolved account '{line.account}'")

    detail: dict[str, Any] = {
        "PostingType": POSTING_TYPES[line.direction],
        "AccountRef": {"value": line.account.external_id},
    }
    if class_id:
        detail["ClassRef"] = {"value": class_id}
    if location_id:
        detail["DepartmentRef"] = {"value": location_id}

    return {
        "DetailType": "JournalEntryLineDetail",
        "Amount": cents_to_amount(line.amount_cents),
        "Description": line.memo or line.marketplace or "journal",
        "JournalEntryLineDetail": detail,
    }


def default_private_note(journal: Journal) -> str:
    note = f"Marketplace: {journal.marketplace}"
    if journal.order_ref:
        note = f"{note} Order: {journal.order_ref}"
    return note


def to_journal_entry(
    journal: Journal,
    private_note: Optional[str] = None,
    class_id: Optional[str] = None,
    location_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build the JournalEntry envelope for a journal with resolved accounts.

    Zero-amount lines are dropped.

    Raises:
        ValidationError: If any line still carries a logical account
    """
    return {
        "TxnDate": journal.date,
        "PrivateNote": private_note or default_private_note(journal),
        "Line": [
            _wire_line(line, class_id, location_id)
            for line in journal.lines
            if line.amount_cents > 0
        ],
    }


def request_id_for(org_id: str, entry: dict[str, Any], source_key: Optional[str] = None) -> str:
    """Deterministic request id so a retried post is applied at most once.

    ``source_key`` identifies the stored record behind a per-order journal, so
    two records with identical content still post as separate entries.
    """
    parts: list[Any] = [org_id, entry] if source_key is None else [org_id, source_key, entry]
    canonical = json.dumps(parts, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:36]


@dataclass
class PostedEntry:
    """Outcome of a successful journal entry post."""

    external_id: Optional[str]
    status_code: int
    body: dict[str, Any]


def _fault_message(body: dict[str, Any], default: str) -> str:
    fault = body.get("Fault") if isinstance(body, dict) else None
    if isinstance(fault, dict):
        errors = fault.get("Error") or []
        messages = [
            ": ".join(part for part in (err.get("Message"), err.get("Detail")) if part)
            for err in errors
            if isinstance(err, dict)
        ]
        messages = [m for m in messages if m]
        if messages:
            return "; ".join(messages)
    return default


class QuickBooksClient:
    """
    Client for the QuickBooks Online accounting API.

    Features:
    - Post journal entries
    - Fetch journal entries by id
    - List active accounts
    - Automatic retry with backoff on 429/5xx (read timeouts are not retried)
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        base_url: str,
        access_token: str,
        realm_id: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        minor_version: int = 73,
    ):
        """
        Initialize QuickBooks client.

        Args:
            base_url: API host (e.g., "https://quickbooks.api.intuit.com")
            access_token: OAuth bearer token
            realm_id: Company id
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            backoff_factor: Backoff factor for retries
            minor_version: API minor version sent with every request
        """
        self.base_url = base_url.rstrip("/")
        self.realm_id = realm_id
        self.timeout = timeout
        self.minor_version = minor_version

        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

        # POST is retried only because every post carries a requestid
        retry_strategy = Retry(
            total=max_retries,
            read=False,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    @property
    def company_url(self) -> str:
        return f"{self.base_url}/v3/company/{self.realm_id}"

    def close(self) -> None:
        self.session.close()

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
    ) -> requests.Response:
        """Make an API request with error handling."""
        url = f"{self.company_url}{endpoint}"
        params = {**(params or {}), "minorversion": self.minor_version}

        logger.debug("API Request: %s %s", method, url)
        if json_data:
            logger.debug("Request body: %s", json.dumps(json_data, indent=2))

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error("Timeout for %s: %s", url, e)
            raise ProviderTimeoutError(f"Request to QuickBooks timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            logger.error("Connection error to %s: %s", url, e)
            raise ProviderConnectionError(f"Failed to connect to QuickBooks at {self.base_url}: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error("Request error for %s: %s", url, e)
            raise ProviderError(f"Request failed: {e}") from e

        logger.debug("Response status: %s", response.status_code)

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {"text": response.text}
            message = _fault_message(body, response.reason or "error")
            logger.error("API Error %s: %s", response.status_code, message)
            raise ProviderRejectedError(
                status_code=response.status_code,
                message=message,
                body=body,
                fault=body.get("Fault") if isinstance(body, dict) else None,
            )

        return response

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def post_journal_entry(self, entry: dict[str, Any], request_id: Optional[str] = None) -> PostedEntry:
        """
        Create a journal entry.

        Args:
            entry: JournalEntry envelope from ``to_journal_entry``
            request_id: Idempotency key; the provider ignores repeats

        Returns:
            PostedEntry with the provider-assigned id

        Raises:
            ProviderRejectedError: If the API returns a non-2xx response
            ProviderTimeoutError: If the request exceeded its deadline
            ProviderConnectionError: If the API is unreachable
        """
        params = {"requestid": request_id} if request_id else None
        response = self._request("POST", "/journalentry", params=params, json_data={"JournalEntry": entry})
        body = self._json(response)
        external_id = (body.get("JournalEntry") or {}).get("Id")
        logger.info("Posted journal entry %s dated %s", external_id, entry.get("TxnDate"))
        return PostedEntry(
            external_id=str(external_id) if external_id is not None else None,
            status_code=response.status_code,
            body=body,
        )

    def get_journal_entry(self, entry_id: str) -> Optional[dict[str, Any]]:
        """Fetch a journal entry by id. Returns None if it does not exist."""
        try:
            response = self._request("GET", f"/journalentry/{quote(str(entry_id), safe='')}")
        except ProviderRejectedError as e:
            if e.status_code == 404:
                return None
            raise
        return self._json(response).get("JournalEntry")

    def list_accounts(self) -> list[dict[str, Any]]:
        """List active accounts of the company's chart of accounts."""
        response = self._request("GET", "/query", params={"query": "select * from Account where Active = true"})
        return (self._json(response).get("QueryResponse") or {}).get("Account", [])
