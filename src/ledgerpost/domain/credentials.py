"""Provider credential domain service."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.account_mapping import PROVIDERS
from ledgerpost.domain.entities import ProviderCredential
from ledgerpost.domain.errors import NotConnectedError, ValidationError

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CredentialService:
    """Service for storing and checking provider access credentials."""

    def __init__(self, db: Database):
        self.db = db

    def save(
        self,
        org_id: str,
        provider: str,
        access_token: str,
        expires_at: datetime,
        realm_id: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> None:
        """Store the credential for an org/provider pair, replacing any previous one.

        Raises:
            ValidationError: If the provider is unknown or the token is empty
        """
        provider = provider.strip().lower()
        if provider not in PROVIDERS:
            raise ValidationError(f"Unknown provider '{provider}'. Valid providers: {', '.join(PROVIDERS)}")
        if not (access_token or "").strip():
            raise ValidationError("Access token is required")

        # The store keeps naive UTC timestamps
        expires_at = _as_utc(expires_at).replace(tzinfo=None)
        self.db.save_credential(
            org_id=org_id,
            provider=provider,
            access_token=access_token.strip(),
            expires_at=expires_at,
            realm_id=realm_id,
            refresh_token=refresh_token,
        )
        logger.info("Stored %s credential for org %s (expires %s)", provider, org_id, expires_at.isoformat())

    def resolve(self, org_id: str, provider: str, now: Optional[datetime] = None) -> ProviderCredential:
        """Return a usable credential.

        Raises:
            NotConnectedError: If no credential is stored or it has expired
        """
        credential = self.db.get_credential(org_id, provider)
        if credential is None:
            raise NotConnectedError(org_id, provider)
        now = _as_utc(now or datetime.now(timezone.utc))
        if credential.is_expired(now):
            raise NotConnectedError(org_id, provider, reason="connected but the token has expired")
        return credential

    def status(self, org_id: str, provider: str, now: Optional[datetime] = None) -> dict[str, Any]:
        """Connection status for display."""
        credential = self.db.get_credential(org_id, provider)
        if credential is None:
            return {"connected": False, "expires_at": None, "expires_in_sec": None, "realm_id": None}
        now = _as_utc(now or datetime.now(timezone.utc))
        remaining = int((credential.expires_at - now).total_seconds())
        return {
            "connected": remaining > 0,
            "expires_at": credential.expires_at,
            "expires_in_sec": max(remaining, 0),
            "realm_id": credential.realm_id,
        }
