"""Tests for provider credentials."""

from datetime import datetime, timedelta, timezone, UTC

import pytest

from ledgerpost.domain.errors import NotConnectedError, ValidationError

from conftest import ORG, REALM


def test_resolve_returns_stored_credential(credential_service, connected_org):
    credential = credential_service.resolve(ORG, "quickbooks")

    assert credential.access_token == "test-token"
    assert credential.realm_id == REALM
    assert credential.expires_at.tzinfo is not None


def test_resolve_missing(credential_service):
    with pytest.raises(NotConnectedError) as excinfo:
        credential_service.resolve(ORG, "quickbooks")
    assert excinfo.value.org_id == ORG
    assert "not connected" in str(excinfo.value)


def test_resolve_expired(credential_service, connected_org):
    later = datetime.now(UTC) + timedelta(hours=2)
    with pytest.raises(NotConnectedError, match="expired"):
        credential_service.resolve(ORG, "quickbooks", now=later)


def test_save_normalizes_offsets_to_utc(credential_service):
    plus_two = timezone(timedelta(hours=2))
    credential_service.save(ORG, "quickbooks", "t", datetime(2030, 1, 1, 12, 0, tzinfo=plus_two))

    credential = credential_service.resolve(ORG, "quickbooks", now=datetime(2030, 1, 1, 9, 59, tzinfo=UTC))
    assert credential.expires_at == datetime(2030, 1, 1, 10, 0, tzinfo=UTC)


def test_save_replaces_previous(credential_service, connected_org):
    credential_service.save(ORG, "quickbooks", "new-token", datetime.now(UTC) + timedelta(days=1), realm_id="77")

    credential = credential_service.resolve(ORG, "quickbooks")
    assert (credential.access_token, credential.realm_id) == ("new-token", "77")


def test_save_validation(credential_service):
    with pytest.raises(ValidationError):
        credential_service.save(ORG, "sage", "t", datetime.now(UTC))
    with pytest.raises(ValidationError):
        credential_service.save(ORG, "quickbooks", " ", datetime.now(UTC))


def test_status(credential_service, connected_org):
    status = credential_service.status(ORG, "quickbooks")
    assert status["connected"] is True
    assert 3500 < status["expires_in_sec"] <= 3600
    assert status["realm_id"] == REALM

    assert credential_service.status("other", "quickbooks")["connected"] is False
