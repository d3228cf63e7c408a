# tests/test_credentials.py

from datetime import timedelta

from app.auth.credentials import CredentialService
from app.core.clock import utcnow
from app.core.security import hash_reset_token


def test_issue_stores_only_the_digest(db_session, employee, settings) -> None:
    service = CredentialService(db_session, settings)

    token = service.issue_reset_token(employee)

    db_session.refresh(employee)
    assert employee.reset_password_token == hash_reset_token(token)
    assert employee.reset_password_token != token
    assert employee.reset_password_expire is not None


def test_issued_token_resolves_to_its_owner(db_session, employee, other_employee, settings) -> None:
    service = CredentialService(db_session, settings)
    token = service.issue_reset_token(employee)
    service.issue_reset_token(other_employee)

    assert service.consume_reset_token(token).id == employee.id


def test_lookup_does_not_clear_the_token(db_session, employee, settings) -> None:
    service = CredentialService(db_session, settings)
    token = service.issue_reset_token(employee)

    assert service.consume_reset_token(token) is not None
    assert service.consume_reset_token(token) is not None


def test_token_expires_after_ten_minutes(db_session, employee, settings) -> None:
    service = CredentialService(db_session, settings)

    stale = service.issue_reset_token(employee, now=utcnow() - timedelta(minutes=10, seconds=1))
    assert service.consume_reset_token(stale) is None

    fresh = service.issue_reset_token(employee, now=utcnow() - timedelta(minutes=9, seconds=30))
    assert service.consume_reset_token(fresh).id == employee.id


def test_reissuing_replaces_the_previous_token(db_session, employee, settings) -> None:
    service = CredentialService(db_session, settings)

    first = service.issue_reset_token(employee)
    second = service.issue_reset_token(employee)

    assert service.consume_reset_token(first) is None
    assert service.consume_reset_token(second).id == employee.id


def test_unknown_or_empty_token_resolves_to_nobody(db_session, employee, settings) -> None:
    service = CredentialService(db_session, settings)
    service.issue_reset_token(employee)

    assert service.consume_reset_token("0" * 64) is None
    assert service.consume_reset_token("") is None


def test_cleared_token_no_longer_resolves(db_session, employee, settings) -> None:
    service = CredentialService(db_session, settings)
    token = service.issue_reset_token(employee)

    service.clear_reset_token(employee)

    assert service.consume_reset_token(token) is None
    assert employee.reset_password_token is None
    assert employee.reset_password_expire is None


def test_password_hashing_helpers_round_trip(db_session, settings) -> None:
    service = CredentialService(db_session, settings)
    hashed = service.hash_password("hunter22")

    assert service.verify_password("hunter22", hashed)
    assert not service.verify_password("hunter23", hashed)
