import datetime as dt

import pytest
from jose import jwt

from storefront.core.config import settings
from storefront.core.security import security_manager
from storefront.domain.exceptions import AccountLocked, InvalidCredentials
from storefront.domain.unit_of_work import UnitOfWork
from storefront.services.auth_service import AuthService


@pytest.fixture
def service(db_session):
    return AuthService(UnitOfWork(db_session))


class TestAuthService:
    def test_login_returns_token(self, service, admin_user, admin_credentials):
        _, password = admin_credentials
        token = service.login("ADMIN@example.com", password)
        claims = security_manager.decode_access_token(token.access_token)
        assert claims.user_id == admin_user.id
        assert claims.role == "ADMIN"
        assert token.expires_in == settings.auth.access_token_expires * 60

    def test_wrong_password(self, service, admin_user):
        with pytest.raises(InvalidCredentials):
            service.login(admin_user.email, "wrong")

    def test_unknown_email(self, service):
        with pytest.raises(InvalidCredentials):
            service.login("nobody@example.com", "whatever")

    def test_lockout_after_repeated_failures(self, service, admin_user, admin_credentials, db_session):
        _, password = admin_credentials
        for _ in range(settings.auth.max_failed_logins):
            assert service.authenticate_user(admin_user.email, "wrong") is None

        db_session.refresh(admin_user)
        assert admin_user.locked_until is not None
        with pytest.raises(AccountLocked):
            service.login(admin_user.email, password)

    def test_expired_lock_allows_login(self, service, admin_user, admin_credentials, db_session):
        _, password = admin_credentials
        admin_user.locked_until = dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=1)
        db_session.commit()

        assert service.authenticate_user(admin_user.email, password) is not None
        db_session.refresh(admin_user)
        assert admin_user.locked_until is None
        assert admin_user.failed_login_attempts == 0


def _encode(claims: dict, secret: str = None) -> str:
    return jwt.encode(
        claims, secret or settings.auth.secret_key, algorithm=settings.auth.algorithm
    )


class TestAccessTokens:
    def test_issued_token_round_trips(self):
        token = security_manager.issue_access_token("user-1", "CUSTOMER", dt.timedelta(minutes=5))
        claims = security_manager.decode_access_token(token)
        assert claims.user_id == "user-1"
        assert claims.role == "CUSTOMER"
        assert claims.expires_at > dt.datetime.now(dt.timezone.utc)

    def test_token_without_subject_is_rejected(self):
        expire = dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=5)
        assert security_manager.decode_access_token(_encode({"role": "ADMIN", "exp": expire})) is None

    def test_token_without_role_is_rejected(self):
        expire = dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=5)
        assert security_manager.decode_access_token(_encode({"sub": "user-1", "exp": expire})) is None

    def test_expired_token_is_rejected(self):
        token = security_manager.issue_access_token("user-1", "ADMIN", dt.timedelta(seconds=-30))
        assert security_manager.decode_access_token(token) is None

    def test_foreign_signature_is_rejected(self):
        expire = dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=5)
        token = _encode({"sub": "user-1", "role": "ADMIN", "exp": expire}, secret="someone-else")
        assert security_manager.decode_access_token(token) is None
