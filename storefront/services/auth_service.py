import datetime as dt
from typing import Optional

from storefront.core.config import settings
from storefront.core.security import security_manager
from storefront.domain.exceptions import AccountLocked, InvalidCredentials
from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.user_model import User
from storefront.schemas.auth_schema import Token
from storefront.utils.logger import get_logger


logger = get_logger("auth_service")


def _as_utc(value: dt.datetime) -> dt.datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)


class AuthService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Check credentials and maintain the failed-login lockout counter.

        Returns ``None`` on a bad email or password. A locked account raises
        ``AccountLocked`` until ``locked_until`` has passed.
        """
        now = dt.datetime.now(dt.timezone.utc)
        with self.uow:
            user = self.uow.users.get_by_email(email)
            if user is None or user.deleted_at is not None:
                return None

            if user.locked_until is not None and _as_utc(user.locked_until) > now:
                raise AccountLocked()

            if not user.password_hash or not security_manager.verify_password(
                password, user.password_hash
            ):
                user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
                if user.failed_login_attempts >= settings.auth.max_failed_logins:
                    user.locked_until = now + dt.timedelta(minutes=settings.auth.lockout_minutes)
                    user.failed_login_attempts = 0
                    logger.warning(f"Account locked after repeated failures: user={user.id}")
                return None

            user.failed_login_attempts = 0
            user.locked_until = None
            return user

    def login(self, email: str, password: str) -> Token:
        user = self.authenticate_user(email, password)
        if user is None:
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentials()

        lifetime = security_manager.token_lifetime()
        access_token = security_manager.issue_access_token(user.id, user.role, lifetime)
        logger.info(f"Login succeeded: user={user.id}")
        return Token(
            access_token=access_token,
            token_type="bearer",
            expires_in=int(lifetime.total_seconds()),
        )
