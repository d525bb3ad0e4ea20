from typing import Iterable

from fastapi import Depends
from sqlalchemy.orm import Session

from storefront.core.auth import auth_manager, oauth2_scheme
from storefront.core.constants import Role
from storefront.db.session import get_db
from storefront.domain.exceptions import InsufficientPermissions
from storefront.domain.unit_of_work import UnitOfWork
from storefront.models.user_model import User


__all__ = ["get_db", "oauth2_scheme", "get_uow", "require_roles", "require_admin"]


def get_uow(db: Session = Depends(get_db)) -> UnitOfWork:
    """Get a Unit of Work instance for dependency injection."""
    return UnitOfWork(db)


def require_roles(allowed_roles: Iterable[Role]):
    """
    Dependency factory: only lets through users whose role is in ``allowed_roles``.
    Returns the current user if the check passes, otherwise raises 403.
    """
    allowed = {role.value for role in allowed_roles}

    async def _dependency(
        current_user: User = Depends(auth_manager.get_current_user),
    ) -> User:
        if current_user.role not in allowed:
            raise InsufficientPermissions("admin catalog access")
        return current_user

    return _dependency


require_admin = require_roles([Role.ADMIN])
