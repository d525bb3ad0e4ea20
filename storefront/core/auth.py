from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from storefront.core.security import security_manager
from storefront.db.session import get_db
from storefront.domain.repositories.user_repository import UserRepository
from storefront.models.user_model import User


# Token URL is served by the auth router.
oauth2_scheme: OAuth2PasswordBearer = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/token"
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    claims = security_manager.decode_access_token(token)
    if claims is None:
        raise credentials_exception

    user: User | None = UserRepository(db).get_active(claims.user_id)
    if user is None:
        raise credentials_exception
    return user


class AuthManager:
    @staticmethod
    async def get_current_user(
        token: Annotated[str, Depends(oauth2_scheme)],
        db: Session = Depends(get_db),
    ) -> User:
        return await get_current_user(token, db)


auth_manager = AuthManager()
