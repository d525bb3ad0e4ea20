from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.core.security import SecurityManager
from storefront.domain.repositories.base_sqlalchemy import SQLAlchemyRepository
from storefront.models.user_model import User


class UserRepository(SQLAlchemyRepository[User, str]):
    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return self.db.scalar(stmt)

    def get_active(self, user_id: str) -> Optional[User]:
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        return self.db.scalar(stmt)

    def create(self, *, email: str, password: str, name: Optional[str] = None, role: str) -> User:
        user = User(
            email=email.strip().lower(),
            name=name,
            role=role,
            password_hash=SecurityManager.hash_password(password),
        )
        self.db.add(user)
        self.db.flush()
        return user
