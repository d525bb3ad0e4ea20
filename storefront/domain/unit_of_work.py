from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from sqlalchemy.orm import Session

from storefront.domain.repositories.category_repository import CategoryRepository
from storefront.domain.repositories.product_image_repository import ProductImageRepository
from storefront.domain.repositories.product_repository import ProductRepository
from storefront.domain.repositories.user_repository import UserRepository


class IUnitOfWork(ABC):
    categories: CategoryRepository
    products: ProductRepository
    product_images: ProductImageRepository
    users: UserRepository

    @abstractmethod
    def __enter__(self): ...
    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb): ...
    @abstractmethod
    def commit(self): ...
    @abstractmethod
    def rollback(self): ...


class UnitOfWork(AbstractContextManager, IUnitOfWork):
    """Coordinates repositories & transaction boundaries."""

    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryRepository(db)
        self.products = ProductRepository(db)
        self.product_images = ProductImageRepository(db)
        self.users = UserRepository(db)

    # ---- context‑manager API -----------------------------------------
    def __enter__(self):
        return self

    def __exit__(self, exc_type, *_):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    # ---- public -------------------------------------------------------
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
