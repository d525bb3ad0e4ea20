import os

# Settings are read at import time, so the environment must be in place first.
os.environ.setdefault("APP_DATABASE__DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_AUTH__SECRET_KEY", "test-secret-key")
os.environ["APP_CACHE__ENABLED"] = "false"
os.environ["APP_RATE_LIMIT__ENABLED"] = "false"

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.constants import ProductStatus, Role
from storefront.core.security import security_manager
from storefront.db.base import Base
from storefront.db.session import get_db
from storefront.main import app
from storefront.models.category_model import Category
from storefront.models.product_model import Inventory, Product
from storefront.models.user_model import User


ADMIN_PASSWORD = "Admin-Passw0rd"
CUSTOMER_PASSWORD = "Customer-Passw0rd"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """
    A FastAPI TestClient whose requests run against the per-test SQLite
    database instead of the configured one.
    """

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db_session, email: str, password: str, role: Role) -> User:
    user = User(
        email=email,
        name=email.split("@")[0],
        role=role.value,
        password_hash=security_manager.hash_password(password),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "admin@example.com", ADMIN_PASSWORD, Role.ADMIN)


@pytest.fixture
def customer_user(db_session):
    return _make_user(db_session, "customer@example.com", CUSTOMER_PASSWORD, Role.CUSTOMER)


def _auth_headers(user: User) -> dict:
    token = security_manager.issue_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return _auth_headers(admin_user)


@pytest.fixture
def customer_headers(customer_user):
    return _auth_headers(customer_user)


@pytest.fixture
def make_category(db_session):
    def _make(name: str, parent: Category | None = None, sort_order: int = 0, slug: str | None = None) -> Category:
        category = Category(
            name=name,
            slug=slug or f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
            sort_order=sort_order,
            parent_id=parent.id if parent else None,
        )
        db_session.add(category)
        db_session.commit()
        return category

    return _make


@pytest.fixture
def make_product(db_session):
    def _make(
        name: str,
        category: Category | None = None,
        status: ProductStatus = ProductStatus.ACTIVE,
        price: str = "19.99",
        featured: bool = False,
        quantity: int = 50,
        deleted: bool = False,
    ) -> Product:
        suffix = uuid.uuid4().hex[:8]
        product = Product(
            sku=f"SKU-{suffix}",
            name=name,
            slug=f"{name.lower().replace(' ', '-')}-{suffix}",
            price=Decimal(price),
            status=status.value,
            featured=featured,
            category_id=category.id if category else None,
        )
        product.inventory = Inventory(quantity=quantity, low_stock_threshold=10)
        if deleted:
            product.deleted_at = datetime.now(timezone.utc)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def admin_credentials(admin_user):
    return admin_user.email, ADMIN_PASSWORD
