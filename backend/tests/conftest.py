"""
Shared fixtures: an in-memory SQLite database rebuilt per test, a
TestClient bound to the same session, and a small cast of users, wallets,
payment channels and plots.
"""

import os
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read once at import time, so the environment goes first
os.environ.update({
    "ENV": "test",
    "DATABASE_URL": "sqlite://",
    "REDIS_URL": "redis://localhost:6379/1",  # never contacted while rate limiting is off
    "JWT_SECRET": "test-jwt-secret-min-32-chars-for-testing-only",
    "RATE_LIMIT_ENABLED": "false",
    "METRICS_PUBLIC": "false",
    "METRICS_TOKEN": "test-metrics-token",
    "LOG_LEVEL": "DEBUG",
})

from app import models  # noqa: F401,E402
from app.core.payments.models import PaymentMethod, PaymentMethodType  # noqa: E402
from app.core.properties.models import Property  # noqa: E402
from app.core.security.models import Role  # noqa: E402
from app.core.users.models import User  # noqa: E402
from app.core.wallets.models import Wallet  # noqa: E402
from app.infrastructure.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services import property_service, user_service, wallet_ledger  # noqa: E402
from app.services.payment_helpers import create_payment_method  # noqa: E402
from tests.auth_utils import auth_headers, fund_wallet  # noqa: E402

engine = create_engine(
    "sqlite://",
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)
make_session = sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db_session() -> Session:
    Base.metadata.create_all(bind=engine)
    session = make_session()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session: Session) -> TestClient:
    """API client whose requests share the test's session"""
    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def test_user(db_session: Session) -> User:
    """Customer with an empty wallet"""
    return user_service.create_user(
        db_session,
        name="Asha Verma",
        email="asha@example.com",
        phone="+91 98765 43210",
    )


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return user_service.create_user(
        db_session,
        name="Ravi Admin",
        email="admin@example.com",
        role=Role.ADMIN,
    )


@pytest.fixture
def user_headers(test_user: User) -> dict:
    return auth_headers(test_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers(admin_user)


@pytest.fixture
def wallet(db_session: Session, test_user: User) -> Wallet:
    return wallet_ledger.get_wallet_for_user(db_session, test_user.id)


@pytest.fixture
def funded_wallet(db_session: Session, wallet: Wallet) -> Wallet:
    """Customer wallet holding ₹20,000"""
    return fund_wallet(db_session, wallet, "20000")


@pytest.fixture
def payment_method(db_session: Session) -> PaymentMethod:
    """Free UPI channel usable for deposits and withdrawals"""
    return create_payment_method(
        db_session,
        name="UPI",
        code="upi",
        type=PaymentMethodType.BOTH,
        min_amount=Decimal("100"),
    )


@pytest.fixture
def property_with_plots(db_session: Session) -> Property:
    """Active property with two available plots priced ₹5,000"""
    prop = property_service.create_property(db_session, name="Green Acres", location="Nashik")
    for plot_number in ("A-1", "A-2"):
        property_service.add_plot(db_session, prop.id, plot_number=plot_number, price=Decimal("5000"))
    db_session.refresh(prop)
    return prop
