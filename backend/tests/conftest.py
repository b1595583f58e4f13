from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from smartspend.database import Base, get_db, make_engine
from smartspend.deps import get_now
from smartspend.main import app
from smartspend.models import Budget, Category, Subscription, Transaction

# Friday 10 April 2026; April has 30 days
NOW = datetime(2026, 4, 10, 12, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def db_session():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    # no context manager: the startup hook would create tables on the real engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    resp = client.post("/api/auth/register", json={
        "name": "Test User",
        "email": "Test@Example.com",
        "password": "secret123",
    })
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def category_ids(client, auth_headers):
    resp = client.get("/api/categories/", headers=auth_headers)
    return {c["name"]: c["id"] for c in resp.json()}


# In-memory records for engine tests. Column defaults only apply on flush,
# so every field the engine reads is set explicitly.

def txn(amount, date, type="expense", category_id=1, description="item", id=None):
    return Transaction(
        id=id, type=type, amount=amount, category_id=category_id,
        description=description, date=date, tags=[],
    )


def budget(category_id, amount, period="monthly", alert_threshold=80, is_active=True, id=1):
    return Budget(
        id=id, category_id=category_id, amount=amount, period=period,
        alert_threshold=alert_threshold, is_active=is_active,
    )


def subscription(amount, frequency="monthly", billing_day=1, is_active=True, name="Sub", id=None,
                 next_billing_date=None):
    return Subscription(
        id=id, name=name, amount=amount, frequency=frequency, billing_day=billing_day,
        is_active=is_active, next_billing_date=next_billing_date,
    )


def category(id, name, icon="📁", color="#6c5ce7"):
    return Category(id=id, name=name, icon=icon, color=color, type="expense", is_default=False)


def categories_map(*names):
    return {i: category(i, name) for i, name in enumerate(names, start=1)}


@pytest.fixture
def make():
    return SimpleNamespace(
        txn=txn,
        budget=budget,
        subscription=subscription,
        category=category,
        categories=categories_map,
    )
