"""
Shared fixtures: a throwaway SQLite database per test, a FastAPI test
client bound to it, and signed JWTs for an operator and a regular user.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker

import auth
from database import build_engine, get_session, init_db
from main import app
from models import Base
from services import InvoiceService


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_session():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(role: str, user_id: int = 1) -> str:
    return jwt.encode({"id": user_id, "role": role}, auth.SECRET_KEY, algorithm=auth.ALGORITHM)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token('admin')}"}


@pytest.fixture
def staff_headers():
    return {"Authorization": f"Bearer {make_token('staff', user_id=2)}"}


@pytest.fixture
def make_invoice(db):
    """Create an invoice with the given line items, optionally already sent."""
    def _make(items=(("Portrait session", "2", "50.00"),), tax_rate="0.1", send=False,
              contact_id=1, due_date=None):
        result = InvoiceService.create_invoice(
            db,
            contact_id=contact_id,
            due_date=due_date or date.today() + timedelta(days=30),
            tax_rate=tax_rate,
            line_items=[
                {"description": d, "quantity": q, "unit_price": p} for d, q, p in items
            ],
        )
        invoice = result.invoice
        if send:
            invoice = InvoiceService.send_invoice(db, invoice.id).invoice
        return invoice
    return _make
