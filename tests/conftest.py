from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import config
from database import get_session
from main import app
from models import Base
from models.invoice import InvoiceStatus, PayerType
from schemas.invoice import InvoiceCreate
from services import InvoiceService

TEST_SECRET = "test-secret"


@pytest.fixture
def engine():
     """Fresh in-memory database per test."""
     engine = create_engine(
          "sqlite://",
          connect_args={"check_same_thread": False},
          poolclass=StaticPool,
     )
     Base.metadata.create_all(engine)
     yield engine
     engine.dispose()


@pytest.fixture
def session_factory(engine):
     return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
     session = session_factory()
     yield session
     session.close()


@pytest.fixture
def make_invoice(db):
     """Create and commit an invoice; keyword arguments override InvoiceCreate defaults."""

     def _make(**overrides):
          fields = {
               "payer_type": PayerType.PARENT,
               "payer_id": "parent-1",
               "learner_id": "l1",
               "term_id": "term-1-2026",
               "gross_amount": Decimal("3000"),
               "due_date": date.today() + timedelta(days=30),
               "status": InvoiceStatus.SENT,
          }
          fields.update(overrides)
          invoice = InvoiceService.create_invoice(db, InvoiceCreate(**fields), created_by="finance@test")
          db.commit()
          return invoice

     return _make


@pytest.fixture
def auth_headers():
     """Build an Authorization header for a user with the given role."""

     def _headers(role: str = "finance", email: str = "finance@test") -> dict:
          token = jwt.encode({"id": 7, "role": role, "email": email}, TEST_SECRET, algorithm="HS256")
          return {"Authorization": f"Bearer {token}"}

     return _headers


@pytest.fixture
def client(session_factory, monkeypatch):
     """TestClient wired to the in-memory database and the test JWT secret."""
     monkeypatch.setattr(config, "JWT_SECRET", TEST_SECRET)

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
