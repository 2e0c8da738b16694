"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from household_ledger.api.main import create_app
from household_ledger.infrastructure.database.models import Base, Loan, RecurringBill
from household_ledger.infrastructure.database.session import get_db, init_db
from household_ledger.services.bills import BillService
from household_ledger.services.loans import LoanService

HOUSEHOLD_ID = "household_simon_reni"
MARCH = "2024-03"


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """File-backed SQLite so several sessions can work on the same data"""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    init_db(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create test database and session"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def electric_bill(db: Session) -> RecurringBill:
    """EUR 80 electricity bill due on the 5th, provisioned for March 2024"""
    return BillService(db).create_bill(
        household_id=HOUSEHOLD_ID,
        owner_id="member_simon",
        name="Electric",
        amount_cents=8000,
        currency="EUR",
        category="Utilities",
        day_of_month=5,
        month_year=MARCH,
    )


@pytest.fixture
def car_loan(db: Session) -> Loan:
    """EUR 3000 car loan paid in EUR 150 installments on the 10th"""
    return LoanService(db).create_loan(
        household_id=HOUSEHOLD_ID,
        owner_id="member_reni",
        name="Car",
        lender="City Bank",
        original_cents=300000,
        currency="EUR",
        interest_rate=4.5,
        monthly_installment_cents=15000,
        payment_day=10,
    )
