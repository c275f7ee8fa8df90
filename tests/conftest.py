"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from bizcredit.infrastructure.database.models import (
    Base,
    CustomerRecord,
    InventoryItemRecord,
    InvoiceRecord,
    LoanProductRecord,
    SaleRecord,
    SupplierRecord,
)
from bizcredit.domain.models import LoanProduct
from bizcredit.services.loans import LoanService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)
BUSINESS_ID = "biz-1"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def loan_service(db: Session) -> LoanService:
    """Loan service with a frozen clock"""
    return LoanService(db, clock=lambda: FIXED_NOW)


@pytest.fixture
def inventory_product(db: Session) -> LoanProductRecord:
    """Inventory-financing product any scored business qualifies for"""
    record = LoanProductRecord(
        id="prod-inventory",
        name="Inventory Restock Loan",
        min_amount=Decimal("1000"),
        max_amount=Decimal("200000"),
        interest_rate=Decimal("12.5"),
        term_months=6,
        product_type="inventory",
        min_credit_score=400,
        is_active=True,
    )
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def cash_product(db: Session) -> LoanProductRecord:
    record = LoanProductRecord(
        id="prod-cash",
        name="Cash Advance",
        min_amount=Decimal("500"),
        max_amount=Decimal("20000"),
        interest_rate=Decimal("18"),
        term_months=3,
        product_type="cash",
        min_credit_score=650,
        is_active=True,
    )
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def supplier(db: Session) -> SupplierRecord:
    record = SupplierRecord(id="sup-1", business_id=BUSINESS_ID, name="Wholesale Foods", is_active=True)
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def stocked_items(db: Session) -> list[InventoryItemRecord]:
    """Two inventory lines for the test business"""
    items = [
        InventoryItemRecord(
            id="item-rice",
            business_id=BUSINESS_ID,
            name="Rice 25kg",
            stock_quantity=5,
            unit_price=Decimal("1000"),
            is_active=True,
        ),
        InventoryItemRecord(
            id="item-oil",
            business_id=BUSINESS_ID,
            name="Palm Oil 5L",
            stock_quantity=2,
            unit_price=Decimal("500"),
            is_active=True,
        ),
    ]
    db.add_all(items)
    db.commit()
    return items


@pytest.fixture
def healthy_ledgers(db: Session) -> None:
    """A year of steady sales, paid invoices and reachable customers"""
    for month in range(1, 7):
        for day in (5, 20):
            db.add(
                SaleRecord(
                    business_id=BUSINESS_ID,
                    total_amount=Decimal("5000"),
                    sale_date=date(2024, month, day),
                    created_at=datetime(2024, month, day, tzinfo=timezone.utc) - timedelta(days=365),
                )
            )
    for i in range(10):
        db.add(
            InvoiceRecord(
                business_id=BUSINESS_ID,
                status="paid",
                total_amount=Decimal("1200"),
                invoice_date=date(2024, 1, 1) + timedelta(days=i * 15),
            )
        )
    for i in range(30):
        db.add(CustomerRecord(business_id=BUSINESS_ID, name=f"Customer {i}", phone=f"+2327600{i:04d}"))
    db.commit()


def _make_product(**overrides) -> LoanProduct:
    fields = dict(
        id="prod-1",
        name="Working Capital",
        min_amount=Decimal("1000"),
        max_amount=Decimal("50000"),
        interest_rate=Decimal("15"),
        term_months=12,
        product_type="working_capital",
        min_credit_score=600,
        is_active=True,
    )
    fields.update(overrides)
    return LoanProduct(**fields)


@pytest.fixture
def make_product():
    """Factory for plain catalog entries in pure-domain tests"""
    return _make_product
