"""SQLAlchemy ORM models for the business ledgers, loan catalog and applications"""

import uuid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


Money = Numeric(14, 2)


class SaleRecord(Base):
    """Sales ledger entry"""

    __tablename__ = "business_sale"

    id = Column(String(36), primary_key=True, default=_new_id)
    business_id = Column(Text, nullable=False, index=True)
    total_amount = Column(Money, nullable=False)
    sale_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class InvoiceRecord(Base):
    """Invoicing ledger entry"""

    __tablename__ = "business_invoice"

    id = Column(String(36), primary_key=True, default=_new_id)
    business_id = Column(Text, nullable=False, index=True)
    status = Column(Text, nullable=False, default="draft")
    total_amount = Column(Money, nullable=False)
    invoice_date = Column(Date, nullable=False)


class InventoryItemRecord(Base):
    """Inventory ledger line"""

    __tablename__ = "inventory_item"
    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="ck_inventory_stock_non_negative"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    business_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Money, nullable=False)
    min_stock_level = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class CustomerRecord(Base):
    """Customer directory entry"""

    __tablename__ = "customer"

    id = Column(String(36), primary_key=True, default=_new_id)
    business_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)


class SupplierRecord(Base):
    """Supplier a business buys stock from"""

    __tablename__ = "supplier"

    id = Column(String(36), primary_key=True, default=_new_id)
    business_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    product_category = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class LoanProductRecord(Base):
    """Loan product catalog entry"""

    __tablename__ = "loan_product"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    min_amount = Column(Money, nullable=False)
    max_amount = Column(Money, nullable=False)
    interest_rate = Column(Numeric(6, 3), nullable=False)
    term_months = Column(Integer, nullable=False)
    product_type = Column(Text, nullable=False)
    min_credit_score = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class LoanApplicationRecord(Base):
    """Submitted loan application"""

    __tablename__ = "loan_application"

    id = Column(String(36), primary_key=True, default=_new_id)
    business_id = Column(Text, nullable=False, index=True)
    application_number = Column(Text, nullable=False, unique=True)
    loan_product_id = Column(String(36), ForeignKey("loan_product.id"), nullable=False)
    supplier_id = Column(String(36), ForeignKey("supplier.id"), nullable=True)
    requested_amount = Column(Money, nullable=False)
    approved_amount = Column(Money, nullable=True)
    credit_score = Column(Integer, nullable=False)
    items_to_restock = Column(JSON, nullable=True)
    status = Column(Text, nullable=False, default="pending")
    application_data = Column(JSON, nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    loan_product = relationship("LoanProductRecord")
    restocks = relationship("RestockLedgerRecord", back_populates="application", cascade="all, delete-orphan")


class RestockLedgerRecord(Base):
    """Stock credit already applied for an (application, item) pair"""

    __tablename__ = "restock_ledger"
    __table_args__ = (UniqueConstraint("application_id", "inventory_item_id", name="uq_restock_once"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    application_id = Column(String(36), ForeignKey("loan_application.id", ondelete="CASCADE"), nullable=False)
    inventory_item_id = Column(String(36), nullable=False)
    quantity = Column(Integer, nullable=False)
    applied_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    application = relationship("LoanApplicationRecord", back_populates="restocks")
