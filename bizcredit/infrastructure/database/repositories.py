"""Data access layer for ledgers, loan products and loan applications"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bizcredit.config import settings
from bizcredit.domain.exceptions import (
    InventoryItemNotFoundError,
    InventoryUpdateError,
    LoanApplicationNotFoundError,
)
from bizcredit.domain.models import (
    ApplicationDraft,
    ApplicationStatus,
    BusinessActivitySnapshot,
    Customer,
    InventoryItem,
    Invoice,
    InvoiceStatus,
    LoanApplication,
    LoanProduct,
    RestockItem,
    Sale,
)
from bizcredit.infrastructure.database.models import (
    CustomerRecord,
    InventoryItemRecord,
    InvoiceRecord,
    LoanApplicationRecord,
    LoanProductRecord,
    RestockLedgerRecord,
    SaleRecord,
    SupplierRecord,
)
from bizcredit.utils.date_utils import utc_now


def _to_loan_product(record: LoanProductRecord) -> LoanProduct:
    return LoanProduct(
        id=record.id,
        name=record.name,
        description=record.description,
        min_amount=Decimal(record.min_amount),
        max_amount=Decimal(record.max_amount),
        interest_rate=Decimal(record.interest_rate),
        term_months=record.term_months,
        product_type=record.product_type,
        min_credit_score=record.min_credit_score,
        is_active=record.is_active,
    )


def _to_inventory_item(record: InventoryItemRecord) -> InventoryItem:
    return InventoryItem(
        id=record.id,
        name=record.name,
        stock_quantity=record.stock_quantity,
        unit_price=Decimal(record.unit_price),
        min_stock_level=record.min_stock_level,
        is_active=record.is_active,
    )


def _restock_items_to_json(items: Tuple[RestockItem, ...]) -> List[Dict[str, Any]]:
    return [
        {"id": i.id, "name": i.name, "quantity": i.quantity, "unit_price": str(i.unit_price)}
        for i in items
    ]


def _restock_items_from_json(data: Optional[List[Dict[str, Any]]]) -> List[RestockItem]:
    return [
        RestockItem(
            id=row["id"],
            name=row.get("name", ""),
            quantity=int(row["quantity"]),
            unit_price=Decimal(str(row.get("unit_price", "0"))),
        )
        for row in (data or [])
    ]


def _to_loan_application(record: LoanApplicationRecord) -> LoanApplication:
    return LoanApplication(
        id=record.id,
        business_id=record.business_id,
        application_number=record.application_number,
        loan_product_id=record.loan_product_id,
        supplier_id=record.supplier_id,
        requested_amount=Decimal(record.requested_amount),
        approved_amount=Decimal(record.approved_amount) if record.approved_amount is not None else None,
        credit_score=record.credit_score,
        status=ApplicationStatus(record.status),
        items_to_restock=_restock_items_from_json(record.items_to_restock),
        application_data=dict(record.application_data or {}),
        approval_date=record.approval_date,
        created_at=record.created_at,
    )


class ActivityRepository:
    """Read-only access to the ledgers the credit score is built from"""

    def __init__(self, db: Session):
        self.db = db

    def load_snapshot(self, business_id: str) -> BusinessActivitySnapshot:
        """Read the full current sales, invoices, inventory and customers for a business"""
        sales = self.db.query(SaleRecord).filter(SaleRecord.business_id == business_id).all()
        invoices = self.db.query(InvoiceRecord).filter(InvoiceRecord.business_id == business_id).all()
        items = self.db.query(InventoryItemRecord).filter(InventoryItemRecord.business_id == business_id).all()
        customers = self.db.query(CustomerRecord).filter(CustomerRecord.business_id == business_id).all()

        return BusinessActivitySnapshot(
            sales=tuple(
                Sale(total_amount=Decimal(s.total_amount), sale_date=s.sale_date, created_at=s.created_at)
                for s in sales
            ),
            invoices=tuple(
                Invoice(status=InvoiceStatus(i.status), total_amount=Decimal(i.total_amount), invoice_date=i.invoice_date)
                for i in invoices
            ),
            inventory_items=tuple(_to_inventory_item(i) for i in items),
            customers=tuple(Customer(email=c.email, phone=c.phone) for c in customers),
        )


class LoanProductRepository:
    """Repository for the loan product catalog"""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: str) -> Optional[LoanProduct]:
        record = self.db.get(LoanProductRecord, product_id)
        return _to_loan_product(record) if record else None

    def list_active(self) -> List[LoanProduct]:
        """Active products, smallest minimum amount first"""
        records = (
            self.db.query(LoanProductRecord)
            .filter(LoanProductRecord.is_active.is_(True))
            .order_by(LoanProductRecord.min_amount)
            .all()
        )
        return [_to_loan_product(r) for r in records]


class SupplierRepository:
    """Repository for suppliers"""

    def __init__(self, db: Session):
        self.db = db

    def is_valid_supplier(self, supplier_id: str, business_id: str) -> bool:
        """Supplier exists, is active, and belongs to the business"""
        record = (
            self.db.query(SupplierRecord)
            .filter(SupplierRecord.id == supplier_id, SupplierRecord.business_id == business_id)
            .first()
        )
        return record is not None and record.is_active


class LoanApplicationRepository:
    """Repository for loan applications"""

    def __init__(self, db: Session):
        self.db = db

    def generate_application_number(self) -> str:
        """Unique, human-readable number, e.g. LA-20240314-9F2C41AB"""
        while True:
            number = f"{settings.application_number_prefix}-{utc_now():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
            exists = (
                self.db.query(LoanApplicationRecord.id)
                .filter(LoanApplicationRecord.application_number == number)
                .first()
            )
            if exists is None:
                return number

    def create_application(
        self,
        business_id: str,
        draft: ApplicationDraft,
        credit_score: int,
    ) -> LoanApplication:
        """Persist a pending application (flushed, not committed)"""
        record = LoanApplicationRecord(
            business_id=business_id,
            application_number=self.generate_application_number(),
            loan_product_id=draft.loan_product.id,
            supplier_id=draft.supplier_id,
            requested_amount=draft.requested_amount,
            credit_score=credit_score,
            items_to_restock=_restock_items_to_json(draft.items_to_restock),
            status=ApplicationStatus.PENDING.value,
            application_data={
                "notes": draft.notes,
                "selected_supplier": draft.supplier_id,
                "total_items": len(draft.items_to_restock),
            },
        )
        self.db.add(record)
        self.db.flush()  # Get ID and defaults without committing
        return _to_loan_application(record)

    def get_application(self, application_id: str) -> LoanApplication:
        record = self.db.get(LoanApplicationRecord, application_id)
        if record is None:
            raise LoanApplicationNotFoundError(f"Loan application {application_id} not found")
        return _to_loan_application(record)

    def get_applications_by_business(self, business_id: str, limit: int = 20) -> List[LoanApplication]:
        """Most recent applications first"""
        records = (
            self.db.query(LoanApplicationRecord)
            .filter(LoanApplicationRecord.business_id == business_id)
            .order_by(LoanApplicationRecord.created_at.desc())
            .limit(limit)
            .all()
        )
        return [_to_loan_application(r) for r in records]

    def update_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        approved_amount: Optional[Decimal] = None,
        approval_date: Optional[datetime] = None,
    ) -> LoanApplication:
        """Change status (flushed, not committed); application_number is never touched"""
        record = self.db.get(LoanApplicationRecord, application_id)
        if record is None:
            raise LoanApplicationNotFoundError(f"Loan application {application_id} not found")

        record.status = status.value
        if approved_amount is not None:
            record.approved_amount = approved_amount
        if approval_date is not None:
            record.approval_date = approval_date
        self.db.flush()
        return _to_loan_application(record)


class InventoryRepository:
    """
    Inventory writes for approval fulfillment.

    Each restock is its own unit of work: an atomic in-database increment
    plus a ledger row, committed together, so concurrent stock edits are not
    lost and a retried fulfillment skips items already credited.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_items(self, business_id: str) -> List[InventoryItem]:
        """Active inventory lines, by name"""
        records = (
            self.db.query(InventoryItemRecord)
            .filter(InventoryItemRecord.business_id == business_id, InventoryItemRecord.is_active.is_(True))
            .order_by(InventoryItemRecord.name)
            .all()
        )
        return [_to_inventory_item(r) for r in records]

    def is_restock_applied(self, application_id: str, item_id: str) -> bool:
        try:
            entry = (
                self.db.query(RestockLedgerRecord.id)
                .filter(
                    RestockLedgerRecord.application_id == application_id,
                    RestockLedgerRecord.inventory_item_id == item_id,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InventoryUpdateError(f"Failed to read restock ledger for item {item_id}: {e}") from e
        return entry is not None

    def apply_restock(self, application_id: str, business_id: str, item: RestockItem) -> int:
        """
        Add item.quantity to stock and record it in the restock ledger.

        Raises:
            InventoryItemNotFoundError: item is not in this business's inventory
            InventoryUpdateError: the database rejected the change
        """
        try:
            result = self.db.execute(
                update(InventoryItemRecord)
                .where(
                    InventoryItemRecord.id == item.id,
                    InventoryItemRecord.business_id == business_id,
                )
                .values(stock_quantity=InventoryItemRecord.stock_quantity + item.quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InventoryItemNotFoundError(item.id)

            self.db.add(
                RestockLedgerRecord(
                    application_id=application_id,
                    inventory_item_id=item.id,
                    quantity=item.quantity,
                )
            )
            self.db.commit()

        except InventoryItemNotFoundError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InventoryUpdateError(f"Failed to update inventory for item {item.id}: {e}") from e

        try:
            return (
                self.db.query(InventoryItemRecord.stock_quantity)
                .filter(InventoryItemRecord.id == item.id)
                .scalar()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InventoryUpdateError(f"Restocked item {item.id} but could not read new stock: {e}") from e
