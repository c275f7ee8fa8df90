"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states as recorded by the invoicing ledger"""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class ProductType(str, Enum):
    """Loan product families"""

    INVENTORY = "inventory"
    CASH = "cash"
    WORKING_CAPITAL = "working_capital"
    EQUIPMENT = "equipment"


class ApplicationStatus(str, Enum):
    """Loan application states, mutated by underwriting outside the engine"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    CANCELLED = "cancelled"


class Rating(str, Enum):
    """Rating label derived from the composite credit score"""

    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class FactorName(str, Enum):
    """The five weighted score factors"""

    PAYMENT_HISTORY = "payment_history"
    BUSINESS_AGE = "business_age"
    REVENUE_STABILITY = "revenue_stability"
    INVENTORY_MANAGEMENT = "inventory_management"
    CUSTOMER_BASE = "customer_base"


class StockStatus(str, Enum):
    """Stock level bucket for an inventory item"""

    OUT = "out"
    CRITICAL = "critical"
    LOW = "low"
    GOOD = "good"


@dataclass(frozen=True)
class Sale:
    """Recorded sale from the sales ledger"""

    total_amount: Decimal
    sale_date: date
    created_at: datetime


@dataclass(frozen=True)
class Invoice:
    """Issued invoice from the invoicing ledger"""

    status: InvoiceStatus
    total_amount: Decimal
    invoice_date: date


@dataclass(frozen=True)
class InventoryItem:
    """Stock-keeping line from the inventory ledger"""

    id: str
    name: str
    stock_quantity: int
    unit_price: Decimal
    min_stock_level: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class Customer:
    """Customer record; only contact details matter for scoring"""

    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def has_contact(self) -> bool:
        return bool(self.email or self.phone)


@dataclass(frozen=True)
class BusinessActivitySnapshot:
    """Read-only view of one business's ledgers at a point in time"""

    sales: Tuple[Sale, ...] = ()
    invoices: Tuple[Invoice, ...] = ()
    inventory_items: Tuple[InventoryItem, ...] = ()
    customers: Tuple[Customer, ...] = ()


@dataclass(frozen=True)
class ScoreFactor:
    """Single weighted component of the credit score"""

    score: int
    weight: int  # percentage
    description: str


@dataclass(frozen=True)
class CreditScore:
    """Composite creditworthiness score with its breakdown"""

    score: int
    rating: Rating
    factors: Dict[FactorName, ScoreFactor]
    improvements: List[str]


@dataclass(frozen=True)
class LoanProduct:
    """Catalog entry describing a loan offer"""

    id: str
    name: str
    min_amount: Decimal
    max_amount: Decimal
    interest_rate: Decimal
    term_months: int
    product_type: str  # ProductType value; the catalog may carry others
    min_credit_score: int
    is_active: bool = True
    description: Optional[str] = None

    @property
    def is_inventory_financing(self) -> bool:
        return self.product_type == ProductType.INVENTORY.value


@dataclass(frozen=True)
class PreQualificationResult:
    """Outcome of a pre-qualification check (not qualifying is a normal outcome)"""

    qualified: bool
    max_amount: Decimal
    credit_score: int
    recommended_products: List[LoanProduct]
    reasons: Optional[List[str]] = None


@dataclass(frozen=True)
class RestockItem:
    """Inventory line selected for an inventory-financing loan"""

    id: str
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class ApplicationDraft:
    """Everything needed to submit a loan application"""

    loan_product: LoanProduct
    requested_amount: Decimal
    supplier_id: Optional[str] = None
    items_to_restock: Tuple[RestockItem, ...] = ()
    notes: str = ""


@dataclass
class LoanApplication:
    """Submitted loan application"""

    id: str
    business_id: str
    application_number: str
    loan_product_id: str
    requested_amount: Decimal
    credit_score: int
    status: ApplicationStatus
    supplier_id: Optional[str] = None
    approved_amount: Optional[Decimal] = None
    items_to_restock: List[RestockItem] = field(default_factory=list)
    application_data: Dict[str, Any] = field(default_factory=dict)
    approval_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
