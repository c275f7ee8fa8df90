"""Loan application workflow - product selection through submission"""

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Sequence, Tuple, Union

from bizcredit.domain.exceptions import InvalidTransitionError, ValidationError
from bizcredit.domain.models import (
    ApplicationDraft,
    InventoryItem,
    LoanApplication,
    LoanProduct,
    PreQualificationResult,
    RestockItem,
)

PreQualifier = Callable[[LoanProduct, Decimal, Optional[str]], PreQualificationResult]
Submitter = Callable[[ApplicationDraft], LoanApplication]


@dataclass(frozen=True)
class ProductsStep:
    """Choosing a loan product"""


@dataclass(frozen=True)
class PreQualifyStep:
    """Entering amount and supplier for the chosen product"""

    product: LoanProduct


@dataclass(frozen=True)
class ApplicationStep:
    """Pre-qualified; assembling the application payload"""

    product: LoanProduct
    pre_qualification: PreQualificationResult
    requested_amount: Decimal
    supplier_id: Optional[str] = None
    selected_items: Tuple[RestockItem, ...] = ()
    notes: str = ""

    @property
    def total_items_value(self) -> Decimal:
        return sum((item.total for item in self.selected_items), Decimal("0"))


@dataclass(frozen=True)
class ApprovalStep:
    """Submitted; awaiting underwriting"""

    application: LoanApplication


@dataclass(frozen=True)
class CancelledStep:
    """Aborted before submission; nothing was recorded"""


WorkflowState = Union[ProductsStep, PreQualifyStep, ApplicationStep, ApprovalStep, CancelledStep]


def parse_amount(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Coerce user input into a positive money amount"""
    try:
        amount = Decimal(str(value).strip()) if value is not None else None
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite() or amount <= 0:
        raise ValidationError("Please enter a valid requested amount")
    return amount


def validate_submission(
    product: LoanProduct,
    requested_amount: Decimal,
    items: Sequence[RestockItem],
) -> None:
    """
    Check an application payload before anything is written.

    Raises ValidationError when the amount is not positive, when an inventory
    product has no items or a malformed line, or when the items cost more
    than was requested. Each item may appear on one line only.
    """
    if requested_amount <= 0:
        raise ValidationError("Requested amount must be greater than zero")

    if product.is_inventory_financing:
        if not items:
            raise ValidationError("Select at least one item to restock")

        if any(item.quantity <= 0 for item in items):
            raise ValidationError("Restock quantities must be greater than zero")

        if any(item.unit_price < 0 for item in items):
            raise ValidationError("Restock unit prices cannot be negative")

        ids = [item.id for item in items]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValidationError(f"Each item can only be restocked once per application: {', '.join(duplicates)}")

        total = sum((item.total for item in items), Decimal("0"))
        if total > requested_amount:
            raise ValidationError(
                f"Selected items total ({total:,}) exceeds your requested amount "
                f"({requested_amount:,})"
            )


class ApplicationWorkflow:
    """
    Single-user state machine for assembling one loan application.

    Products -> PreQualify -> Application -> Approval, with back navigation
    and cancellation from any non-terminal state. The requested amount is
    fixed once pre-qualification succeeds.
    """

    def __init__(self, pre_qualifier: PreQualifier, submitter: Submitter):
        self._pre_qualifier = pre_qualifier
        self._submitter = submitter
        self.state: WorkflowState = ProductsStep()

    @property
    def is_terminal(self) -> bool:
        return isinstance(self.state, (ApprovalStep, CancelledStep))

    def _expect(self, *state_types: type) -> None:
        if not isinstance(self.state, state_types):
            expected = " or ".join(t.__name__ for t in state_types)
            raise InvalidTransitionError(
                f"Expected {expected}, workflow is in {type(self.state).__name__}"
            )

    def select_product(self, product: LoanProduct) -> PreQualifyStep:
        self._expect(ProductsStep)
        if not product.is_active:
            raise ValidationError(f"Loan product {product.name} is not available")
        self.state = PreQualifyStep(product=product)
        return self.state

    def pre_qualify(
        self,
        requested_amount: Union[Decimal, int, float, str],
        supplier_id: Optional[str] = None,
    ) -> PreQualificationResult:
        """
        Run pre-qualification for the selected product.

        Advances to the application step only when qualified; otherwise the
        workflow stays put and the result carries the reasons.
        """
        self._expect(PreQualifyStep)
        amount = parse_amount(requested_amount)
        product = self.state.product

        result = self._pre_qualifier(product, amount, supplier_id or None)
        if result.qualified:
            self.state = ApplicationStep(
                product=product,
                pre_qualification=result,
                requested_amount=amount,
                supplier_id=supplier_id or None,
            )
        return result

    def select_item(
        self,
        item: InventoryItem,
        quantity: int,
        available: Optional[int] = None,
    ) -> ApplicationStep:
        """Add, update, or (quantity 0) remove a restock line"""
        self._expect(ApplicationStep)
        if quantity < 0:
            raise ValidationError(f"Quantity for {item.name} cannot be negative")
        if available is not None and quantity > available:
            raise ValidationError(
                f"Quantity for {item.name} exceeds available stock of {available}"
            )

        items = list(self.state.selected_items)
        ids = [i.id for i in items]
        line = RestockItem(id=item.id, name=item.name, quantity=quantity, unit_price=item.unit_price)

        if item.id in ids:
            if quantity > 0:
                items[ids.index(item.id)] = line
            else:
                del items[ids.index(item.id)]
        elif quantity > 0:
            items.append(line)

        self.state = replace(self.state, selected_items=tuple(items))
        return self.state

    def set_notes(self, notes: str) -> ApplicationStep:
        self._expect(ApplicationStep)
        self.state = replace(self.state, notes=notes)
        return self.state

    def back(self) -> WorkflowState:
        self._expect(PreQualifyStep, ApplicationStep)
        if isinstance(self.state, PreQualifyStep):
            self.state = ProductsStep()
        else:
            self.state = PreQualifyStep(product=self.state.product)
        return self.state

    def cancel(self) -> CancelledStep:
        if self.is_terminal:
            raise InvalidTransitionError(f"Cannot cancel from {type(self.state).__name__}")
        self.state = CancelledStep()
        return self.state

    def submit(self) -> LoanApplication:
        self._expect(ApplicationStep)
        step = self.state
        validate_submission(step.product, step.requested_amount, step.selected_items)

        application = self._submitter(
            ApplicationDraft(
                loan_product=step.product,
                requested_amount=step.requested_amount,
                supplier_id=step.supplier_id,
                items_to_restock=step.selected_items if step.product.is_inventory_financing else (),
                notes=step.notes,
            )
        )
        self.state = ApprovalStep(application=application)
        return application
