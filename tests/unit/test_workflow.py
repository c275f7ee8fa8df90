"""Unit tests for the loan application workflow state machine"""

import pytest
from decimal import Decimal
from bizcredit.domain.exceptions import InvalidTransitionError, ValidationError
from bizcredit.domain.models import (
    ApplicationDraft,
    ApplicationStatus,
    InventoryItem,
    LoanApplication,
    RestockItem,
)
from bizcredit.domain.prequalification import evaluate_pre_qualification
from bizcredit.domain.workflow import (
    ApplicationStep,
    ApplicationWorkflow,
    ApprovalStep,
    CancelledStep,
    PreQualifyStep,
    ProductsStep,
    parse_amount,
    validate_submission,
)

SCORE = 650

RICE = InventoryItem(id="rice", name="Rice", stock_quantity=4, unit_price=Decimal("1000"))
OIL = InventoryItem(id="oil", name="Oil", stock_quantity=0, unit_price=Decimal("250"))


class RecordingSubmitter:
    """Stands in for the persistence side of submission"""

    def __init__(self):
        self.drafts: list[ApplicationDraft] = []

    def __call__(self, draft: ApplicationDraft) -> LoanApplication:
        self.drafts.append(draft)
        return LoanApplication(
            id=f"app-{len(self.drafts)}",
            business_id="biz-1",
            application_number=f"LA-TEST-{len(self.drafts)}",
            loan_product_id=draft.loan_product.id,
            requested_amount=draft.requested_amount,
            credit_score=SCORE,
            status=ApplicationStatus.PENDING,
            supplier_id=draft.supplier_id,
            items_to_restock=list(draft.items_to_restock),
        )


@pytest.fixture
def submitter() -> RecordingSubmitter:
    return RecordingSubmitter()


@pytest.fixture
def workflow(submitter: RecordingSubmitter) -> ApplicationWorkflow:
    return ApplicationWorkflow(
        pre_qualifier=lambda product, amount, supplier_id: evaluate_pre_qualification(product, amount, SCORE),
        submitter=submitter,
    )


@pytest.fixture
def inventory_loan(make_product):
    return make_product(
        id="inv",
        product_type="inventory",
        min_amount=Decimal("1000"),
        max_amount=Decimal("200000"),
        min_credit_score=500,
    )


def test_starts_at_product_selection(workflow):
    assert isinstance(workflow.state, ProductsStep)
    assert workflow.is_terminal is False


def test_happy_path_cash_product(workflow, submitter, make_product):
    product = make_product()

    workflow.select_product(product)
    result = workflow.pre_qualify("5000", supplier_id="sup-1")
    assert result.qualified is True
    assert isinstance(workflow.state, ApplicationStep)

    workflow.set_notes("Seasonal stock")
    application = workflow.submit()

    assert isinstance(workflow.state, ApprovalStep)
    assert workflow.is_terminal is True
    assert application.status == ApplicationStatus.PENDING
    assert submitter.drafts[0].requested_amount == Decimal("5000")
    assert submitter.drafts[0].supplier_id == "sup-1"
    assert submitter.drafts[0].notes == "Seasonal stock"


def test_not_qualified_stays_on_pre_qualify(workflow, make_product):
    workflow.select_product(make_product())
    result = workflow.pre_qualify(Decimal("999999"))

    assert result.qualified is False
    assert result.reasons
    assert isinstance(workflow.state, PreQualifyStep)


def test_invalid_amount_is_a_validation_error(workflow, make_product):
    workflow.select_product(make_product())

    for bad in ("", "abc", "0", "-5", None, "NaN"):
        with pytest.raises(ValidationError):
            workflow.pre_qualify(bad)


def test_parse_amount():
    assert parse_amount("1500.50") == Decimal("1500.50")
    assert parse_amount(200) == Decimal("200")


def test_selecting_a_product_resets_selection(workflow, inventory_loan):
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("10000")
    workflow.select_item(RICE, 2)

    workflow.back()
    workflow.back()
    assert isinstance(workflow.state, ProductsStep)

    step = workflow.select_product(inventory_loan)
    assert step == PreQualifyStep(product=inventory_loan)


def test_back_navigation(workflow, make_product):
    product = make_product()
    workflow.select_product(product)
    workflow.pre_qualify("5000")

    assert workflow.back() == PreQualifyStep(product=product)
    assert workflow.back() == ProductsStep()

    with pytest.raises(InvalidTransitionError):
        workflow.back()


def test_requested_amount_not_recalculated_from_items(workflow, inventory_loan):
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("10000")

    step = workflow.select_item(RICE, 3)

    assert step.requested_amount == Decimal("10000")
    assert step.total_items_value == Decimal("3000")


def test_select_item_add_update_remove(workflow, inventory_loan):
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("10000")

    workflow.select_item(RICE, 2)
    workflow.select_item(OIL, 4)
    step = workflow.select_item(RICE, 5)
    assert [(i.id, i.quantity) for i in step.selected_items] == [("rice", 5), ("oil", 4)]

    step = workflow.select_item(RICE, 0)
    assert [i.id for i in step.selected_items] == ["oil"]


def test_select_item_bounds(workflow, inventory_loan):
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("10000")

    with pytest.raises(ValidationError):
        workflow.select_item(RICE, -1)
    with pytest.raises(ValidationError, match="exceeds available stock"):
        workflow.select_item(RICE, 11, available=10)


def test_items_exceeding_requested_amount_block_submission(workflow, submitter, inventory_loan):
    """Requested 100,000 with 120,000 of items: blocked, nothing submitted"""
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("100000")
    workflow.select_item(RICE, 120)

    with pytest.raises(ValidationError, match="exceeds your requested amount") as exc_info:
        workflow.submit()

    assert "120,000" in exc_info.value.reason
    assert submitter.drafts == []
    assert isinstance(workflow.state, ApplicationStep)


def test_inventory_product_requires_items(workflow, submitter, inventory_loan):
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("5000")

    with pytest.raises(ValidationError, match="at least one item"):
        workflow.submit()
    assert submitter.drafts == []


def test_items_equal_to_requested_amount_are_accepted(workflow, submitter, inventory_loan):
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("4000")
    workflow.select_item(RICE, 4)

    application = workflow.submit()

    assert [i.id for i in application.items_to_restock] == ["rice"]
    assert submitter.drafts[0].items_to_restock[0].quantity == 4


def test_cancel_discards_without_submitting(workflow, submitter, inventory_loan):
    workflow.select_product(inventory_loan)
    workflow.pre_qualify("5000")
    workflow.select_item(RICE, 1)

    assert workflow.cancel() == CancelledStep()
    assert submitter.drafts == []

    with pytest.raises(InvalidTransitionError):
        workflow.submit()
    with pytest.raises(InvalidTransitionError):
        workflow.cancel()


def test_cannot_cancel_after_submission(workflow, make_product):
    workflow.select_product(make_product())
    workflow.pre_qualify("5000")
    workflow.submit()

    with pytest.raises(InvalidTransitionError):
        workflow.cancel()


def test_out_of_order_transitions_rejected(workflow, make_product):
    with pytest.raises(InvalidTransitionError):
        workflow.pre_qualify("5000")
    with pytest.raises(InvalidTransitionError):
        workflow.select_item(RICE, 1)

    workflow.select_product(make_product())
    with pytest.raises(InvalidTransitionError):
        workflow.select_product(make_product())


def test_inactive_product_cannot_be_selected(workflow, make_product):
    with pytest.raises(ValidationError):
        workflow.select_product(make_product(is_active=False))


def test_duplicate_restock_lines_are_rejected(inventory_loan):
    rice = RestockItem(id="rice", name="Rice", quantity=3, unit_price=Decimal("1000"))

    with pytest.raises(ValidationError, match="only be restocked once") as exc_info:
        validate_submission(inventory_loan, Decimal("10000"), [rice, rice])

    assert exc_info.value.reason.endswith(": rice")


def test_negative_unit_price_is_rejected(inventory_loan):
    cheap = RestockItem(id="oil", name="Oil", quantity=10, unit_price=Decimal("-100"))
    rice = RestockItem(id="rice", name="Rice", quantity=3, unit_price=Decimal("1000"))

    with pytest.raises(ValidationError, match="cannot be negative"):
        validate_submission(inventory_loan, Decimal("2500"), [rice, cheap])
