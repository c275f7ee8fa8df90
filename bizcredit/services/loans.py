"""Loan pre-qualification, submission and approval handling"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from bizcredit.domain.exceptions import (
    InvalidSupplierError,
    InvalidTransitionError,
    LoanProductNotFoundError,
    ValidationError,
)
from bizcredit.domain.fulfillment import FulfillmentReport, fulfill_approved_application
from bizcredit.domain.models import (
    ApplicationDraft,
    ApplicationStatus,
    InventoryItem,
    LoanApplication,
    LoanProduct,
    PreQualificationResult,
)
from bizcredit.domain.prequalification import evaluate_pre_qualification
from bizcredit.domain.workflow import ApplicationWorkflow, validate_submission
from bizcredit.infrastructure.database.repositories import (
    InventoryRepository,
    LoanApplicationRepository,
    LoanProductRepository,
    SupplierRepository,
)
from bizcredit.infrastructure.observability.logging import log_fulfillment, log_pre_qualification
from bizcredit.infrastructure.observability.metrics import (
    application_status_counter,
    application_submitted_counter,
    record_fulfillment,
    record_pre_qualification,
)
from bizcredit.services.credit import CreditScoreService
from bizcredit.utils.date_utils import utc_now


@dataclass
class StatusUpdate:
    """Result of an underwriting status change"""

    application: LoanApplication
    fulfillment: Optional[FulfillmentReport] = None


class LoanService:
    """Loan operations for one business, backed by a database session"""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.products = LoanProductRepository(db)
        self.suppliers = SupplierRepository(db)
        self.applications = LoanApplicationRepository(db)
        self.inventory = InventoryRepository(db)
        self.credit = CreditScoreService(db, clock=clock)

    def list_products(self) -> List[LoanProduct]:
        return self.products.list_active()

    def _resolve_product(self, product_id: str) -> LoanProduct:
        product = self.products.get_product(product_id)
        if product is None:
            raise LoanProductNotFoundError(product_id)
        return product

    def _check_supplier(self, business_id: str, supplier_id: Optional[str]) -> None:
        if supplier_id and not self.suppliers.is_valid_supplier(supplier_id, business_id):
            raise InvalidSupplierError(supplier_id)

    def pre_qualify(
        self,
        business_id: str,
        product_id: str,
        requested_amount: Decimal,
        supplier_id: Optional[str] = None,
    ) -> PreQualificationResult:
        """
        Check a requested amount against a product using the current score.

        Raises:
            LoanProductNotFoundError: unknown product id
            InvalidSupplierError: supplier missing, inactive, or not the business's
        """
        product = self._resolve_product(product_id)
        self._check_supplier(business_id, supplier_id)

        credit_score = self.credit.get_credit_score(business_id).score
        result = evaluate_pre_qualification(
            product,
            requested_amount,
            credit_score,
            catalog=self.products.list_active(),
        )

        record_pre_qualification(result.qualified)
        log_pre_qualification(business_id, product.id, str(requested_amount), result.qualified, credit_score)
        return result

    def submit_application(self, business_id: str, draft: ApplicationDraft) -> LoanApplication:
        """
        Create a pending application, or nothing at all.

        The credit score is recomputed now and stored on the record; later
        score changes never touch it.
        """
        product = self._resolve_product(draft.loan_product.id)
        self._check_supplier(business_id, draft.supplier_id)
        if not product.is_active:
            raise ValidationError(f"Loan product {product.name} is not available")
        if not product.is_inventory_financing:
            draft = replace(draft, items_to_restock=())
        validate_submission(product, draft.requested_amount, draft.items_to_restock)

        credit_score = self.credit.get_credit_score(business_id).score

        try:
            application = self.applications.create_application(business_id, draft, credit_score)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logging.error("Loan application submission failed", extra={"business_id": business_id})
            raise

        application_submitted_counter.labels(product_type=product.product_type).inc()
        logging.info(
            f"Loan application {application.application_number} submitted",
            extra={
                "business_id": business_id,
                "application_number": application.application_number,
                "requested_amount": str(application.requested_amount),
                "credit_score": credit_score,
            },
        )
        return application

    def list_restockable_items(self, business_id: str) -> List[InventoryItem]:
        """Inventory lines an inventory-financing application can restock"""
        return self.inventory.list_items(business_id)

    def list_applications(self, business_id: str, limit: int = 20) -> List[LoanApplication]:
        return self.applications.get_applications_by_business(business_id, limit=limit)

    def update_application_status(
        self,
        application_id: str,
        status: str,
        approved_amount: Optional[Decimal] = None,
    ) -> StatusUpdate:
        """
        Apply an underwriting decision and react to approval.

        The status change is committed first. Moving into `approved` then
        credits restock items; restock failures are logged and reported but
        never undo the approval.
        """
        try:
            new_status = ApplicationStatus(status)
        except ValueError:
            raise InvalidTransitionError(f"Unknown application status: {status}")

        previous = self.applications.get_application(application_id)
        becomes_approved = new_status == ApplicationStatus.APPROVED and previous.status != ApplicationStatus.APPROVED

        try:
            application = self.applications.update_status(
                application_id,
                new_status,
                approved_amount=approved_amount,
                approval_date=self.clock() if becomes_approved else None,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logging.error("Loan application status update failed", extra={"application_id": application_id})
            raise

        application_status_counter.labels(status=new_status.value).inc()
        logging.info(
            f"Loan application status updated to {new_status.value}",
            extra={
                "application_number": application.application_number,
                "previous_status": previous.status.value,
                "status": new_status.value,
            },
        )

        fulfillment = self._fulfill(application) if becomes_approved else None
        return StatusUpdate(application=application, fulfillment=fulfillment)

    def retry_fulfillment(self, application_id: str) -> FulfillmentReport:
        """Re-run restocking for an approved application; already-credited items are skipped"""
        application = self.applications.get_application(application_id)
        if application.status != ApplicationStatus.APPROVED:
            raise InvalidTransitionError(
                f"Application {application.application_number} is {application.status.value}, not approved"
            )
        return self._fulfill(application)

    def _fulfill(self, application: LoanApplication) -> FulfillmentReport:
        report = fulfill_approved_application(application, self.inventory)
        if application.items_to_restock:
            record_fulfillment(len(report.applied), len(report.skipped), len(report.failures))
            log_fulfillment(
                application.application_number,
                len(report.applied),
                len(report.skipped),
                len(report.failures),
            )
        return report

    def start_workflow(self, business_id: str) -> ApplicationWorkflow:
        """Application workflow wired to this business's pre-qualification and submission"""
        return ApplicationWorkflow(
            pre_qualifier=lambda product, amount, supplier_id: self.pre_qualify(
                business_id, product.id, amount, supplier_id
            ),
            submitter=lambda draft: self.submit_application(business_id, draft),
        )
