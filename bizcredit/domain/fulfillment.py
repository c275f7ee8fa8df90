"""Approval fulfillment - credit restocked inventory for approved loans"""

import logging
from dataclasses import dataclass, field
from typing import List, Protocol

from bizcredit.domain.models import ApplicationStatus, LoanApplication, RestockItem

logger = logging.getLogger(__name__)


class RestockStore(Protocol):
    """Inventory side of fulfillment, owned by the inventory ledger"""

    def is_restock_applied(self, application_id: str, item_id: str) -> bool:
        ...

    def apply_restock(self, application_id: str, business_id: str, item: RestockItem) -> int:
        """Atomically add item.quantity to stock and record it; return new quantity"""
        ...


@dataclass
class RestockFailure:
    item_id: str
    reason: str


@dataclass
class FulfillmentReport:
    """Per-item outcome of crediting stock for one approved application"""

    application_id: str
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: List[RestockFailure] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.failures)


def fulfill_approved_application(application: LoanApplication, store: RestockStore) -> FulfillmentReport:
    """
    Credit stock for every restock item on an approved application.

    Best effort per item: a failing item is logged and reported, and the
    remaining items still run. Items the store already recorded for this
    application are skipped, so re-running after a partial failure only
    retries what is missing. Nothing here changes the application status.
    """
    report = FulfillmentReport(application_id=application.id)

    if application.status != ApplicationStatus.APPROVED or not application.items_to_restock:
        return report

    for item in application.items_to_restock:
        # Store errors are confined to their item
        try:
            if store.is_restock_applied(application.id, item.id):
                report.skipped.append(item.id)
                continue
            new_quantity = store.apply_restock(application.id, application.business_id, item)
        except Exception as e:
            report.failures.append(RestockFailure(item_id=item.id, reason=str(e)))
            logger.error(
                f"Failed to restock inventory item {item.id}: {e}",
                extra={
                    "application_number": application.application_number,
                    "item_id": item.id,
                    "quantity": item.quantity,
                },
            )
            continue

        report.applied.append(item.id)
        logger.info(
            "Inventory restocked",
            extra={
                "application_number": application.application_number,
                "item_id": item.id,
                "quantity": item.quantity,
                "new_quantity": new_quantity,
            },
        )

    return report
