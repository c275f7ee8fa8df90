"""Prometheus metrics for credit scores, pre-qualification, applications and restocking"""

from prometheus_client import Counter, Histogram

# Scoring metrics
credit_score_histogram = Histogram(
    "bizcredit_credit_score",
    "Composite credit scores computed",
    buckets=[400, 500, 580, 670, 740, 800, 850],
)

# Pre-qualification metrics
prequalification_counter = Counter(
    "bizcredit_prequalification_total",
    "Pre-qualification checks",
    ["outcome"],  # qualified | not_qualified
)

# Application metrics
application_submitted_counter = Counter(
    "bizcredit_application_submitted_total",
    "Loan applications submitted",
    ["product_type"],
)

application_status_counter = Counter(
    "bizcredit_application_status_total",
    "Loan application status changes",
    ["status"],
)

# Fulfillment metrics
restock_item_counter = Counter(
    "bizcredit_restock_items_total",
    "Restock items processed on approval",
    ["outcome"],  # applied | skipped | failed
)


def record_pre_qualification(qualified: bool) -> None:
    prequalification_counter.labels(outcome="qualified" if qualified else "not_qualified").inc()


def record_fulfillment(applied: int, skipped: int, failed: int) -> None:
    """Record per-item restock outcomes for one approval"""
    for outcome, count in (("applied", applied), ("skipped", skipped), ("failed", failed)):
        if count:
            restock_item_counter.labels(outcome=outcome).inc(count)
