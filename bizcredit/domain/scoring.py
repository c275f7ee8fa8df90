"""Credit scoring engine - turns business activity into a composite credit score"""

import math
from collections import defaultdict
from datetime import datetime
from statistics import fmean, pstdev
from typing import Dict, List, Sequence, Tuple

from bizcredit.domain.models import (
    BusinessActivitySnapshot,
    CreditScore,
    Customer,
    FactorName,
    InventoryItem,
    Invoice,
    InvoiceStatus,
    Rating,
    Sale,
    ScoreFactor,
    StockStatus,
)
from bizcredit.utils.date_utils import month_key, months_between, utc_now

MIN_SCORE = 300
MAX_SCORE = 850

FACTOR_WEIGHTS: Dict[FactorName, int] = {
    FactorName.PAYMENT_HISTORY: 35,
    FactorName.BUSINESS_AGE: 15,
    FactorName.REVENUE_STABILITY: 25,
    FactorName.INVENTORY_MANAGEMENT: 15,
    FactorName.CUSTOMER_BASE: 10,
}

# (minimum composite, rating), checked top-down
RATING_THRESHOLDS: List[Tuple[int, Rating]] = [
    (800, Rating.EXCELLENT),
    (740, Rating.VERY_GOOD),
    (670, Rating.GOOD),
    (580, Rating.FAIR),
]

# Unweighted factor score below which a suggestion is emitted
IMPROVEMENT_RULES: List[Tuple[FactorName, int, str]] = [
    (FactorName.PAYMENT_HISTORY, 650, "Improve invoice payment collection"),
    (FactorName.REVENUE_STABILITY, 600, "Focus on consistent monthly revenue"),
    (FactorName.INVENTORY_MANAGEMENT, 600, "Reduce out-of-stock items"),
    (FactorName.CUSTOMER_BASE, 600, "Build larger customer base"),
    (FactorName.BUSINESS_AGE, 600, "Continue building business history"),
]

CRITICAL_STOCK_LEVEL = 3
STABLE_REVENUE_CV = 0.3
INVENTORY_DIVERSITY_THRESHOLD = 10


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float) -> int:
    return _round_half_up(max(MIN_SCORE, min(MAX_SCORE, value)))


def stock_status(item: InventoryItem) -> StockStatus:
    """Bucket an item by stock level (out and critical ignore min_stock_level)"""
    if item.stock_quantity <= 0:
        return StockStatus.OUT
    if item.stock_quantity <= CRITICAL_STOCK_LEVEL:
        return StockStatus.CRITICAL
    if item.min_stock_level and item.stock_quantity < item.min_stock_level:
        return StockStatus.LOW
    return StockStatus.GOOD


def score_payment_history(invoices: Sequence[Invoice]) -> Tuple[int, str]:
    """
    Share of invoices paid, penalised by share overdue.

    300 + payment_rate * 400 - overdue_rate * 200, so 300-700 in practice.
    """
    if not invoices:
        return 500, "No invoice history available"

    total = len(invoices)
    paid = sum(1 for inv in invoices if inv.status == InvoiceStatus.PAID)
    overdue = sum(1 for inv in invoices if inv.status == InvoiceStatus.OVERDUE)

    payment_rate = paid / total
    overdue_rate = overdue / total
    score = 300 + payment_rate * 400 - overdue_rate * 200

    return _clamp(score), f"{_round_half_up(payment_rate * 100)}% payment rate, {overdue} overdue"


def score_business_age(sales: Sequence[Sale], now: datetime) -> Tuple[int, str]:
    """Months since the first recorded sale, 15 points per month up to 24 months"""
    if not sales:
        return 400, "New business, no transaction history"

    oldest = min(sale.created_at for sale in sales)
    age_months = max(1.0, months_between(oldest, now))
    score = min(MAX_SCORE, 400 + min(age_months * 15, 300))

    return _clamp(score), f"{_round_half_up(age_months)} months in business"


def score_revenue_stability(sales: Sequence[Sale]) -> Tuple[int, str]:
    """
    Month-to-month revenue consistency.

    Uses the coefficient of variation (population std dev / mean) of
    calendar-month revenue totals; lower variation scores higher.
    """
    if len(sales) < 3:
        return 450, "Insufficient sales data for analysis"

    monthly: Dict[str, float] = defaultdict(float)
    for sale in sales:
        monthly[month_key(sale.sale_date)] += float(sale.total_amount)

    revenues = list(monthly.values())
    mean = fmean(revenues)
    if mean == 0:
        return 400, "No revenue recorded"

    cv = pstdev(revenues) / mean
    score = 500 + max(0.0, (1 - cv) * 250)
    label = "stable" if cv < STABLE_REVENUE_CV else "variable"

    return _clamp(score), f"{len(revenues)} months of data, {label} revenue"


def score_inventory_management(items: Sequence[InventoryItem]) -> Tuple[int, str]:
    """Penalise out-of-stock and critical items, reward a broad active catalog"""
    if not items:
        return 400, "No inventory data available"

    statuses = [stock_status(item) for item in items]
    out_of_stock = statuses.count(StockStatus.OUT)
    critical = statuses.count(StockStatus.CRITICAL)

    score = 600.0
    score -= (out_of_stock / len(items)) * 200
    score -= (critical / len(items)) * 100

    active_items = sum(1 for item in items if item.is_active)
    if active_items > INVENTORY_DIVERSITY_THRESHOLD:
        score += 50

    return _clamp(score), f"{out_of_stock} out of stock, {critical} critical stock items"


def score_customer_base(customers: Sequence[Customer]) -> Tuple[int, str]:
    """10 points per customer up to 30, plus up to 100 for reachable customers"""
    count = len(customers)
    score = 400 + min(count * 10, 300)

    contact_rate = sum(1 for c in customers if c.has_contact) / count if count else 0.0
    score += contact_rate * 100

    return _clamp(score), f"{count} customers, {_round_half_up(contact_rate * 100)}% with contact info"


def determine_rating(score: int) -> Rating:
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return Rating.POOR


def suggest_improvements(factors: Dict[FactorName, ScoreFactor]) -> List[str]:
    """One suggestion per factor whose unweighted score is below its threshold"""
    return [
        message
        for name, threshold, message in IMPROVEMENT_RULES
        if factors[name].score < threshold
    ]


def calculate_credit_score(
    snapshot: BusinessActivitySnapshot,
    now: datetime | None = None,
) -> CreditScore:
    """
    Main entry point: score a business from its activity snapshot.

    Pure and deterministic for a given snapshot and `now`; callers that need
    reproducible results must pass `now` explicitly.
    """
    if now is None:
        now = utc_now()

    raw = {
        FactorName.PAYMENT_HISTORY: score_payment_history(snapshot.invoices),
        FactorName.BUSINESS_AGE: score_business_age(snapshot.sales, now),
        FactorName.REVENUE_STABILITY: score_revenue_stability(snapshot.sales),
        FactorName.INVENTORY_MANAGEMENT: score_inventory_management(snapshot.inventory_items),
        FactorName.CUSTOMER_BASE: score_customer_base(snapshot.customers),
    }

    factors = {
        name: ScoreFactor(score=score, weight=FACTOR_WEIGHTS[name], description=description)
        for name, (score, description) in raw.items()
    }

    # Weighted composite
    composite = _round_half_up(
        sum(factor.score * factor.weight / 100 for factor in factors.values())
    )

    return CreditScore(
        score=composite,
        rating=determine_rating(composite),
        factors=factors,
        improvements=suggest_improvements(factors),
    )
