"""Loan pre-qualification - eligibility and maximum amount for a product"""

from decimal import Decimal
from typing import Iterable, List

from bizcredit.domain.models import LoanProduct, PreQualificationResult

LOW_SCORE_THRESHOLD = 500
MID_SCORE_THRESHOLD = 700
MID_SCORE_CAP_RATIO = Decimal("0.7")


def _fmt(amount: Decimal | int) -> str:
    return f"{amount:,}"


def determine_max_amount(product: LoanProduct, credit_score: int) -> Decimal:
    """
    Cap the amount a borrower may take from a product based on score.

    Score tiers:
    - below 500: at most twice the product minimum
    - 500-699:   70% of the product maximum
    - 700+:      the full product maximum
    """
    if credit_score < LOW_SCORE_THRESHOLD:
        return min(product.max_amount, product.min_amount * 2)
    elif credit_score < MID_SCORE_THRESHOLD:
        return min(product.max_amount, product.max_amount * MID_SCORE_CAP_RATIO)
    return product.max_amount


def recommend_products(catalog: Iterable[LoanProduct], credit_score: int) -> List[LoanProduct]:
    """Active products the score unlocks, cheapest interest first"""
    eligible = [p for p in catalog if p.is_active and p.min_credit_score <= credit_score]
    return sorted(eligible, key=lambda p: p.interest_rate)


def evaluate_pre_qualification(
    product: LoanProduct,
    requested_amount: Decimal,
    credit_score: int,
    catalog: Iterable[LoanProduct] = (),
) -> PreQualificationResult:
    """
    Decide whether a requested amount pre-qualifies for a product.

    Qualification needs the score to meet the product minimum and the amount
    to sit inside [min_amount, max_amount] (both ends inclusive). The maximum
    eligible amount is reported whether or not the request qualifies.
    """
    meets_score = credit_score >= product.min_credit_score
    within_min = requested_amount >= product.min_amount
    within_max = requested_amount <= product.max_amount
    qualified = meets_score and within_min and within_max

    reasons: List[str] = []
    if not meets_score:
        gap = product.min_credit_score - credit_score
        reasons.append(
            f"Credit score {credit_score} is below minimum requirement of "
            f"{product.min_credit_score} ({gap} points short)"
        )
    if not within_min:
        gap = product.min_amount - requested_amount
        reasons.append(
            f"Requested amount {_fmt(requested_amount)} is below minimum of "
            f"{_fmt(product.min_amount)} ({_fmt(gap)} short)"
        )
    if not within_max:
        gap = requested_amount - product.max_amount
        reasons.append(
            f"Requested amount {_fmt(requested_amount)} exceeds maximum of "
            f"{_fmt(product.max_amount)} ({_fmt(gap)} over)"
        )

    return PreQualificationResult(
        qualified=qualified,
        max_amount=determine_max_amount(product, credit_score),
        credit_score=credit_score,
        recommended_products=recommend_products(catalog, credit_score),
        reasons=None if qualified else reasons,
    )
