"""Credit scoring engine - core business logic for trade-credit decisions"""

import re
from decimal import Decimal, ROUND_FLOOR

from chainflow_credit.domain.models import CREDIT_TERMS, CreditAnalysis, CreditRequest, RiskTier
from chainflow_credit.domain.exceptions import ValidationError

MIN_MONTHLY_REVENUE = Decimal("5000")
MIN_REQUESTED_AMOUNT = Decimal("100")
MAX_REQUESTED_AMOUNT = Decimal("500000")

BASE_SCORE = 8.0
MIN_SCORE = 6.0
MAX_SCORE = 10.0
APPROVAL_THRESHOLD = 7.0

# Share of monthly revenue a borrower can commit to repayment
REPAYMENT_CAPACITY_SHARE = Decimal("0.2")

BASE_RATE_BY_TERM = {30: 2.65, 60: 5.2, 90: 8.5}

FORMAL_ENTITY_MARKERS = {"ltda", "sa", "s.a", "s/a", "eireli"}
SMALL_ENTITY_MARKERS = {"me", "mei", "epp"}


def validate_credit_request(request: CreditRequest) -> None:
    """
    Reject malformed input before scoring.

    Out-of-range but well-formed values (e.g. revenue below the minimum) are
    not errors: they go through the eligibility gate and yield a rejection.
    """
    if not request.company_name or not request.company_name.strip():
        raise ValidationError("Company name is required")
    if not request.tax_id or not request.tax_id.strip():
        raise ValidationError("Tax id is required")
    if request.monthly_revenue <= 0:
        raise ValidationError("Monthly revenue must be positive")
    if request.requested_amount <= 0:
        raise ValidationError("Requested amount must be positive")
    if request.term_days not in CREDIT_TERMS:
        raise ValidationError(f"Term must be one of {CREDIT_TERMS} days, got {request.term_days}")


def is_eligible(monthly_revenue: Decimal, requested_amount: Decimal) -> bool:
    """Basic eligibility: minimum revenue and requested amount within bounds"""
    if monthly_revenue < MIN_MONTHLY_REVENUE:
        return False
    return MIN_REQUESTED_AMOUNT <= requested_amount <= MAX_REQUESTED_AMOUNT


def revenue_ratio_adjustment(monthly_revenue: Decimal, requested_amount: Decimal) -> float:
    ratio = requested_amount / monthly_revenue
    if ratio <= Decimal("0.1"):
        return 1.0
    elif ratio <= Decimal("0.2"):
        return 0.5
    elif ratio <= Decimal("0.3"):
        return 0.0
    elif ratio <= Decimal("0.5"):
        return -0.5
    return -1.5


def revenue_tier_adjustment(monthly_revenue: Decimal) -> float:
    if monthly_revenue >= 100_000:
        return 1.0
    elif monthly_revenue >= 50_000:
        return 0.5
    elif monthly_revenue >= 20_000:
        return 0.0
    elif monthly_revenue >= 10_000:
        return -0.5
    return -1.0


def amount_tier_adjustment(requested_amount: Decimal) -> float:
    if requested_amount <= 5_000:
        return 0.5
    elif requested_amount <= 20_000:
        return 0.0
    elif requested_amount <= 100_000:
        return -0.5
    return -1.0


def term_adjustment(term_days: int) -> float:
    if term_days == 30:
        return 0.5
    elif term_days == 60:
        return 0.0
    return -0.5


def name_adjustment(company_name: str) -> float:
    """Formal entity suffix (+0.3) and small-entity suffix (+0.1), matched on whole words"""
    tokens = {token.strip(".") for token in re.split(r"[\s,;()\-]+", company_name.lower())}
    adjustment = 0.0
    if tokens & FORMAL_ENTITY_MARKERS:
        adjustment += 0.3
    if tokens & SMALL_ENTITY_MARKERS:
        adjustment += 0.1
    return adjustment


def calculate_business_score(request: CreditRequest) -> float:
    """
    Calculate business score between 6.0 (highest risk) and 10.0 (lowest risk).

    Starts at 8.0 and applies additive adjustments for the request/revenue
    ratio, revenue size, absolute amount, term and company name markers.
    """
    score = BASE_SCORE
    score += revenue_ratio_adjustment(request.monthly_revenue, request.requested_amount)
    score += revenue_tier_adjustment(request.monthly_revenue)
    score += amount_tier_adjustment(request.requested_amount)
    score += term_adjustment(request.term_days)
    score += name_adjustment(request.company_name)

    # Adjustments are multiples of 0.1; rounding removes float drift before banding
    score = round(score, 1)
    return max(MIN_SCORE, min(MAX_SCORE, score))


def determine_interest_rate(score: float, term_days: int) -> float:
    """Term base rate plus a risk surcharge, in percent"""
    if score < 7.5:
        surcharge = 2.0
    elif score < 8.5:
        surcharge = 1.0
    elif score < 9.5:
        surcharge = 0.5
    else:
        surcharge = 0.0
    return round(BASE_RATE_BY_TERM[term_days] + surcharge, 2)


def determine_risk_tier(score: float) -> RiskTier:
    if score >= 9.0:
        return RiskTier.LOW
    elif score >= 7.5:
        return RiskTier.MEDIUM
    return RiskTier.HIGH


def determine_approved_amount(score: float, requested_amount: Decimal, monthly_revenue: Decimal) -> Decimal:
    """
    Approved-amount ceiling by score band, capped by repayment capacity.

    Score bands:
    - 9.0+:      100% of requested
    - 8.0 - 9.0: 90% of requested
    - below 8.0: 70% of requested

    The result never exceeds 20% of monthly revenue.
    """
    if score >= 9.0:
        share = Decimal("1")
    elif score >= 8.0:
        share = Decimal("0.9")
    else:
        share = Decimal("0.7")

    by_score = (requested_amount * share).quantize(Decimal("1"), rounding=ROUND_FLOOR)
    by_revenue = (monthly_revenue * REPAYMENT_CAPACITY_SHARE).quantize(Decimal("1"), rounding=ROUND_FLOOR)
    return min(by_score, by_revenue)


def score_credit_request(request: CreditRequest) -> CreditAnalysis:
    """
    Main entry point: score a trade-credit request and make the decision.

    Pure and deterministic. Ineligible requests short-circuit with a zero
    score, which is distinct from a scored-but-rejected outcome.
    """
    if not is_eligible(request.monthly_revenue, request.requested_amount):
        return CreditAnalysis(
            approved=False,
            eligible=False,
            business_score=0.0,
            interest_rate=0.0,
            risk_tier=RiskTier.HIGH,
            max_approved_amount=Decimal("0"),
        )

    score = calculate_business_score(request)
    approved = score >= APPROVAL_THRESHOLD

    return CreditAnalysis(
        approved=approved,
        eligible=True,
        business_score=score,
        interest_rate=determine_interest_rate(score, request.term_days),
        risk_tier=determine_risk_tier(score),
        max_approved_amount=(
            determine_approved_amount(score, request.requested_amount, request.monthly_revenue)
            if approved
            else Decimal("0")
        ),
    )
