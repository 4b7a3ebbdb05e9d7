"""Unit tests for credit scoring logic"""

import pytest
from dataclasses import replace
from decimal import Decimal
from chainflow_credit.domain.models import CreditRequest, RiskTier
from chainflow_credit.domain.scoring import (
    calculate_business_score,
    determine_approved_amount,
    determine_interest_rate,
    determine_risk_tier,
    is_eligible,
    name_adjustment,
    revenue_ratio_adjustment,
    score_credit_request,
    validate_credit_request,
)
from chainflow_credit.domain.exceptions import ValidationError


def make_request(**overrides) -> CreditRequest:
    request = CreditRequest(
        company_name="Acme Ltda",
        tax_id="12.345.678/0001-90",
        monthly_revenue=Decimal("100000"),
        requested_amount=Decimal("8000"),
        term_days=30,
        purpose="stock",
    )
    return replace(request, **overrides)


def test_strong_request_clamps_to_max_score():
    """8.0 + 1.0 + 1.0 + 0 + 0.5 + 0.3 = 10.8, clamped to 10.0"""
    analysis = score_credit_request(make_request())

    assert analysis.approved is True
    assert analysis.eligible is True
    assert analysis.business_score == 10.0
    assert analysis.interest_rate == 2.65
    assert analysis.risk_tier == RiskTier.LOW
    assert analysis.max_approved_amount == Decimal("8000")


def test_low_revenue_fails_eligibility_gate():
    """Below minimum revenue: rejected with zero score, not an error"""
    analysis = score_credit_request(
        make_request(monthly_revenue=Decimal("4000"), requested_amount=Decimal("2000"))
    )

    assert analysis.approved is False
    assert analysis.eligible is False
    assert analysis.business_score == 0.0
    assert analysis.max_approved_amount == Decimal("0")


@pytest.mark.parametrize("requested", [Decimal("99"), Decimal("500001")])
def test_requested_amount_outside_bounds_is_ineligible(requested):
    assert is_eligible(Decimal("100000"), requested) is False


def test_scoring_is_deterministic():
    request = make_request(company_name="Beta Comercio ME", term_days=60)
    assert score_credit_request(request) == score_credit_request(request)


def test_weak_request_is_rejected_with_high_risk():
    """ratio 0.5 (-0.5), revenue < 10k (-1.0), amount <= 5k (+0.5), 90d (-0.5) -> 6.5"""
    analysis = score_credit_request(
        make_request(
            company_name="Padaria Central",
            monthly_revenue=Decimal("6000"),
            requested_amount=Decimal("3000"),
            term_days=90,
        )
    )

    assert analysis.eligible is True
    assert analysis.approved is False
    assert analysis.business_score == 6.5
    assert analysis.interest_rate == 10.5
    assert analysis.risk_tier == RiskTier.HIGH
    assert analysis.max_approved_amount == Decimal("0")


def test_score_never_drops_below_floor():
    request = make_request(
        company_name="Loja",
        monthly_revenue=Decimal("5000"),
        requested_amount=Decimal("200000"),
        term_days=90,
    )
    assert calculate_business_score(request) == 6.0


def test_revenue_ratio_bands():
    revenue = Decimal("10000")
    assert revenue_ratio_adjustment(revenue, Decimal("1000")) == 1.0
    assert revenue_ratio_adjustment(revenue, Decimal("2000")) == 0.5
    assert revenue_ratio_adjustment(revenue, Decimal("3000")) == 0.0
    assert revenue_ratio_adjustment(revenue, Decimal("5000")) == -0.5
    assert revenue_ratio_adjustment(revenue, Decimal("5001")) == -1.5


def test_name_markers_match_whole_words():
    assert name_adjustment("Acme Ltda") == pytest.approx(0.3)
    assert name_adjustment("Beta S.A.") == pytest.approx(0.3)
    assert name_adjustment("Gamma Comercio Ltda - ME") == pytest.approx(0.4)
    assert name_adjustment("Acme Comercio") == 0.0
    assert name_adjustment("Home Center") == 0.0


@pytest.mark.parametrize(
    "score,term,expected",
    [
        (7.2, 30, 4.65),
        (8.0, 60, 6.2),
        (9.0, 90, 9.0),
        (9.5, 30, 2.65),
    ],
)
def test_interest_rate_by_score_and_term(score, term, expected):
    assert determine_interest_rate(score, term) == expected


def test_risk_tier_bands():
    assert determine_risk_tier(9.0) == RiskTier.LOW
    assert determine_risk_tier(8.9) == RiskTier.MEDIUM
    assert determine_risk_tier(7.5) == RiskTier.MEDIUM
    assert determine_risk_tier(7.4) == RiskTier.HIGH


def test_approved_amount_by_score_band():
    revenue = Decimal("1000000")
    assert determine_approved_amount(9.2, Decimal("10000"), revenue) == Decimal("10000")
    assert determine_approved_amount(8.4, Decimal("10000"), revenue) == Decimal("9000")
    assert determine_approved_amount(7.3, Decimal("10000"), revenue) == Decimal("7000")


def test_approved_amount_capped_by_repayment_capacity():
    """Never more than 20% of monthly revenue"""
    assert determine_approved_amount(10.0, Decimal("50000"), Decimal("100000")) == Decimal("20000")


def test_approved_amount_rounds_down_to_whole_units():
    assert determine_approved_amount(8.5, Decimal("1555"), Decimal("1000000")) == Decimal("1399")


@pytest.mark.parametrize(
    "overrides",
    [
        {"company_name": "  "},
        {"tax_id": ""},
        {"monthly_revenue": Decimal("0")},
        {"requested_amount": Decimal("-10")},
        {"term_days": 45},
    ],
)
def test_malformed_requests_raise_validation_error(overrides):
    with pytest.raises(ValidationError):
        validate_credit_request(make_request(**overrides))
