# tests/fixtures/deals.py

from dealscope.domain.buyer import Buyer
from dealscope.domain.deal import Deal
from dealscope.domain.results import RepairAssessment, VerdictRecord


def _base_deal_template() -> dict:
    return dict(
        deal_id="D-100",
        address="123 Test St",
        city="Detroit",
        state="MI",
        zipcode="48201",
        asking_price=180_000.0,
        beds=3,
        baths=2,
        sqft=1200,
        year_built=1990,
        property_type="single_family",
        days_on_market=20,
        sla_status="Pending",
    )


def deal_record(**overrides) -> dict:
    rec = _base_deal_template()
    rec.update(overrides)
    return rec


def flip_candidate(**overrides) -> Deal:
    """
    300k ARV, 180k asking, 20 days on market.
    1200 sqft built 1990 with no repair keywords -> Moderate tier,
    mid rehab 1200 * 25 = 30,000.
    """
    rec = deal_record(arv=300_000.0)
    rec.update(overrides)
    return Deal.model_validate(rec)


def no_equity_deal(**overrides) -> Deal:
    """ARV below asking: should always end up PASS."""
    rec = deal_record(deal_id="D-200", arv=170_000.0, asking_price=190_000.0)
    rec.update(overrides)
    return Deal.model_validate(rec)


def rental_deal(**overrides) -> Deal:
    """Cheap house with strong rent; LTR should lead."""
    rec = deal_record(
        deal_id="D-300",
        asking_price=120_000.0,
        arv=150_000.0,
        market_rent=1_700.0,
        year_built=2005,
    )
    rec.update(overrides)
    return Deal.model_validate(rec)


def repair(tier="Moderate", mid=30_000.0, risk=30.0) -> RepairAssessment:
    return RepairAssessment(
        tier=tier,
        low=mid * 0.6,
        high=mid * 1.4,
        mid=mid,
        breakdown={},
        breakdown_total=0.0,
        risk_score=risk,
    )


def verdict_record(deal_id="D-100", best_strategy="flip", risk_score=30.0, deal_score=75.0) -> VerdictRecord:
    return VerdictRecord(
        deal_id=deal_id,
        deal_score=deal_score,
        risk_score=risk_score,
        adjusted_score=deal_score - 0.3 * risk_score,
        base_verdict="SOLID",
        verdict="SOLID",
        override_reason=None,
        next_action="Schedule call",
        best_strategy=best_strategy,
        grade="B+",
        success_probability=70.0,
        components={},
        risk_components={},
    )


def flipper_buyer(**overrides) -> Buyer:
    """Buys fix-flips in 48201, 100k-250k, closes fast."""
    rec = dict(
        buyer_id="B-1",
        name="Fast Flip LLC",
        preferred_zips="48201",
        preferred_strategy="fix-flip",
        budget_min=100_000,
        budget_max=250_000,
        exit_speed="quick-flip",
        deals_closed=25,
        avg_close_days=10,
        reliability=10,
    )
    rec.update(overrides)
    return Buyer.model_validate(rec)


def landlord_buyer(**overrides) -> Buyer:
    rec = dict(
        buyer_id="B-2",
        name="Hold Forever Capital",
        preferred_zips="75001,75002",
        preferred_strategy="buy-hold",
        budget_min=50_000,
        budget_max=150_000,
        exit_speed="long-hold",
        deals_closed=2,
        reliability=6,
    )
    rec.update(overrides)
    return Buyer.model_validate(rec)
