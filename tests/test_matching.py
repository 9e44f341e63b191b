import pytest
from hypothesis import given, strategies as st

from dealscope.analysis.scoring import round_half_up
from dealscope.domain.assumptions import MatchingAssumptions
from dealscope.domain.buyer import Buyer
from dealscope.services.matching import (
    exit_speed_score,
    history_score,
    match_buyers,
    price_score,
    quality_bucket,
    score_buyer,
    strategy_score,
    zip_score,
)

from fixtures.deals import flip_candidate, flipper_buyer, landlord_buyer, verdict_record


@pytest.fixture
def cfg():
    return MatchingAssumptions()


def test_zip_prefix_match_scores_seven():
    buyer = Buyer.model_validate({"buyer_id": "B-9", "preferred_zips": "75001,75002"})
    deal = flip_candidate(zipcode="75003")
    assert zip_score(deal, buyer) == 7


def test_zip_exact_city_and_miss():
    buyer = Buyer.model_validate({"buyer_id": "B-9", "preferred_zips": ["48201"], "preferred_cities": "Austin"})
    assert zip_score(flip_candidate(zipcode="48201"), buyer) == 10
    assert zip_score(flip_candidate(zipcode="78701", city="Austin"), buyer) == 6
    assert zip_score(flip_candidate(zipcode="10001", city="New York"), buyer) == 3


def test_zip_neutral_when_either_side_missing():
    buyer = Buyer.model_validate({"buyer_id": "B-9"})
    assert zip_score(flip_candidate(), buyer) == 5
    assert zip_score(flip_candidate(zipcode=""), flipper_buyer()) == 5


def test_strategy_scores(cfg):
    assert strategy_score("fix-flip", "fix-flip", cfg) == 10
    assert strategy_score("fix-flip", "wholesale", cfg) == 7      # compatibility is symmetric
    assert strategy_score("buy-hold", "brrrr", cfg) == 7
    assert strategy_score("fix-flip", "any", cfg) == 7
    assert strategy_score("fix-flip", "str", cfg) == 4
    assert strategy_score("fix-flip", None, cfg) == 5
    assert strategy_score(None, "fix-flip", cfg) == 5


@pytest.mark.parametrize(
    "price, expected",
    [
        (160_000, 10),   # 40% of 100k-250k band
        (140_000, 8),    # 26%
        (105_000, 6),    # edge
        (95_000, 5),     # just below, within 10%
        (400_000, 2),
        (0, 5),
    ],
)
def test_price_scores(price, expected):
    buyer = flipper_buyer()
    assert price_score(price, buyer, 0.10) == expected


def test_price_unbounded_budget():
    buyer = flipper_buyer(budget_max=None)
    assert price_score(5_000_000, buyer, 0.10) == 8
    assert price_score(95_000, buyer, 0.10) == 5
    assert price_score(50_000, buyer, 0.10) == 2


def test_exit_speed_scale():
    assert exit_speed_score("quick-flip", "quick-flip") == 10
    assert exit_speed_score("quick-flip", "medium") == 7
    assert exit_speed_score("quick-flip", "long-hold") == 4
    assert exit_speed_score("quick-flip", None) == 5
    assert exit_speed_score(None, "medium") == 5


def test_history_is_capped(cfg):
    assert history_score(flipper_buyer(), cfg) == 10
    assert history_score(flipper_buyer(deals_closed=0, avg_close_days=None), cfg) == 5
    assert history_score(flipper_buyer(deals_closed=5, avg_close_days=25), cfg) == 7


def test_perfect_match(cfg):
    m = score_buyer(flip_candidate(), flipper_buyer(), "flip", cfg, risk_score=30)
    assert m.total_score == 100
    assert (m.quality, m.recommendation) == ("Perfect", "Send immediately")
    assert "buys in 48201" in m.rationale


def test_quality_buckets(cfg):
    assert quality_bucket(90, cfg) == ("Perfect", "Send immediately")
    assert quality_bucket(75, cfg) == ("Strong", "Send")
    assert quality_bucket(60, cfg) == ("Good", "Monitor")
    assert quality_bucket(59, cfg) == ("Weak", "Don't send")


def test_match_buyers_filters_sorts_and_caps(cfg):
    deal = flip_candidate()
    verdict = verdict_record(best_strategy="flip")
    buyers = [
        landlord_buyer(),
        flipper_buyer(buyer_id="B-slow", reliability=6),
        flipper_buyer(),
        flipper_buyer(buyer_id="B-off", active=False),
    ]
    out = match_buyers(deal, verdict, buyers, cfg)
    ids = [m.buyer_id for m in out]

    assert ids == ["B-1", "B-slow"]
    assert all(m.total_score >= cfg.min_score for m in out)

    capped = match_buyers(deal, verdict, buyers, cfg, max_results=1)
    assert [m.buyer_id for m in capped] == ["B-1"]

    everyone = match_buyers(deal, verdict, buyers, cfg, min_score=0)
    assert "B-off" not in {m.buyer_id for m in everyone}
    assert len(everyone) == 3


def test_match_order_is_reproducible(cfg):
    deal = flip_candidate()
    verdict = verdict_record()
    buyers = [flipper_buyer(buyer_id=f"B-{i}") for i in range(5)]
    first = match_buyers(deal, verdict, buyers, cfg)
    second = match_buyers(deal, verdict, buyers, cfg)
    assert first == second
    assert [m.buyer_id for m in first] == [f"B-{i}" for i in range(5)]


def test_risk_above_tolerance_is_called_out(cfg):
    m = score_buyer(flip_candidate(), flipper_buyer(risk_tolerance="low"), "flip", cfg, risk_score=70)
    assert "above low tolerance" in m.rationale


def test_weights_must_fit_budget():
    with pytest.raises(ValueError):
        MatchingAssumptions(weights={"zip": 0.8, "strategy": 0.8})


@given(
    reliability=st.floats(min_value=-5, max_value=50, allow_nan=False),
    closed=st.integers(min_value=0, max_value=500),
    price=st.floats(min_value=0, max_value=5_000_000, allow_nan=False),
)
def test_total_always_within_bounds(reliability, closed, price):
    buyer = flipper_buyer(reliability=reliability, deals_closed=closed)
    m = score_buyer(flip_candidate(asking_price=price), buyer, "ltr", MatchingAssumptions())
    assert 0 <= m.total_score <= 100


def test_half_point_total_rounds_up_into_strong(cfg):
    # 7*.25 + 7*.30 + 8*.20 + 10*.15 + 5*.05 + 5*.05 = 7.45 -> 74.5
    buyer = flipper_buyer(
        preferred_zips="48299",
        preferred_strategy="rehab",
        budget_min=150_000,
        budget_max=250_000,
        deals_closed=0,
        avg_close_days=None,
        reliability=5,
    )
    m = score_buyer(flip_candidate(), buyer, "flip", cfg)
    assert (m.zip_score, m.strategy_score, m.price_score, m.exit_speed_score) == (7, 7, 8, 10)
    assert (m.history_score, m.reliability_score) == (5, 5)
    assert m.total_score == 75
    assert (m.quality, m.recommendation) == ("Strong", "Send")


@pytest.mark.parametrize("value, expected", [(74.5, 75), (74.4999, 74), (0.5, 1), (99.5, 100), (74.50000001, 75)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_equal_totals_prefer_property_type_and_risk_fit(cfg):
    deal = flip_candidate()
    verdict = verdict_record(deal.deal_id, risk_score=60)
    condo_only = flipper_buyer(buyer_id="B-condo", preferred_property_types="condo")
    cautious = flipper_buyer(buyer_id="B-low", risk_tolerance="low")
    fit = flipper_buyer(buyer_id="B-fit", preferred_property_types="sfh,condo", risk_tolerance="high")

    matches = match_buyers(deal, verdict, [condo_only, cautious, fit], cfg, min_score=0)
    assert len({m.total_score for m in matches}) == 1
    assert [m.buyer_id for m in matches] == ["B-fit", "B-low", "B-condo"]
    assert "does not list single_family" in matches[2].rationale
