import pytest
from hypothesis import given, strategies as st

from dealscope.analysis.repair import RepairEstimator, assess_repairs
from dealscope.domain.assumptions import RepairAssumptions

from fixtures.deals import flip_candidate


@pytest.fixture
def estimator():
    return RepairEstimator(RepairAssumptions())


def test_keyword_priority_teardown_beats_cosmetic(estimator):
    tier, kw = estimator.classify("fresh paint but condemned by the city", 2015)
    assert tier == "Teardown"
    assert kw == "condemned"


def test_full_gut_beats_heavy(estimator):
    tier, _ = estimator.classify("full gut needed, foundation issues", 2015)
    assert tier == "FullGut"


@pytest.mark.parametrize(
    "year_built, expected",
    [(2000, "Cosmetic"), (1985, "Moderate"), (1970, "Heavy"), (1950, "FullGut")],
)
def test_age_fallback_when_no_keyword(estimator, year_built, expected):
    tier, kw = estimator.classify("nice house", year_built)
    assert tier == expected
    assert kw is None


def test_cost_range_is_sqft_times_tier_multipliers(estimator):
    a = estimator.assess(sqft=1200, year_built=1990, text="")
    assert a.tier == "Moderate"
    assert a.low == pytest.approx(1200 * 15)
    assert a.high == pytest.approx(1200 * 35)
    assert a.mid == pytest.approx(30_000)


def test_missing_inputs_use_defaults(estimator):
    a = estimator.assess(sqft=None, year_built=None)
    # 1500 sqft, built 1980 -> age 45 -> Heavy
    assert a.tier == "Heavy"
    assert a.low == pytest.approx(1500 * 35)


def test_breakdown_has_every_category_and_ten_percent_contingency(estimator):
    a = estimator.assess(sqft=1500, year_built=1960, text="")
    expected = {
        "roof", "hvac", "plumbing", "electrical", "foundation", "kitchen", "baths",
        "flooring", "paint", "openings", "exterior", "landscaping", "contingency",
    }
    assert set(a.breakdown) == expected
    subtotal = sum(v for k, v in a.breakdown.items() if k != "contingency")
    assert a.breakdown["contingency"] == pytest.approx(subtotal * 0.10, abs=0.01)
    assert a.breakdown_total == pytest.approx(subtotal + a.breakdown["contingency"], abs=0.02)


def test_cosmetic_tier_skips_structural_categories(estimator):
    a = estimator.assess(sqft=1000, year_built=2020, text="light rehab, paint")
    assert a.tier == "Cosmetic"
    assert a.breakdown["foundation"] == 0.0
    assert a.breakdown["kitchen"] == 0.0
    assert a.breakdown["roof"] == 0.0


def test_risk_adjustments(estimator):
    # Heavy (50) + old (+10) + mobile home (+15)
    assert estimator.risk_score("Heavy", 70, "mobile_home") == 75
    # Cosmetic (10) - new (10) - condo (5) clamps at 0
    assert estimator.risk_score("Cosmetic", 5, "condo") == 0


def test_assess_repairs_reads_deal_text():
    deal = flip_candidate(description="Roof replacement needed")
    a = assess_repairs(deal, RepairAssumptions())
    assert a.tier == "Heavy"
    assert a.matched_keyword == "roof replacement"


@given(
    sqft=st.floats(min_value=-100, max_value=20_000, allow_nan=False),
    year=st.integers(min_value=1700, max_value=2100),
    ptype=st.sampled_from(["single_family", "condo", "mobile_home", "multi_family", "land"]),
)
def test_risk_score_always_within_bounds(sqft, year, ptype):
    a = RepairEstimator().assess(sqft=sqft, year_built=year, property_type=ptype)
    assert 0 <= a.risk_score <= 100
    assert a.low <= a.mid <= a.high
