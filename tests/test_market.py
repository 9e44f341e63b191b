import pytest

from dealscope.adapters.zip_cache import ZipSignalCache
from dealscope.analysis.market import MarketScorer, score_market
from dealscope.domain.assumptions import MarketAssumptions

from fixtures.deals import flip_candidate, repair


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.mark.parametrize(
    "dom, tier",
    [(0, "Fast"), (14, "Fast"), (15, "Moderate"), (45, "Moderate"), (90, "Slow"), (91, "Stale")],
)
def test_velocity_tiers(dom, tier):
    assert MarketScorer().velocity_tier(dom) == tier


def test_velocity_state_and_zip_adjustments():
    scorer = MarketScorer()
    score, tier = scorer.velocity(10, "TX", "75003")
    # Fast 90 + hot state 10 + "750" prefix 3, clamped
    assert tier == "Fast"
    assert score == 100

    score, _ = scorer.velocity(30, "NY", "10001")
    assert score == 60


def test_exit_risk_tiers_and_mao_multiplier():
    scorer = MarketScorer()
    risk, tier, mult = scorer.exit_risk("Moderate", 300_000, "Moderate", "single_family")
    assert (risk, tier, mult) == (30, "Low", 1.0)

    risk, tier, mult = scorer.exit_risk("Stale", 60_000, "Teardown", "mobile_home")
    assert risk == 100
    assert tier == "Critical"
    assert mult == 0.85


def test_exit_price_bands():
    scorer = MarketScorer()
    assert scorer._price_band(0) == 0
    assert scorer._price_band(70_000) == 15
    assert scorer._price_band(90_000) == 5
    assert scorer._price_band(200_000) == 0
    assert scorer._price_band(400_000) == 10
    assert scorer._price_band(600_000) == 20


def test_saturation_and_boost():
    scorer = MarketScorer()
    score, tier, boost = scorer.saturation("OH", 90_000, "44101")
    # 50 - 15 (undersaturated) + 20 (price < 100k) - 5 (441)
    assert score == 50
    assert tier == "Moderate"
    assert boost == 0

    score, tier, boost = scorer.saturation("CA", 90_000, "90001")
    assert tier == "Saturated"
    assert boost == -15


def test_score_market_end_to_end():
    deal = flip_candidate()
    m = score_market(deal, repair(), MarketAssumptions())
    assert m.velocity_tier == "Moderate"
    assert m.exit_risk_tier == "Low"
    assert m.saturation_tier == "Moderate"
    assert m.heat_score == pytest.approx(60.9)


def test_zip_lookups_go_through_cache():
    cache = ZipSignalCache(ttl_seconds=60)
    cfg = MarketAssumptions()
    deal = flip_candidate(zipcode="75003", state="TX")

    first = score_market(deal, repair(), cfg, cache)
    assert cache.misses == 2        # velocity + saturation
    assert cache.hits == 0

    second = score_market(deal, repair(), cfg, cache)
    assert cache.hits == 2
    assert first == second


def test_cache_entries_expire_and_recompute():
    timer = FakeTimer()
    cache = ZipSignalCache(ttl_seconds=10, timer=timer)
    calls = []

    def compute():
        calls.append(1)
        return 3.0

    assert cache.get_or_compute("k", compute) == 3.0
    assert cache.get_or_compute("k", compute) == 3.0
    assert len(calls) == 1

    timer.now = 11
    assert cache.get_or_compute("k", compute) == 3.0
    assert len(calls) == 2


def test_overridden_zip_table_does_not_share_cache_entries():
    cache = ZipSignalCache(ttl_seconds=60)
    deal = flip_candidate(zipcode="75003", state="MI")
    a = score_market(deal, repair(), MarketAssumptions(), cache)
    b = score_market(deal, repair(), MarketAssumptions(zip_velocity_bonus={"750": 0.0}), cache)
    assert a.velocity_score - b.velocity_score == pytest.approx(3.0)
