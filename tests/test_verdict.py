import pytest
from hypothesis import given, settings, strategies as st

from dealscope.domain.assumptions import Assumptions, VerdictAssumptions
from dealscope.services.deal_analyzer import analyze_deal, analyze_payload
from dealscope.services.verdict import next_action, rank_verdicts

from fixtures.deals import deal_record, flip_candidate, no_equity_deal, verdict_record


def test_flip_candidate_components():
    ev = analyze_deal(flip_candidate())
    c = ev.verdict.components

    # flip margin 59,400 / 300,000 = 19.8% -> 15% tier
    assert c["profit"] == 20
    assert c["market"] == 7           # Moderate velocity +4, heat 60.9 +3
    assert c["quality"] == 6          # single family 4, age 35 +1, Moderate rehab +1
    assert c["best_strategy"] == 5
    assert ev.verdict.deal_score == pytest.approx(88)


def test_flip_candidate_risk_and_verdict():
    ev = analyze_deal(flip_candidate())
    v = ev.verdict
    # 30 base - 5 low exit + 30 * 0.2 repair + 5 medium comp confidence
    assert v.risk_score == pytest.approx(36)
    assert v.adjusted_score == pytest.approx(88 - 0.3 * 36)
    assert v.verdict == "SOLID"
    assert v.override_reason is None
    assert v.next_action == "Schedule call"
    assert v.grade == "A"


def test_no_equity_is_pass():
    ev = analyze_deal(no_equity_deal())
    assert ev.verdict.verdict == "PASS"
    assert ev.verdict.override_reason == "No equity"
    assert ev.verdict.next_action == "Archive"
    assert "ARV at or below asking price" in ev.verdict.weaknesses


def test_missing_arv_means_no_equity_and_low_confidence():
    ev = analyze_deal(flip_candidate(arv=None))
    assert ev.deal["comp_confidence"] == "low"
    assert ev.verdict.verdict == "PASS"
    codes = {f["code"] for f in ev.guardrails["flags"]}
    assert "ARV_MISSING" in codes


def test_motivation_keywords_add_points_without_double_counting():
    plain = analyze_deal(flip_candidate())
    motivated = analyze_deal(flip_candidate(motivation_signals="Pre-foreclosure, vacant"))
    assert motivated.verdict.components["motivation"] == 10      # 6 + 4, "foreclosure" not counted again
    assert motivated.verdict.deal_score >= plain.verdict.deal_score
    assert any("Motivated seller" in s for s in motivated.verdict.strengths)


def test_speed_to_lead_has_its_own_cap():
    default = analyze_deal(flip_candidate(sla_status="Fast"))
    capped = analyze_deal(
        flip_candidate(sla_status="Fast"),
        Assumptions(verdict=VerdictAssumptions(sla_cap=5.0)),
    )
    assert default.verdict.components["speed_to_lead"] == 15
    assert capped.verdict.components["speed_to_lead"] == 5
    assert capped.verdict.components["som_boost"] == default.verdict.components["som_boost"]


def test_opportunities_from_property_context():
    ev = analyze_deal(
        flip_candidate(property_type="duplex", lot_size="12,500", market_trend="Rising")
    )
    opportunities = ev.verdict.opportunities
    assert "Potential for unit conversion" in opportunities
    assert "Large lot - subdivision potential" in opportunities
    assert "Appreciating market" in opportunities

    plain = analyze_deal(flip_candidate(lot_size=8_000))
    assert "Large lot - subdivision potential" not in plain.verdict.opportunities
    assert "Potential for unit conversion" not in plain.verdict.opportunities


def test_declining_market_is_a_threat():
    declining = analyze_deal(flip_candidate(market_trend="declining"))
    assert "Declining market values" in declining.verdict.threats
    assert "Declining market values" not in analyze_deal(flip_candidate()).verdict.threats
    assert declining.to_dict()["verdict"]["threats"] == declining.verdict.threats


def test_sla_urgency_changes_next_action():
    cfg = VerdictAssumptions()
    assert next_action("SOLID", "Slow", cfg) == "Call today - SLA urgent"
    assert next_action("HOT", "Breach", cfg) == "Call now - SLA urgent"
    assert next_action("HOLD", "Breach", cfg) == "Nurture"


def test_success_probability_bounds():
    ev = analyze_deal(flip_candidate())
    assert 5 <= ev.verdict.success_probability <= 95


def test_rank_is_sequential_and_stable():
    records = [
        verdict_record("a", deal_score=70),
        verdict_record("b", deal_score=90),
        verdict_record("c", deal_score=70),
    ]
    ranked = rank_verdicts(records)
    assert [r.deal_id for r in ranked] == ["b", "a", "c"]
    assert [r.rank for r in ranked] == [1, 2, 3]


def test_analyze_payload_requires_deal_id():
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        analyze_payload({"asking_price": 100_000})


def test_evaluation_is_deterministic():
    a = analyze_deal(flip_candidate(), Assumptions()).to_dict()
    b = analyze_deal(flip_candidate(), Assumptions()).to_dict()
    assert a == b


@settings(max_examples=40, deadline=None)
@given(
    asking=st.floats(min_value=0, max_value=2_000_000, allow_nan=False),
    arv=st.floats(min_value=0, max_value=2_000_000, allow_nan=False),
    dom=st.floats(min_value=0, max_value=400, allow_nan=False),
    sqft=st.floats(min_value=0, max_value=10_000, allow_nan=False),
    state=st.sampled_from(["MI", "TX", "CA", "NY", "OH", ""]),
    ptype=st.sampled_from(["single_family", "condo", "mobile_home", "land", "duplex"]),
)
def test_scores_always_within_bounds(asking, arv, dom, sqft, state, ptype):
    deal = deal_record(
        asking_price=asking, arv=arv, days_on_market=dom, sqft=sqft, state=state, property_type=ptype
    )
    ev = analyze_payload(deal)
    assert 0 <= ev.verdict.deal_score <= 100
    assert 0 <= ev.verdict.risk_score <= 100
    assert ev.verdict.verdict in {"HOT", "SOLID", "HOLD", "PASS"}
    for s in ev.strategies:
        assert 0 <= s.score <= 100
