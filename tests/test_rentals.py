import math

import pytest

from dealscope.analysis.market import score_market
from dealscope.domain.assumptions import Assumptions, MidTermRentalAssumptions, RentalVerdictAssumptions
from dealscope.domain.finance import dscr, financed_purchase, monthly_payment
from dealscope.strategies.base import get_engine, rental_verdict
from dealscope.strategies.long_term import hold_quality
from dealscope.strategies.mid_term import advantage_points
from dealscope.strategies.short_term import nightly_rate, regulation_tier

from fixtures.deals import rental_deal, repair


def _evaluate(strategy_id, deal, assumptions=None):
    a = assumptions or Assumptions()
    r = repair()
    market = score_market(deal, r, a.market)
    return get_engine(strategy_id).evaluate(deal, r, market, a)


# ---------------------------------------------------------------------
# LTR
# ---------------------------------------------------------------------

def test_ltr_noi_and_cash_flow():
    deal = rental_deal()
    m = _evaluate("ltr", deal).metrics

    rent = 1_700.0
    price = 120_000.0
    noi = rent * 0.92 - rent * 0.08 - price * 0.012 / 12 - price * 0.005 / 12 - rent * 0.05 - rent * 0.10
    payment = monthly_payment(price * 0.75, 0.07, 30)

    assert m["noi_monthly"] == pytest.approx(noi, abs=0.01)
    assert m["monthly_cash_flow"] == pytest.approx(noi - payment, abs=0.01)
    assert m["dscr"] == pytest.approx(noi / payment, abs=1e-3)


def test_ltr_good_deal_scores_well():
    result = _evaluate("ltr", rental_deal())
    assert result.verdict in {"Excellent", "Good"}
    assert result.metrics["dscr"] > 1.25


def test_ltr_below_one_dscr_is_avoid():
    result = _evaluate("ltr", rental_deal(market_rent=900))
    assert result.metrics["dscr"] < 1.0
    assert result.verdict == "Avoid"
    assert any("DSCR" in n for n in result.notes)


def test_ltr_no_debt_dscr_is_capped():
    a = Assumptions(financing={"ltv": 0.0})
    result = _evaluate("ltr", rental_deal(), a)
    assert result.metrics["dscr"] == 99.0


def test_dscr_without_debt_is_infinite():
    assert math.isinf(dscr(1_000.0, 0.0))


def test_hold_quality_bounds():
    from dealscope.domain.assumptions import LongTermRentalAssumptions

    cfg = LongTermRentalAssumptions()
    assert hold_quality(2.0, 0.2, 5, cfg) == 100
    assert hold_quality(0.5, -0.1, 90, cfg) == 5


# ---------------------------------------------------------------------
# STR
# ---------------------------------------------------------------------

def test_str_nightly_rate_uses_beds_state_and_type():
    cfg = Assumptions().str_
    deal = rental_deal(state="FL", beds=3, property_type="condo")
    assert nightly_rate(deal, cfg) == pytest.approx(160 * 1.25 * 0.9)


def test_str_beds_outside_table_are_clamped():
    cfg = Assumptions().str_
    assert nightly_rate(rental_deal(beds=9, state="MI"), cfg) == pytest.approx(240)
    assert nightly_rate(rental_deal(beds=0, state="MI"), cfg) == pytest.approx(95)


def test_str_regulation_penalty_lowers_score():
    cfg = Assumptions().str_
    assert regulation_tier("NY", cfg) == "High"
    assert regulation_tier("NV", cfg) == "Moderate"

    free = _evaluate("str", rental_deal(state="MI"))
    regulated = _evaluate("str", rental_deal(state="NY"))
    assert regulated.score <= free.score
    assert any("regulation" in n for n in regulated.notes)


def test_str_cash_flow_subtracts_carrying_costs():
    deal = rental_deal(state="MI")
    m = _evaluate("str", deal).metrics
    debt = financed_purchase(deal.asking_price, Assumptions().financing)
    carrying = debt.monthly_payment + debt.taxes_monthly + debt.insurance_monthly + 300.0
    assert m["monthly_cash_flow"] == pytest.approx(m["net_operating_monthly"] - carrying, abs=0.02)


# ---------------------------------------------------------------------
# MTR
# ---------------------------------------------------------------------

def test_mtr_furnished_premium_and_turns():
    m = _evaluate("mtr", rental_deal()).metrics
    assert m["furnished_rent"] == pytest.approx(1_700 * 1.35)
    assert m["turns_per_year"] == pytest.approx(12 / 3.5, abs=0.01)


@pytest.mark.parametrize(
    "advantage, points",
    [(600, 15), (500, 10), (300, 10), (200, 5), (50, 5), (0, -10), (-100, -10)],
)
def test_mtr_advantage_tiers(advantage, points):
    assert advantage_points(advantage, MidTermRentalAssumptions()) == points


def test_negative_cash_flow_always_avoids():
    cfg = RentalVerdictAssumptions()
    assert rental_verdict(95, -1, cfg) == "Avoid"
    assert rental_verdict(80, 100, cfg) == "Excellent"
    assert rental_verdict(65, 100, cfg) == "Good"
    assert rental_verdict(50, 100, cfg) == "Marginal"
    assert rental_verdict(30, 100, cfg) == "Avoid"


def test_unknown_strategy_raises():
    with pytest.raises(KeyError):
        get_engine("timeshare")
