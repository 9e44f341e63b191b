# src/dealscope/services/matching.py
from __future__ import annotations

from typing import Iterable, List, Optional

from dealscope.adapters.logging_utils import get_logger
from dealscope.analysis.scoring import ceiling_points, clamp, round_half_up, tier_points
from dealscope.domain.assumptions import MatchingAssumptions
from dealscope.domain.buyer import Buyer
from dealscope.domain.deal import Deal
from dealscope.domain.results import MatchResult, VerdictRecord
from dealscope.domain.types import EXIT_SPEED_ORDER, MatchQuality, Recommendation

logger = get_logger(__name__)

NEUTRAL = 5.0


# ---------------------------------------------------------------------
# Sub-scores (each 0-10)
# ---------------------------------------------------------------------

def zip_score(deal: Deal, buyer: Buyer) -> float:
    z = deal.zipcode.strip()[:5]
    if not z or not (buyer.preferred_zips or buyer.preferred_cities):
        return NEUTRAL
    zips = {p.strip()[:5] for p in buyer.preferred_zips}
    if z in zips:
        return 10.0
    if any(p[:3] == z[:3] for p in zips if len(p) >= 3):
        return 7.0
    if deal.city and deal.city.lower() in buyer.preferred_cities:
        return 6.0
    return 3.0


def strategies_compatible(a: str, b: str, cfg: MatchingAssumptions) -> bool:
    return b in cfg.compatibility.get(a, ()) or a in cfg.compatibility.get(b, ())


def strategy_score(deal_label: Optional[str], preference: Optional[str], cfg: MatchingAssumptions) -> float:
    if not deal_label or not preference:
        return NEUTRAL
    if preference == deal_label:
        return 10.0
    if preference == "any" or strategies_compatible(deal_label, preference, cfg):
        return 7.0
    return 4.0


def price_score(price: float, buyer: Buyer, tolerance: float) -> float:
    if price <= 0:
        return NEUTRAL
    lo = buyer.budget_min
    hi = buyer.budget_max

    if hi is None:
        if price >= lo:
            return 8.0
        return 5.0 if price >= lo * (1.0 - tolerance) else 2.0

    if lo <= price <= hi:
        width = hi - lo
        pos = (price - lo) / width if width > 0 else 0.5
        if 0.4 <= pos <= 0.7:
            return 10.0
        if 0.2 <= pos <= 0.9:
            return 8.0
        return 6.0

    if lo * (1.0 - tolerance) <= price <= hi * (1.0 + tolerance):
        return 5.0
    return 2.0


def exit_speed_score(deal_speed: Optional[str], preference: Optional[str]) -> float:
    if deal_speed not in EXIT_SPEED_ORDER or preference not in EXIT_SPEED_ORDER:
        return NEUTRAL
    gap = abs(EXIT_SPEED_ORDER.index(deal_speed) - EXIT_SPEED_ORDER.index(preference))  # type: ignore[arg-type]
    if gap == 0:
        return 10.0
    if gap == 1:
        return 7.0
    return 4.0


def history_score(buyer: Buyer, cfg: MatchingAssumptions) -> float:
    score = NEUTRAL + tier_points(buyer.deals_closed, cfg.closed_tiers)
    if buyer.avg_close_days is not None:
        score += ceiling_points(buyer.avg_close_days, cfg.close_days_tiers)
    return min(score, 10.0)


# ---------------------------------------------------------------------
# Total
# ---------------------------------------------------------------------

def quality_bucket(total: float, cfg: MatchingAssumptions) -> tuple[MatchQuality, Recommendation]:
    if total >= cfg.perfect_min:
        return "Perfect", "Send immediately"
    if total >= cfg.strong_min:
        return "Strong", "Send"
    if total >= cfg.good_min:
        return "Good", "Monitor"
    return "Weak", "Don't send"


def _rationale(
    deal: Deal,
    buyer: Buyer,
    subs: dict[str, float],
    deal_label: Optional[str],
    risk_score: Optional[float],
    cfg: MatchingAssumptions,
) -> str:
    parts: List[str] = []
    if subs["zip"] == 10.0:
        parts.append(f"buys in {deal.zipcode}")
    elif subs["zip"] == 7.0:
        parts.append(f"buys near {deal.zipcode}")
    elif subs["zip"] == 6.0:
        parts.append(f"buys in {deal.city}")
    if subs["strategy"] == 10.0:
        parts.append(f"wants {deal_label}")
    elif subs["strategy"] == 7.0:
        parts.append(f"{buyer.preferred_strategy} fits {deal_label}")
    if subs["price"] >= 8.0:
        parts.append("price in budget sweet spot")
    elif subs["price"] == 6.0:
        parts.append("price at edge of budget")
    elif subs["price"] <= 2.0:
        parts.append("price outside budget")
    if buyer.preferred_property_types and deal.property_type not in buyer.preferred_property_types:
        parts.append(f"does not list {deal.property_type}")
    if buyer.deals_closed:
        parts.append(f"{buyer.deals_closed} deals closed")
    ceiling = cfg.risk_tolerance_ceiling.get(buyer.risk_tolerance)
    if risk_score is not None and ceiling is not None and risk_score > ceiling:
        parts.append(f"risk {risk_score:.0f} above {buyer.risk_tolerance} tolerance")
    return "; ".join(parts) if parts else "no strong fit signals"


def secondary_fit(deal: Deal, buyer: Buyer, risk_score: Optional[float], cfg: MatchingAssumptions) -> tuple[int, int]:
    """
    Tie-break among equal totals: buyers who list the deal's property type
    (or list none) and whose risk tolerance covers the deal rank first.
    0 is a fit, 1 a miss.
    """
    types = buyer.preferred_property_types
    type_miss = int(bool(types) and deal.property_type not in types)
    ceiling = cfg.risk_tolerance_ceiling.get(buyer.risk_tolerance)
    risk_miss = int(risk_score is not None and ceiling is not None and risk_score > ceiling)
    return type_miss, risk_miss


def score_buyer(
    deal: Deal,
    buyer: Buyer,
    best_strategy: Optional[str],
    cfg: MatchingAssumptions,
    risk_score: Optional[float] = None,
    price_tolerance: Optional[float] = None,
) -> MatchResult:
    tolerance = cfg.price_tolerance if price_tolerance is None else price_tolerance
    deal_label = cfg.strategy_labels.get(best_strategy) if best_strategy else None
    deal_speed = cfg.exit_speeds.get(best_strategy) if best_strategy else None

    subs = {
        "zip": zip_score(deal, buyer),
        "strategy": strategy_score(deal_label, buyer.preferred_strategy, cfg),
        "price": price_score(deal.asking_price, buyer, tolerance),
        "exit_speed": exit_speed_score(deal_speed, buyer.exit_speed),
        "history": history_score(buyer, cfg),
        "reliability": buyer.reliability,
    }
    weighted = sum(subs[k] * cfg.weights.get(k, 0.0) for k in subs)
    total = round_half_up(clamp(weighted * cfg.score_scale))
    quality, recommendation = quality_bucket(total, cfg)

    return MatchResult(
        deal_id=deal.deal_id,
        buyer_id=buyer.buyer_id,
        zip_score=subs["zip"],
        strategy_score=subs["strategy"],
        price_score=subs["price"],
        exit_speed_score=subs["exit_speed"],
        history_score=subs["history"],
        reliability_score=subs["reliability"],
        total_score=total,
        quality=quality,
        recommendation=recommendation,
        rationale=_rationale(deal, buyer, subs, deal_label, risk_score, cfg),
    )


def match_buyers(
    deal: Deal,
    verdict: VerdictRecord,
    buyers: Iterable[Buyer],
    cfg: MatchingAssumptions,
    min_score: Optional[float] = None,
    max_results: Optional[int] = None,
    price_tolerance: Optional[float] = None,
) -> List[MatchResult]:
    """
    Score every active buyer against one evaluated deal and keep those at or
    above the threshold, best first, capped. Equal totals fall back to
    property-type and risk-tolerance fit, then buyer input order.
    """
    threshold = cfg.min_score if min_score is None else min_score
    cap = cfg.max_results if max_results is None else max_results

    scored = [
        (score_buyer(deal, b, verdict.best_strategy, cfg, verdict.risk_score, price_tolerance), b)
        for b in buyers
        if b.active
    ]
    ranked = [
        (m, secondary_fit(deal, b, verdict.risk_score, cfg)) for m, b in scored if m.total_score >= threshold
    ]
    ranked.sort(key=lambda pair: (-pair[0].total_score, pair[1]))
    kept = [m for m, _ in ranked]

    logger.info(
        "buyer_matches",
        extra={"context": {"deal_id": deal.deal_id, "scored": len(scored), "kept": min(len(kept), cap)}},
    )
    return kept[: max(cap, 0)]
