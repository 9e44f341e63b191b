# src/dealscope/services/verdict.py
from __future__ import annotations

from typing import Dict, List, Sequence

from dealscope.adapters.logging_utils import get_logger
from dealscope.analysis.scoring import (
    ceiling_points,
    clamp,
    letter_grade,
    lookup,
    motivation_points,
    success_probability,
    tier_points,
)
from dealscope.domain.assumptions import Assumptions, VerdictAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.finance import safe_div
from dealscope.domain.results import (
    Comparison,
    MarketSignal,
    RepairAssessment,
    StrategyResult,
    VerdictRecord,
)
from dealscope.domain.rules import VerdictContext, apply_overrides, verdict_for_score
from dealscope.domain.types import STRATEGY_NAMES, NextAction, Verdict

logger = get_logger(__name__)


def profit_margin(deal: Deal, repair: RepairAssessment, strategies: Sequence[StrategyResult]) -> float:
    """Flip net profit over ARV; falls back to the raw equity spread without a flip model."""
    for s in strategies:
        if s.strategy == "flip" and "net_profit" in s.metrics:
            return safe_div(s.metrics["net_profit"], deal.arv, 0.0)
    return safe_div(deal.arv - deal.asking_price - repair.mid, deal.arv, 0.0)


# ---------------------------------------------------------------------
# Deal score
# ---------------------------------------------------------------------

def deal_score_components(
    deal: Deal,
    repair: RepairAssessment,
    market: MarketSignal,
    strategies: Sequence[StrategyResult],
    comparison: Comparison,
    assumptions: Assumptions,
) -> Dict[str, float]:
    cfg = assumptions.verdict
    margin = profit_margin(deal, repair, strategies)
    age = max(0, assumptions.repair.reference_year - deal.year_built)

    market_pts = lookup(cfg.velocity_points, market.velocity_tier)
    market_pts += tier_points(market.heat_score, cfg.heat_tiers, below=cfg.heat_floor_points)

    motivation, _ = motivation_points(deal.signal_text, cfg.motivation_keywords, cfg.motivation_min, cfg.motivation_max)

    quality = lookup(cfg.type_quality, deal.property_type)
    quality += ceiling_points(age, cfg.age_quality_tiers, above=cfg.age_quality_floor)
    quality += lookup(cfg.repair_quality, repair.tier)

    return {
        "base": cfg.deal_base,
        "profit": tier_points(margin, cfg.margin_tiers, below=cfg.margin_negative_points),
        "market": clamp(market_pts, -cfg.market_cap, cfg.market_cap),
        "motivation": motivation,
        "quality": clamp(quality, cfg.quality_min, cfg.quality_max),
        "speed_to_lead": clamp(lookup(cfg.sla_points, deal.sla_status), -cfg.sla_cap, cfg.sla_cap),
        "som_boost": clamp(market.verdict_boost, -cfg.som_cap, cfg.som_cap),
        "best_strategy": cfg.best_strategy_bonus if comparison.best is not None and comparison.best_score > 0 else 0.0,
    }


# ---------------------------------------------------------------------
# Risk score
# ---------------------------------------------------------------------

def _price_risk(price: float, cfg: VerdictAssumptions) -> float:
    if price <= 0:
        return 0.0
    for bound, points in cfg.price_low_bands:
        if price < bound:
            return float(points)
    if price > cfg.price_high_min:
        return cfg.price_high_points
    return 0.0


def _dom_risk(dom: float, cfg: VerdictAssumptions) -> float:
    for bound, points in cfg.dom_risk_bands:
        if dom > bound:
            return float(points)
    if dom <= cfg.dom_fresh_max:
        return cfg.dom_fresh_points
    return 0.0


def risk_score_components(
    deal: Deal,
    repair: RepairAssessment,
    market: MarketSignal,
    cfg: VerdictAssumptions,
) -> Dict[str, float]:
    return {
        "base": cfg.risk_base,
        "exit": lookup(cfg.exit_tier_points, market.exit_risk_tier, default=cfg.exit_tier_points.get("Moderate", 0.0)),
        "repair": repair.risk_score * cfg.repair_risk_weight,
        "saturation": lookup(cfg.saturation_points, market.saturation_tier),
        "property_type": lookup(cfg.type_risk, deal.property_type),
        "price": _price_risk(deal.asking_price, cfg),
        "comp_confidence": lookup(cfg.comp_confidence_points, deal.comp_confidence),
        "days_on_market": _dom_risk(deal.days_on_market, cfg),
    }


# ---------------------------------------------------------------------
# Narrative
# ---------------------------------------------------------------------

def _strengths(
    deal: Deal,
    repair: RepairAssessment,
    market: MarketSignal,
    comparison: Comparison,
    margin: float,
    motivation_hits: List[str],
) -> List[str]:
    out: List[str] = []
    if margin >= 0.15:
        out.append(f"Strong profit margin ({margin:.0%})")
    if market.velocity_tier == "Fast":
        out.append("Fast-moving market")
    if market.saturation_tier == "Low":
        out.append("Low investor competition")
    if motivation_hits:
        out.append("Motivated seller: " + ", ".join(motivation_hits))
    if repair.tier == "Cosmetic":
        out.append("Cosmetic rehab only")
    if deal.sla_status == "Fast":
        out.append("Fast lead response")
    if comparison.best is not None and comparison.best_score >= 75:
        out.append(f"{STRATEGY_NAMES.get(comparison.best, comparison.best)} exit scores {comparison.best_score:.0f}")
    return out


def _weaknesses(deal: Deal, repair: RepairAssessment, market: MarketSignal, margin: float) -> List[str]:
    out: List[str] = []
    if deal.arv <= deal.asking_price:
        out.append("ARV at or below asking price")
    elif margin < 0.05:
        out.append("Thin profit margin")
    if market.exit_risk_tier in ("High", "Critical"):
        out.append(f"{market.exit_risk_tier} exit risk")
    if repair.tier in ("FullGut", "Teardown"):
        out.append(f"{repair.tier} rehab required")
    if market.saturation_tier == "Saturated":
        out.append("Saturated investor market")
    if deal.comp_confidence == "low":
        out.append("Low-confidence ARV")
    if deal.days_on_market > 90:
        out.append("Stale listing")
    if deal.sla_status == "Breach":
        out.append("Lead response SLA breached")
    return out


def _opportunities(
    deal: Deal,
    strategies: Sequence[StrategyResult],
    cfg: VerdictAssumptions,
) -> List[str]:
    out: List[str] = []
    if deal.property_type == "multi_family" or "multi" in deal.zoning.lower():
        out.append("Potential for unit conversion")
    if deal.lot_size is not None and deal.lot_size > cfg.large_lot_sqft:
        out.append("Large lot - subdivision potential")
    if deal.market_trend == "up":
        out.append("Appreciating market")
    for s in strategies:
        if s.strategy == "flip" and s.metrics.get("assignment_fee", 0.0) > 0:
            out.append(f"Assignment fee opportunity (${s.metrics['assignment_fee']:,.0f})")
        if s.strategy == "creative" and s.best_option is not None:
            out.append(f"Creative terms available ({s.best_option})")
    return out


def _threats(deal: Deal, market: MarketSignal) -> List[str]:
    out: List[str] = []
    if deal.market_trend == "down":
        out.append("Declining market values")
    if market.saturation_tier in ("High", "Saturated"):
        out.append("High investor competition in area")
    if market.velocity_tier == "Stale":
        out.append("Stale resale market")
    if market.exit_risk_tier in ("High", "Critical"):
        out.append(f"{market.exit_risk_tier} exit risk on resale")
    return out


# ---------------------------------------------------------------------
# Verdict
# ---------------------------------------------------------------------

def next_action(verdict: Verdict, sla_status: str, cfg: VerdictAssumptions) -> NextAction:
    if sla_status in cfg.urgent_sla_statuses and verdict in cfg.urgent_actions:
        return cfg.urgent_actions[verdict]  # type: ignore[return-value]
    return cfg.next_actions.get(verdict, "Nurture")  # type: ignore[return-value]


def evaluate_verdict(
    deal: Deal,
    repair: RepairAssessment,
    market: MarketSignal,
    strategies: Sequence[StrategyResult],
    comparison: Comparison,
    assumptions: Assumptions,
) -> VerdictRecord:
    cfg = assumptions.verdict

    components = deal_score_components(deal, repair, market, strategies, comparison, assumptions)
    risk_components = risk_score_components(deal, repair, market, cfg)
    deal_score = round(clamp(sum(components.values())), 2)
    risk_score = round(clamp(sum(risk_components.values())), 2)

    adjusted = round(deal_score - cfg.risk_weight * risk_score, 2)
    base_verdict = verdict_for_score(adjusted, cfg)

    ctx = VerdictContext(
        base_verdict=base_verdict,
        adjusted_score=adjusted,
        risk_score=risk_score,
        sla_status=deal.sla_status,
        arv=deal.arv,
        asking_price=deal.asking_price,
    )
    verdict, reason = apply_overrides(ctx, cfg)
    if reason is not None:
        logger.info(
            "verdict_override",
            extra={"context": {"deal_id": deal.deal_id, "from": base_verdict, "to": verdict, "reason": reason}},
        )

    margin = profit_margin(deal, repair, strategies)
    _, hits = motivation_points(deal.signal_text, cfg.motivation_keywords, cfg.motivation_min, cfg.motivation_max)

    return VerdictRecord(
        deal_id=deal.deal_id,
        deal_score=deal_score,
        risk_score=risk_score,
        adjusted_score=adjusted,
        base_verdict=base_verdict,
        verdict=verdict,
        override_reason=reason,
        next_action=next_action(verdict, deal.sla_status, cfg),
        best_strategy=comparison.best,
        grade=letter_grade(deal_score),
        success_probability=round(success_probability(deal_score, risk_score), 2),
        components=components,
        risk_components={k: round(v, 2) for k, v in risk_components.items()},
        strengths=_strengths(deal, repair, market, comparison, margin, hits),
        weaknesses=_weaknesses(deal, repair, market, margin),
        opportunities=_opportunities(deal, strategies, cfg),
        threats=_threats(deal, market),
    )


def rank_verdicts(records: Sequence[VerdictRecord]) -> List[VerdictRecord]:
    """
    Order the whole run by Deal Score, highest first, and number it 1..N.
    The sort is stable, so equal scores keep their input order.
    """
    ordered = sorted(records, key=lambda r: r.deal_score, reverse=True)
    for i, rec in enumerate(ordered, start=1):
        rec.rank = i
    return ordered
