# src/dealscope/analysis/market.py
from __future__ import annotations

from typing import Mapping

from dealscope.analysis.scoring import clamp, lookup, zip_lookup
from dealscope.domain.assumptions import MarketAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.ports import ZipLookupCache
from dealscope.domain.results import MarketSignal, RepairAssessment
from dealscope.domain.types import ExitRiskTier, SaturationTier, VelocityTier


def _zip_value(
    kind: str,
    table: Mapping[str, float],
    zipcode: str,
    cache: ZipLookupCache | None,
) -> float:
    if cache is None:
        return zip_lookup(table, zipcode)
    # keyed on the table contents too, so overridden tables never share entries
    key = (kind, (zipcode or "").strip()[:5], tuple(sorted(table.items())))
    return cache.get_or_compute(key, lambda: zip_lookup(table, zipcode))


class MarketScorer:
    """
    Market intelligence from days-on-market, state / ZIP proxies and the
    repair tier: sales velocity, exit risk (with its MAO multiplier),
    saturation (with its verdict boost) and an overall heat score.
    """

    def __init__(self, cfg: MarketAssumptions | None = None, zip_cache: ZipLookupCache | None = None) -> None:
        self.cfg = cfg or MarketAssumptions()
        self.zip_cache = zip_cache

    # -----------------------------------------------------------------
    # Velocity
    # -----------------------------------------------------------------

    def velocity_tier(self, dom: float) -> VelocityTier:
        c = self.cfg
        if dom <= c.dom_fast_max:
            return "Fast"
        if dom <= c.dom_moderate_max:
            return "Moderate"
        if dom <= c.dom_slow_max:
            return "Slow"
        return "Stale"

    def velocity(self, dom: float, state: str, zipcode: str) -> tuple[float, VelocityTier]:
        c = self.cfg
        tier = self.velocity_tier(dom)
        score = lookup(c.velocity_scores, tier, default=c.velocity_scores.get("Moderate", 70.0))
        if state in c.hot_states:
            score += c.state_velocity_adjustment
        elif state in c.cold_states:
            score -= c.state_velocity_adjustment
        score += _zip_value("velocity", c.zip_velocity_bonus, zipcode, self.zip_cache)
        return clamp(score), tier

    # -----------------------------------------------------------------
    # Exit risk
    # -----------------------------------------------------------------

    def exit_risk(
        self,
        velocity_tier: VelocityTier,
        price: float,
        repair_tier: str,
        property_type: str,
    ) -> tuple[float, ExitRiskTier, float]:
        c = self.cfg
        risk = c.exit_base
        risk += lookup(c.exit_velocity_adders, velocity_tier)
        risk += self._price_band(price)
        risk += lookup(c.exit_repair_adders, repair_tier)
        risk += lookup(c.exit_property_type_adders, property_type)
        risk = clamp(risk)

        tier: ExitRiskTier
        if risk <= c.exit_low_max:
            tier = "Low"
        elif risk <= c.exit_moderate_max:
            tier = "Moderate"
        elif risk <= c.exit_high_max:
            tier = "High"
        else:
            tier = "Critical"
        return risk, tier, lookup(c.mao_multipliers, tier, default=1.0)

    def _price_band(self, price: float) -> float:
        if price <= 0:
            return 0.0
        for bound, adder in self.cfg.exit_low_price_bands:
            if price < bound:
                return float(adder)
        for bound, adder in self.cfg.exit_high_price_bands:
            if price > bound:
                return float(adder)
        return 0.0

    # -----------------------------------------------------------------
    # Saturation (share-of-market)
    # -----------------------------------------------------------------

    def saturation(self, state: str, price: float, zipcode: str) -> tuple[float, SaturationTier, float]:
        c = self.cfg
        score = c.saturation_base
        if state in c.saturated_states:
            score += c.state_saturation_adjustment
        elif state in c.undersaturated_states:
            score -= c.state_saturation_adjustment
        if price > 0:
            for bound, adder in c.saturation_price_bands:
                if price < bound:
                    score += adder
                    break
        score += _zip_value("saturation", c.zip_saturation_adjustment, zipcode, self.zip_cache)
        score = clamp(score)

        tier: SaturationTier
        if score < c.saturation_low_max:
            tier = "Low"
        elif score < c.saturation_moderate_max:
            tier = "Moderate"
        elif score < c.saturation_high_max:
            tier = "High"
        else:
            tier = "Saturated"
        return score, tier, lookup(c.verdict_boosts, tier)

    # -----------------------------------------------------------------
    # Heat
    # -----------------------------------------------------------------

    def heat(self, velocity_score: float, saturation_score: float, dom: float) -> float:
        c = self.cfg
        score = (
            c.heat_base
            + c.heat_velocity_weight * (velocity_score - 50.0)
            - c.heat_saturation_weight * (saturation_score - 50.0)
        )
        if dom <= c.heat_dom_hot_max:
            score += c.heat_dom_bonus
        elif dom <= c.heat_dom_warm_max:
            score += c.heat_dom_warm_bonus
        elif dom > c.heat_dom_cold_min:
            score -= c.heat_dom_bonus
        elif dom > c.heat_dom_cool_min:
            score -= c.heat_dom_warm_bonus
        return clamp(score)

    def score(self, deal: Deal, repair: RepairAssessment) -> MarketSignal:
        dom = deal.days_on_market
        # exit bands read the resale value; fall back to asking when ARV is unknown
        resale = deal.arv if deal.arv > 0 else deal.asking_price

        velocity_score, velocity_tier = self.velocity(dom, deal.state, deal.zipcode)
        exit_score, exit_tier, mao_multiplier = self.exit_risk(
            velocity_tier, resale, repair.tier, deal.property_type
        )
        sat_score, sat_tier, boost = self.saturation(deal.state, deal.asking_price, deal.zipcode)

        return MarketSignal(
            velocity_score=round(velocity_score, 2),
            velocity_tier=velocity_tier,
            exit_risk_score=round(exit_score, 2),
            exit_risk_tier=exit_tier,
            mao_multiplier=mao_multiplier,
            saturation_score=round(sat_score, 2),
            saturation_tier=sat_tier,
            verdict_boost=boost,
            heat_score=round(self.heat(velocity_score, sat_score, dom), 2),
        )


def score_market(
    deal: Deal,
    repair: RepairAssessment,
    cfg: MarketAssumptions,
    zip_cache: ZipLookupCache | None = None,
) -> MarketSignal:
    return MarketScorer(cfg, zip_cache).score(deal, repair)
