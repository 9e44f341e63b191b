# src/dealscope/strategies/short_term.py
from __future__ import annotations

from dealscope.analysis.scoring import clamp, lookup, tier_points
from dealscope.domain.assumptions import Assumptions, ShortTermRentalAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.finance import cash_on_cash, financed_purchase, safe_div
from dealscope.domain.results import MarketSignal, RepairAssessment, StrategyResult
from dealscope.strategies.base import register, rental_verdict


def nightly_rate(deal: Deal, cfg: ShortTermRentalAssumptions) -> float:
    table = cfg.adr_by_beds
    if not table:
        return 0.0
    beds = int(round(deal.beds))
    beds = max(min(table), min(beds, max(table)))
    adr = table.get(beds, table[max(table)])
    adr *= lookup(cfg.state_multipliers, deal.state, default=1.0)
    adr *= lookup(cfg.type_multipliers, deal.property_type, default=1.0)
    return adr


def regulation_tier(state: str, cfg: ShortTermRentalAssumptions) -> str:
    if state in cfg.high_regulation_states:
        return "High"
    if state in cfg.moderate_regulation_states:
        return "Moderate"
    return "Low"


def seasonality(state: str, cfg: ShortTermRentalAssumptions) -> str:
    if state in cfg.year_round_states:
        return "year_round"
    if state in cfg.seasonal_states:
        return "seasonal"
    return "low"


class ShortTermRentalEngine:
    strategy_id = "str"

    def evaluate(
        self,
        deal: Deal,
        repair: RepairAssessment,
        market: MarketSignal,
        assumptions: Assumptions,
    ) -> StrategyResult:
        cfg = assumptions.str_
        debt = financed_purchase(deal.asking_price, assumptions.financing)

        adr = nightly_rate(deal, cfg)
        booked_nights = cfg.nights_per_month * cfg.occupancy
        gross = adr * booked_nights
        turns = safe_div(booked_nights, cfg.avg_stay_nights, 0.0)

        platform_fee = gross * cfg.platform_fee_rate
        management_fee = gross * cfg.management_fee_rate
        cleaning = cfg.cleaning_per_turn * turns
        net_operating = gross - platform_fee - management_fee - cleaning

        carrying = debt.monthly_payment + debt.taxes_monthly + debt.insurance_monthly + cfg.utilities_monthly
        cash_flow = net_operating - carrying

        furnishing = cfg.furnishing_base + cfg.furnishing_per_bed * max(deal.beds, 1.0)
        cash_invested = debt.down_payment + debt.closing_costs + furnishing
        coc = cash_on_cash(cash_flow * 12.0, cash_invested)

        reg = regulation_tier(deal.state, cfg)
        season = seasonality(deal.state, cfg)

        score = cfg.base_score
        score += tier_points(cash_flow, cfg.cash_flow_tiers, below=cfg.cash_flow_negative_points)
        score += tier_points(coc, cfg.coc_tiers, below=cfg.coc_negative_points)
        score -= lookup(cfg.regulation_penalties, reg)
        score += lookup(cfg.seasonality_points, season)
        score = clamp(score)

        notes: list[str] = []
        if reg != "Low":
            notes.append(f"{reg} short-term rental regulation in {deal.state}")
        if season == "year_round":
            notes.append("Year-round demand market")

        return StrategyResult(
            strategy="str",
            score=round(score, 2),
            verdict=rental_verdict(score, cash_flow, assumptions.rental_verdicts),
            metrics={
                "adr": round(adr, 2),
                "occupancy": cfg.occupancy,
                "gross_monthly": round(gross, 2),
                "platform_fee": round(platform_fee, 2),
                "management_fee": round(management_fee, 2),
                "cleaning": round(cleaning, 2),
                "net_operating_monthly": round(net_operating, 2),
                "debt_service": round(debt.monthly_payment, 2),
                "monthly_cash_flow": round(cash_flow, 2),
                "annual_cash_flow": round(cash_flow * 12.0, 2),
                "furnishing_cost": round(furnishing, 2),
                "cash_invested": round(cash_invested, 2),
                "cash_on_cash": round(coc, 4),
            },
            notes=notes,
        )


ENGINE = register(ShortTermRentalEngine())
