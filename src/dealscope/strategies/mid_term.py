# src/dealscope/strategies/mid_term.py
from __future__ import annotations

from dealscope.analysis.scoring import clamp, tier_points
from dealscope.domain.assumptions import Assumptions, MidTermRentalAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.finance import financed_purchase, safe_div
from dealscope.domain.results import MarketSignal, RepairAssessment, StrategyResult
from dealscope.strategies.base import monthly_rent, register, rental_verdict


def stability_points(turns_per_year: float, cfg: MidTermRentalAssumptions) -> float:
    pts = 0.0
    if cfg.avg_stay_months >= cfg.long_stay_months:
        pts += cfg.long_stay_points
    elif cfg.avg_stay_months >= cfg.short_stay_months:
        pts += cfg.short_stay_points
    if turns_per_year <= cfg.low_turns_per_year:
        pts += cfg.low_turns_points
    elif turns_per_year > cfg.high_turns_per_year:
        pts += cfg.high_turns_points
    return pts


def advantage_points(advantage: float, cfg: MidTermRentalAssumptions) -> float:
    for threshold, points in cfg.advantage_tiers:
        if advantage > threshold:
            return float(points)
    if advantage > 0:
        return cfg.advantage_positive_points
    return cfg.advantage_negative_points


class MidTermRentalEngine:
    strategy_id = "mtr"

    def evaluate(
        self,
        deal: Deal,
        repair: RepairAssessment,
        market: MarketSignal,
        assumptions: Assumptions,
    ) -> StrategyResult:
        cfg = assumptions.mtr
        ltr = assumptions.ltr
        debt = financed_purchase(deal.asking_price, assumptions.financing)

        rent = monthly_rent(deal, assumptions)
        furnished_rent = rent * cfg.furnished_premium
        turns_per_year = safe_div(12.0, cfg.avg_stay_months + cfg.vacancy_gap_months, 0.0)

        furniture = safe_div(cfg.furnishing_cost, cfg.furnishing_amort_months, 0.0)
        management = furnished_rent * cfg.management_fee_rate
        net_operating = furnished_rent - cfg.utilities_monthly - furniture - management

        cash_flow = net_operating - debt.monthly_payment - debt.taxes_monthly - debt.insurance_monthly

        ltr_equivalent = rent * (1.0 - ltr.vacancy_rate - ltr.management_rate - ltr.maintenance_rate)
        advantage = net_operating - ltr_equivalent

        score = cfg.base_score
        score += tier_points(cash_flow, cfg.cash_flow_tiers, below=cfg.cash_flow_negative_points)
        score += stability_points(turns_per_year, cfg)
        score += advantage_points(advantage, cfg)
        score = clamp(score)

        notes: list[str] = []
        if advantage <= 0:
            notes.append("Furnished premium does not beat an unfurnished lease")

        return StrategyResult(
            strategy="mtr",
            score=round(score, 2),
            verdict=rental_verdict(score, cash_flow, assumptions.rental_verdicts),
            metrics={
                "market_rent": round(rent, 2),
                "furnished_rent": round(furnished_rent, 2),
                "turns_per_year": round(turns_per_year, 2),
                "utilities": cfg.utilities_monthly,
                "furniture_amortization": round(furniture, 2),
                "management_fee": round(management, 2),
                "net_operating_monthly": round(net_operating, 2),
                "debt_service": round(debt.monthly_payment, 2),
                "monthly_cash_flow": round(cash_flow, 2),
                "annual_cash_flow": round(cash_flow * 12.0, 2),
                "ltr_equivalent_net": round(ltr_equivalent, 2),
                "advantage_vs_ltr": round(advantage, 2),
            },
            notes=notes,
        )


ENGINE = register(MidTermRentalEngine())
