# src/dealscope/strategies/flip.py
from __future__ import annotations

from dealscope.analysis.scoring import clamp, tier_points
from dealscope.domain.assumptions import Assumptions, FlipAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.finance import safe_div
from dealscope.domain.results import MarketSignal, RepairAssessment, StrategyResult
from dealscope.strategies.base import register


def holding_months(dom: float, cfg: FlipAssumptions) -> int:
    for max_dom, months in cfg.holding_months_by_dom:
        if dom <= max_dom:
            return int(months)
    return int(cfg.holding_months_max)


def profit_points(profit: float, cfg: FlipAssumptions) -> float:
    if profit <= 0:
        return cfg.profit_negative_points
    return tier_points(profit, cfg.profit_tiers, below=cfg.profit_positive_points)


def flip_verdict(score: float, profit: float, cfg: FlipAssumptions) -> str:
    if profit <= 0:
        return "PASS"
    if score >= cfg.strong_buy_min:
        return "STRONG BUY"
    if score >= cfg.buy_min:
        return "BUY"
    if score >= cfg.consider_min:
        return "CONSIDER"
    return "PASS"


class FlipEngine:
    strategy_id = "flip"

    def evaluate(
        self,
        deal: Deal,
        repair: RepairAssessment,
        market: MarketSignal,
        assumptions: Assumptions,
    ) -> StrategyResult:
        cfg = assumptions.flip
        price = deal.asking_price
        arv = deal.arv
        rehab = repair.mid

        months = holding_months(deal.days_on_market, cfg)
        holding = price * cfg.holding_monthly_rate * months
        agent_fees = arv * cfg.agent_fee_rate
        closing = price * cfg.closing_cost_rate

        profit = arv - price - rehab - holding - agent_fees - closing
        total_investment = price + rehab + holding + closing
        roi = safe_div(profit, total_investment, 0.0)

        # wholesale view of the same numbers
        mao = arv * cfg.mao_arv_factor * market.mao_multiplier - rehab
        equity_spread = arv - price - rehab
        assignment_fee = max(0.0, min(equity_spread * cfg.assignment_share, mao - price))

        score = cfg.base_score
        score += profit_points(profit, cfg)
        score += tier_points(roi, cfg.roi_tiers, below=cfg.roi_negative_points)
        score -= safe_div(market.exit_risk_score, cfg.exit_risk_divisor, 0.0)
        score = clamp(score)

        notes: list[str] = []
        if arv <= 0:
            notes.append("No ARV available; profit cannot be established")
        if price > mao:
            notes.append("Asking price is above MAO")
        if repair.tier in ("FullGut", "Teardown"):
            notes.append(f"{repair.tier} rehab extends the project timeline")

        return StrategyResult(
            strategy="flip",
            score=round(score, 2),
            verdict=flip_verdict(score, profit, cfg),
            metrics={
                "arv": round(arv, 2),
                "purchase_price": round(price, 2),
                "rehab_cost": round(rehab, 2),
                "holding_months": float(months),
                "holding_costs": round(holding, 2),
                "agent_fees": round(agent_fees, 2),
                "closing_costs": round(closing, 2),
                "total_investment": round(total_investment, 2),
                "net_profit": round(profit, 2),
                "roi": round(roi, 4),
                "profit_margin": round(safe_div(profit, arv, 0.0), 4),
                "mao": round(mao, 2),
                "equity_spread": round(equity_spread, 2),
                "assignment_fee": round(assignment_fee, 2),
            },
            notes=notes,
        )


ENGINE = register(FlipEngine())
