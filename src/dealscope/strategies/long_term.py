# src/dealscope/strategies/long_term.py
from __future__ import annotations

from dealscope.analysis.scoring import ceiling_points, clamp, tier_points
from dealscope.domain.assumptions import Assumptions, LongTermRentalAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.finance import cash_on_cash, dscr, financed_purchase
from dealscope.domain.results import MarketSignal, RepairAssessment, StrategyResult
from dealscope.strategies.base import monthly_rent, register, rental_verdict

# reported instead of infinity when there is no debt to cover
_DSCR_CAP = 99.0


def hold_quality(coverage: float, coc: float, age: float, cfg: LongTermRentalAssumptions) -> float:
    """0-100 buy-and-hold quality from coverage, yield and building age."""
    pts = tier_points(coverage, cfg.hold_dscr_tiers)
    pts += tier_points(coc, cfg.hold_coc_tiers)
    pts += ceiling_points(age, cfg.hold_age_tiers, above=cfg.hold_age_floor)
    return clamp(pts)


class LongTermRentalEngine:
    strategy_id = "ltr"

    def evaluate(
        self,
        deal: Deal,
        repair: RepairAssessment,
        market: MarketSignal,
        assumptions: Assumptions,
    ) -> StrategyResult:
        cfg = assumptions.ltr
        debt = financed_purchase(deal.asking_price, assumptions.financing)

        rent = monthly_rent(deal, assumptions)
        effective_rent = rent * (1.0 - cfg.vacancy_rate)
        maintenance = rent * cfg.maintenance_rate
        capex = rent * cfg.capex_rate
        management = rent * cfg.management_rate

        noi = (
            effective_rent
            - maintenance
            - debt.taxes_monthly
            - debt.insurance_monthly
            - capex
            - management
        )
        cash_flow = noi - debt.monthly_payment
        coverage = min(dscr(noi, debt.monthly_payment), _DSCR_CAP)

        cash_invested = debt.down_payment + debt.closing_costs
        coc = cash_on_cash(cash_flow * 12.0, cash_invested)

        age = max(0, assumptions.repair.reference_year - deal.year_built)
        quality = hold_quality(coverage, coc, age, cfg)

        score = cfg.base_score
        score += tier_points(cash_flow, cfg.cash_flow_tiers, below=cfg.cash_flow_negative_points)
        score += tier_points(coverage, cfg.dscr_tiers, below=cfg.dscr_below_one_points)
        score += tier_points(coc, cfg.coc_tiers, below=cfg.coc_negative_points)
        score += cfg.hold_quality_weight * quality
        score = clamp(score)

        below_one = coverage < 1.0
        notes: list[str] = []
        if below_one:
            notes.append(f"DSCR {coverage:.2f} does not cover debt service")

        return StrategyResult(
            strategy="ltr",
            score=round(score, 2),
            verdict=rental_verdict(score, cash_flow, assumptions.rental_verdicts, hard_fail=below_one),
            metrics={
                "market_rent": round(rent, 2),
                "effective_rent": round(effective_rent, 2),
                "maintenance": round(maintenance, 2),
                "capex": round(capex, 2),
                "management_fee": round(management, 2),
                "taxes": round(debt.taxes_monthly, 2),
                "insurance": round(debt.insurance_monthly, 2),
                "noi_monthly": round(noi, 2),
                "noi_annual": round(noi * 12.0, 2),
                "debt_service": round(debt.monthly_payment, 2),
                "dscr": round(coverage, 4),
                "monthly_cash_flow": round(cash_flow, 2),
                "annual_cash_flow": round(cash_flow * 12.0, 2),
                "cash_invested": round(cash_invested, 2),
                "cash_on_cash": round(coc, 4),
                "hold_quality": round(quality, 2),
            },
            notes=notes,
        )


ENGINE = register(LongTermRentalEngine())
