# src/dealscope/strategies/base.py
from __future__ import annotations

from typing import Protocol

from dealscope.domain.assumptions import Assumptions, RentalVerdictAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.results import MarketSignal, RepairAssessment, StrategyResult
from dealscope.domain.types import STRATEGY_ORDER, StrategyId


class StrategyEngine(Protocol):
    """
    One exit strategy: gate -> model -> score -> verdict.

    Engines are stateless; everything they read comes in through the call.
    """

    strategy_id: StrategyId

    def evaluate(
        self,
        deal: Deal,
        repair: RepairAssessment,
        market: MarketSignal,
        assumptions: Assumptions,
    ) -> StrategyResult:
        ...


_REGISTRY: dict[str, StrategyEngine] = {}


def register(engine: StrategyEngine) -> StrategyEngine:
    _REGISTRY[engine.strategy_id] = engine
    return engine


def engines() -> list[StrategyEngine]:
    """Registered engines in declaration order (Flip, STR, MTR, LTR, Creative)."""
    # imported here so the registry is populated on first use
    from dealscope.strategies import creative, flip, long_term, mid_term, short_term  # noqa: F401

    return [_REGISTRY[sid] for sid in STRATEGY_ORDER if sid in _REGISTRY]


def get_engine(strategy_id: str) -> StrategyEngine:
    for engine in engines():
        if engine.strategy_id == strategy_id:
            return engine
    raise KeyError(f"unknown strategy: {strategy_id}")


def evaluate_all(
    deal: Deal,
    repair: RepairAssessment,
    market: MarketSignal,
    assumptions: Assumptions,
) -> list[StrategyResult]:
    return [e.evaluate(deal, repair, market, assumptions) for e in engines()]


def rental_verdict(
    score: float,
    monthly_cash_flow: float,
    cfg: RentalVerdictAssumptions,
    hard_fail: bool = False,
) -> str:
    """Shared STR / MTR / LTR verdict ladder. Negative cash flow always avoids."""
    if hard_fail or monthly_cash_flow < 0:
        return "Avoid"
    if score >= cfg.excellent_min:
        return "Excellent"
    if score >= cfg.good_min:
        return "Good"
    if score >= cfg.marginal_min:
        return "Marginal"
    return "Avoid"


def monthly_rent(deal: Deal, assumptions: Assumptions) -> float:
    """Long-term market rent; estimated from value when the lead has none."""
    if deal.market_rent is not None and deal.market_rent > 0:
        return float(deal.market_rent)
    basis = max(deal.arv, deal.asking_price)
    return assumptions.financing.rent_to_value * basis
