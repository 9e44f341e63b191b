# src/dealscope/domain/results.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from dealscope.domain.types import (
    CreativeStructure,
    DueOnSaleLevel,
    ExitRiskTier,
    MatchQuality,
    NextAction,
    Recommendation,
    RepairTier,
    SaturationTier,
    StrategyId,
    VelocityTier,
    Verdict,
)


@dataclass(frozen=True)
class RepairAssessment:
    tier: RepairTier
    low: float              # sqft * tier low $/sqft
    high: float             # sqft * tier high $/sqft
    mid: float
    breakdown: Dict[str, float]   # category -> dollars, incl. "contingency"
    breakdown_total: float
    risk_score: float       # 0-100, higher = riskier
    matched_keyword: Optional[str] = None


@dataclass(frozen=True)
class MarketSignal:
    velocity_score: float
    velocity_tier: VelocityTier
    exit_risk_score: float
    exit_risk_tier: ExitRiskTier
    mao_multiplier: float
    saturation_score: float
    saturation_tier: SaturationTier
    verdict_boost: float    # consumed by the verdict engine
    heat_score: float


@dataclass(frozen=True)
class DueOnSaleRisk:
    level: DueOnSaleLevel
    loan_to_value: float
    factors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class HoldingPeriod:
    break_even_months: Optional[int]    # 0 = cash flows from month one; None = not within the horizon
    cash_flow_5yr: float
    appreciation_5yr: float
    equity_buildup_5yr: float
    total_return_5yr: float


@dataclass(frozen=True)
class CreativeOption:
    structure: CreativeStructure
    viable: bool
    score: float
    monthly_cash_flow: float
    terms: Dict[str, float]
    reason: str
    # Sub-To only
    due_on_sale: Optional[DueOnSaleRisk] = None
    holding_period: Optional[HoldingPeriod] = None


@dataclass(frozen=True)
class StrategyResult:
    strategy: StrategyId
    score: float
    verdict: str
    metrics: Dict[str, float]
    notes: List[str] = field(default_factory=list)
    options: List[CreativeOption] = field(default_factory=list)   # creative only
    best_option: Optional[CreativeStructure] = None


@dataclass(frozen=True)
class Comparison:
    best: Optional[StrategyId]
    best_score: float
    ranked: List[StrategyId]
    rationale: str
    summary: str            # "Flip:84 | LTR:61 | ..."


@dataclass
class VerdictRecord:
    deal_id: str
    deal_score: float
    risk_score: float
    adjusted_score: float
    base_verdict: Verdict
    verdict: Verdict
    override_reason: Optional[str]
    next_action: NextAction
    best_strategy: Optional[StrategyId]
    grade: str
    success_probability: float
    components: Dict[str, float]
    risk_components: Dict[str, float]
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    threats: List[str] = field(default_factory=list)
    rank: Optional[int] = None    # assigned after sorting the whole run


@dataclass(frozen=True)
class MatchResult:
    deal_id: str
    buyer_id: str
    zip_score: float
    strategy_score: float
    price_score: float
    exit_speed_score: float
    history_score: float
    reliability_score: float
    total_score: int
    quality: MatchQuality
    recommendation: Recommendation
    rationale: str


@dataclass
class DealEvaluation:
    """Everything the pipeline produced for one deal snapshot."""

    deal_id: str
    repair: RepairAssessment
    market: MarketSignal
    strategies: List[StrategyResult]
    comparison: Comparison
    verdict: VerdictRecord
    guardrails: Dict[str, Any] = field(default_factory=dict)
    deal: Dict[str, Any] = field(default_factory=dict)     # the enriched input snapshot

    def strategy(self, strategy_id: str) -> Optional[StrategyResult]:
        for s in self.strategies:
            if s.strategy == strategy_id:
                return s
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
