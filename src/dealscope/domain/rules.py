# src/dealscope/domain/rules.py
"""
Verdict override rules.

Rules are an ordered list of (predicate -> replacement score). Every rule is
evaluated against the same context in list order; each one that applies
replaces the verdict with the verdict for its score, so the LAST applicable
rule wins. "No equity" is last and therefore always has final say.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from dealscope.domain.assumptions import VerdictAssumptions
from dealscope.domain.types import SlaStatus, Verdict


def verdict_for_score(score: float, cfg: VerdictAssumptions) -> Verdict:
    if score >= cfg.hot_min:
        return "HOT"
    if score >= cfg.solid_min:
        return "SOLID"
    if score >= cfg.hold_min:
        return "HOLD"
    return "PASS"


@dataclass(frozen=True)
class VerdictContext:
    base_verdict: Verdict
    adjusted_score: float
    risk_score: float
    sla_status: SlaStatus
    arv: float
    asking_price: float


@dataclass(frozen=True)
class OverrideRule:
    reason: str
    applies: Callable[[VerdictContext, VerdictAssumptions], bool]
    score: Callable[[VerdictAssumptions], float]


def _high_risk(ctx: VerdictContext, cfg: VerdictAssumptions) -> bool:
    return ctx.base_verdict == "HOT" and ctx.risk_score >= cfg.high_risk_min


def _sla_breach(ctx: VerdictContext, cfg: VerdictAssumptions) -> bool:
    return ctx.base_verdict == "HOT" and ctx.sla_status == "Breach"


def _no_equity(ctx: VerdictContext, cfg: VerdictAssumptions) -> bool:
    return ctx.arv <= ctx.asking_price


DEFAULT_RULES: tuple[OverrideRule, ...] = (
    OverrideRule("High risk override", _high_risk, lambda c: c.high_risk_score),
    OverrideRule("SLA breach penalty", _sla_breach, lambda c: c.sla_breach_score),
    OverrideRule("No equity", _no_equity, lambda c: c.no_equity_score),
)


def apply_overrides(
    ctx: VerdictContext,
    cfg: VerdictAssumptions,
    rules: Sequence[OverrideRule] = DEFAULT_RULES,
) -> tuple[Verdict, Optional[str]]:
    verdict: Verdict = ctx.base_verdict
    reason: Optional[str] = None
    for rule in rules:
        if rule.applies(ctx, cfg):
            verdict = verdict_for_score(rule.score(cfg), cfg)
            reason = rule.reason
    return verdict, reason
