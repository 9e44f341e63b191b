# src/dealscope/services/comparator.py
from __future__ import annotations

from typing import Sequence

from dealscope.domain.results import Comparison, StrategyResult
from dealscope.domain.types import STRATEGY_NAMES, STRATEGY_ORDER


def _declared_position(result: StrategyResult) -> int:
    try:
        return STRATEGY_ORDER.index(result.strategy)
    except ValueError:
        return len(STRATEGY_ORDER)


def compare_strategies(results: Sequence[StrategyResult]) -> Comparison:
    """
    Rank one deal's strategy results by score, highest first.

    Ties keep engine declaration order (Flip > STR > MTR > LTR > Creative)
    regardless of the order the results arrive in.
    """
    declared = sorted(results, key=_declared_position)
    ranked = sorted(declared, key=lambda r: r.score, reverse=True)

    summary = " | ".join(f"{STRATEGY_NAMES.get(r.strategy, r.strategy)}:{round(r.score)}" for r in ranked)

    if not ranked:
        return Comparison(best=None, best_score=0.0, ranked=[], rationale="No strategies evaluated", summary="")

    top = ranked[0]
    name = STRATEGY_NAMES.get(top.strategy, top.strategy)
    if len(ranked) > 1:
        runner = ranked[1]
        margin = top.score - runner.score
        rationale = (
            f"{name} leads with {top.score:.0f} ({top.verdict}), "
            f"{margin:.0f} points ahead of {STRATEGY_NAMES.get(runner.strategy, runner.strategy)}"
        )
    else:
        rationale = f"{name} scores {top.score:.0f} ({top.verdict})"

    return Comparison(
        best=top.strategy,
        best_score=top.score,
        ranked=[r.strategy for r in ranked],
        rationale=rationale,
        summary=summary,
    )
