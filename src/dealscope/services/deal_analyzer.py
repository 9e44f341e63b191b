from __future__ import annotations

from typing import Any, Mapping

from dealscope.adapters.logging_utils import get_logger
from dealscope.analysis.market import score_market
from dealscope.analysis.repair import assess_repairs
from dealscope.analysis.valuation import enrich_deal
from dealscope.domain.assumptions import Assumptions
from dealscope.domain.deal import Deal
from dealscope.domain.ports import ZipLookupCache
from dealscope.domain.results import DealEvaluation
from dealscope.services.comparator import compare_strategies
from dealscope.services.guardrails import apply_guardrails
from dealscope.services.verdict import evaluate_verdict
from dealscope.strategies.base import evaluate_all

logger = get_logger(__name__)


def analyze_deal(
    deal: Deal,
    assumptions: Assumptions | None = None,
    zip_cache: ZipLookupCache | None = None,
) -> DealEvaluation:
    """
    Run one deal through the stage sequence:

        valuation -> repair -> market -> 5 strategy engines -> comparator
        -> verdict -> guardrails

    Pure with respect to its inputs; the only shared state is the optional
    ZIP cache, whose staleness never changes a result within its TTL.
    """
    assumptions = assumptions or Assumptions()

    enriched = enrich_deal(deal, assumptions)
    repair = assess_repairs(enriched, assumptions.repair)
    market = score_market(enriched, repair, assumptions.market, zip_cache)
    strategies = evaluate_all(enriched, repair, market, assumptions)
    comparison = compare_strategies(strategies)
    verdict = evaluate_verdict(enriched, repair, market, strategies, comparison, assumptions)
    guardrails = apply_guardrails(enriched, repair, strategies)

    logger.info(
        "deal_analyzed",
        extra={
            "context": {
                "deal_id": enriched.deal_id,
                "deal_score": verdict.deal_score,
                "risk_score": verdict.risk_score,
                "verdict": verdict.verdict,
                "best_strategy": comparison.best,
            }
        },
    )

    return DealEvaluation(
        deal_id=enriched.deal_id,
        repair=repair,
        market=market,
        strategies=strategies,
        comparison=comparison,
        verdict=verdict,
        guardrails=guardrails,
        deal=enriched.model_dump(mode="json"),
    )


def analyze_payload(
    payload: Mapping[str, Any],
    assumptions: Assumptions | None = None,
    zip_cache: ZipLookupCache | None = None,
) -> DealEvaluation:
    """Validate a raw record into a Deal and analyze it. Raises ValidationError on a missing deal id."""
    return analyze_deal(Deal.model_validate(dict(payload)), assumptions, zip_cache)
