# src/dealscope/services/guardrails.py
from __future__ import annotations

from typing import Any, Dict, List, Sequence

from dealscope.adapters.logging_utils import get_logger
from dealscope.domain.deal import Deal
from dealscope.domain.results import RepairAssessment, StrategyResult

logger = get_logger(__name__)


def _metric(strategies: Sequence[StrategyResult], strategy: str, key: str, default: float = 0.0) -> float:
    for s in strategies:
        if s.strategy == strategy:
            return float(s.metrics.get(key, default))
    return default


def apply_guardrails(
    deal: Deal,
    repair: RepairAssessment,
    strategies: Sequence[StrategyResult],
) -> Dict[str, Any]:
    """
    Simple, high-leverage sanity checks on one evaluated deal.

    Returns:
        {
            "has_flags": bool,
            "flags": [
                {"code": "ARV_TOO_HIGH", "severity": "warning" | "error",
                 "message": "...", "context": {...raw numbers...}},
                ...
            ],
        }

    These do *not* block scoring; they flag sketchy inputs so the caller
    can highlight them.
    """
    flags: List[Dict[str, Any]] = []

    price = deal.asking_price
    arv = deal.arv
    rehab = repair.mid
    mao = _metric(strategies, "flip", "mao")
    dscr = _metric(strategies, "ltr", "dscr")

    # ------------------------------------------------------------------
    # 1) Basic data sanity
    # ------------------------------------------------------------------
    if price <= 0:
        flags.append(
            {
                "code": "ASKING_PRICE_MISSING",
                "severity": "warning",
                "message": "Asking price is missing or zero.",
                "context": {"asking_price": price},
            }
        )
    if arv <= 0:
        flags.append(
            {
                "code": "ARV_MISSING",
                "severity": "warning",
                "message": "No ARV supplied and none could be derived from comps.",
                "context": {"comps": len(deal.comps)},
            }
        )

    # ------------------------------------------------------------------
    # 2) ARV vs asking sanity
    # ------------------------------------------------------------------
    if price > 0 and arv > 0:
        ratio = arv / price
        if ratio < 0.5:
            flags.append(
                {
                    "code": "ARV_TOO_LOW",
                    "severity": "warning",
                    "message": "ARV is less than 50% of asking price.",
                    "context": {"asking_price": price, "arv": arv, "ratio": round(ratio, 4)},
                }
            )
        elif ratio > 3.0:
            flags.append(
                {
                    "code": "ARV_TOO_HIGH",
                    "severity": "warning",
                    "message": "ARV is more than 3x asking price. Check comps.",
                    "context": {"asking_price": price, "arv": arv, "ratio": round(ratio, 4)},
                }
            )

    # ------------------------------------------------------------------
    # 3) Rehab vs ARV sanity
    # ------------------------------------------------------------------
    if arv > 0 and rehab > arv:
        flags.append(
            {
                "code": "REHAB_EXCEEDS_ARV",
                "severity": "error",
                "message": "Rehab estimate exceeds ARV. Deal almost certainly does not pencil.",
                "context": {"arv": arv, "rehab_mid": rehab},
            }
        )

    # ------------------------------------------------------------------
    # 4) MAO
    # ------------------------------------------------------------------
    if mao > 0 and price > mao:
        flags.append(
            {
                "code": "LIST_ABOVE_MAO",
                "severity": "warning",
                "message": "Asking price is above MAO. Negotiate or walk away.",
                "context": {"asking_price": price, "mao": mao},
            }
        )

    # ------------------------------------------------------------------
    # 5) DSCR
    # ------------------------------------------------------------------
    if price > 0 and dscr < 1.0:
        flags.append(
            {
                "code": "DSCR_BELOW_ONE",
                "severity": "warning",
                "message": "DSCR below 1.0; rent does not cover debt service.",
                "context": {"dscr": dscr},
            }
        )

    if flags:
        logger.info(
            "deal_guardrails_flags",
            extra={"context": {"deal_id": deal.deal_id, "codes": [f["code"] for f in flags]}},
        )

    return {"flags": flags, "has_flags": bool(flags)}
