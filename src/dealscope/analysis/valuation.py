# src/dealscope/analysis/valuation.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from dealscope.domain.assumptions import Assumptions, ValuationAssumptions
from dealscope.domain.deal import Comp, Deal
from dealscope.domain.types import CompConfidence


@dataclass(frozen=True)
class ArvEstimate:
    arv: float
    confidence: CompConfidence
    adjusted_values: list[float] = field(default_factory=list)


def _adjusted_comp_value(deal: Deal, comp: Comp, cfg: ValuationAssumptions) -> float:
    """
    Adjust a sold comp toward the subject: every attribute where the subject
    is larger (or newer) than the comp moves the comp's price up.
    """
    value = comp.sale_price
    value += (deal.sqft - comp.sqft) * cfg.per_sqft
    value += (deal.beds - comp.beds) * cfg.per_bed
    value += (deal.baths - comp.baths) * cfg.per_bath
    comp_year = comp.year_built or deal.year_built
    value += (deal.year_built - comp_year) * cfg.per_year
    return float(value)


def arv_from_comps(deal: Deal, cfg: ValuationAssumptions | None = None) -> ArvEstimate:
    """
    Mean of the adjusted comp values. Confidence comes from their spread
    (coefficient of variation): tight comps -> high, loose comps -> low.
    With no usable comps the deal's own ARV is returned at low confidence.
    """
    cfg = cfg or ValuationAssumptions()
    comps = [c for c in deal.comps if c.sale_price > 0]
    if not comps:
        return ArvEstimate(arv=deal.arv, confidence="low")

    values = np.array([_adjusted_comp_value(deal, c, cfg) for c in comps], dtype=float)
    mean = float(values.mean())
    if mean <= 0:
        return ArvEstimate(arv=deal.arv, confidence="low", adjusted_values=values.tolist())

    cv = float(values.std()) / mean
    confidence: CompConfidence
    if cv < cfg.high_confidence_cv:
        confidence = "high"
    elif cv < cfg.medium_confidence_cv:
        confidence = "medium"
    else:
        confidence = "low"
    return ArvEstimate(arv=round(mean, 2), confidence=confidence, adjusted_values=values.tolist())


def enrich_deal(deal: Deal, assumptions: Assumptions) -> Deal:
    """
    Fill the derived fields a lead may arrive without: ARV and comp
    confidence (from comps), market rent and the existing-mortgage estimate.

    Returns a new Deal; fields already present on the input are kept.
    """
    fin = assumptions.financing
    updates: dict[str, Any] = {}

    arv = deal.arv
    if arv <= 0 and deal.comps:
        est = arv_from_comps(deal, assumptions.valuation)
        if est.arv > 0:
            arv = est.arv
            updates["arv"] = est.arv
            updates["comp_confidence"] = est.confidence
    elif arv <= 0:
        updates["comp_confidence"] = "low"

    if deal.market_rent is None:
        updates["market_rent"] = round(fin.rent_to_value * max(arv, deal.asking_price), 2)
    if deal.existing_mortgage is None:
        updates["existing_mortgage"] = round(fin.existing_ltv_estimate * deal.asking_price, 2)
    if deal.existing_mortgage_rate is None:
        updates["existing_mortgage_rate"] = fin.existing_rate

    if not updates:
        return deal
    return deal.model_copy(update=updates)
