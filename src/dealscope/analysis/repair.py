# src/dealscope/analysis/repair.py
from __future__ import annotations

from dealscope.analysis.scoring import clamp, lookup
from dealscope.domain.assumptions import RepairAssumptions
from dealscope.domain.deal import Deal
from dealscope.domain.results import RepairAssessment
from dealscope.domain.types import RepairTier, tier_index


class RepairEstimator:
    """
    Heuristic rehab model.

    Inputs: sqft, year built, property type and the free-text signals of the
    lead. Output: complexity tier, low/high/mid budget, a category breakdown
    and a 0-100 repair risk score. Deterministic given those inputs.
    """

    def __init__(self, cfg: RepairAssumptions | None = None) -> None:
        self.cfg = cfg or RepairAssumptions()

    # -----------------------------------------------------------------
    # Tier
    # -----------------------------------------------------------------

    def age(self, year_built: int | None) -> int:
        year = year_built or self.cfg.default_year_built
        return max(0, self.cfg.reference_year - int(year))

    def classify(self, text: str, year_built: int | None) -> tuple[RepairTier, str | None]:
        """
        Keyword sets are checked teardown -> full gut -> heavy -> cosmetic;
        the first hit wins. With no hit, the age of the building decides.
        """
        t = (text or "").lower()
        ordered: tuple[tuple[RepairTier, tuple[str, ...]], ...] = (
            ("Teardown", self.cfg.teardown_keywords),
            ("FullGut", self.cfg.full_gut_keywords),
            ("Heavy", self.cfg.heavy_keywords),
            ("Cosmetic", self.cfg.cosmetic_keywords),
        )
        for tier, keywords in ordered:
            for kw in keywords:
                if kw and kw in t:
                    return tier, kw

        age = self.age(year_built)
        if age <= self.cfg.age_cosmetic_max:
            return "Cosmetic", None
        if age <= self.cfg.age_moderate_max:
            return "Moderate", None
        if age <= self.cfg.age_heavy_max:
            return "Heavy", None
        return "FullGut", None

    # -----------------------------------------------------------------
    # Costs
    # -----------------------------------------------------------------

    def cost_range(self, tier: RepairTier, sqft: float) -> tuple[float, float]:
        low_mult, high_mult = self.cfg.cost_per_sqft.get(tier, self.cfg.cost_per_sqft["Moderate"])
        return sqft * low_mult, sqft * high_mult

    def breakdown(self, tier: RepairTier, sqft: float, age: int) -> dict[str, float]:
        c = self.cfg
        factor = lookup(c.tier_cost_factor, tier, default=1.5)
        level = tier_index(tier)
        moderate, heavy, full_gut = 1, 2, 3

        items: dict[str, float] = {
            "roof": c.roof_cost if (age >= c.roof_age or level >= heavy) else 0.0,
            "hvac": c.hvac_cost if (age >= c.hvac_age or level >= heavy) else 0.0,
            "plumbing": c.plumbing_cost if (age >= c.systems_age or level >= full_gut) else 0.0,
            "electrical": c.electrical_cost if (age >= c.systems_age or level >= full_gut) else 0.0,
            "foundation": c.foundation_cost if level >= heavy else 0.0,
            "kitchen": c.kitchen_cost if level >= moderate else 0.0,
            "baths": c.baths_cost if level >= moderate else 0.0,
            "flooring": c.flooring_per_sqft * sqft,
            "paint": c.paint_per_sqft * sqft,
            "openings": c.openings_cost if (age >= c.openings_age or level >= heavy) else 0.0,
            "exterior": c.exterior_cost if level >= heavy else 0.0,
            "landscaping": c.landscaping_cost,
        }
        scaled = {k: round(v * factor, 2) for k, v in items.items()}
        subtotal = sum(scaled.values())
        scaled["contingency"] = round(subtotal * c.contingency_rate, 2)
        return scaled

    # -----------------------------------------------------------------
    # Risk
    # -----------------------------------------------------------------

    def risk_score(self, tier: RepairTier, age: int, property_type: str) -> float:
        c = self.cfg
        risk = lookup(c.base_risk, tier, default=c.base_risk.get("Moderate", 30.0))
        if age > c.old_age:
            risk += c.age_risk_adjustment
        elif age < c.new_age:
            risk -= c.age_risk_adjustment
        risk += lookup(c.property_type_risk, property_type, default=0.0)
        return clamp(risk)

    def assess(
        self,
        sqft: float | None,
        year_built: int | None,
        property_type: str = "single_family",
        text: str = "",
    ) -> RepairAssessment:
        if not sqft or sqft <= 0:
            sqft = self.cfg.default_sqft
        age = self.age(year_built)

        tier, keyword = self.classify(text, year_built)
        low, high = self.cost_range(tier, sqft)
        parts = self.breakdown(tier, sqft, age)

        return RepairAssessment(
            tier=tier,
            low=round(low, 2),
            high=round(high, 2),
            mid=round((low + high) / 2.0, 2),
            breakdown=parts,
            breakdown_total=round(sum(parts.values()), 2),
            risk_score=self.risk_score(tier, age, property_type),
            matched_keyword=keyword,
        )


def assess_repairs(deal: Deal, cfg: RepairAssumptions) -> RepairAssessment:
    return RepairEstimator(cfg).assess(
        sqft=deal.sqft,
        year_built=deal.year_built,
        property_type=deal.property_type,
        text=deal.signal_text,
    )
