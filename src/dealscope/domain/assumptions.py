# src/dealscope/domain/assumptions.py
"""
Typed scoring assumptions.

Every threshold, weight and multiplier used by the scorers lives here, grouped
by component. An `Assumptions` instance is passed explicitly into each
component call; nothing reads module-level state. Loading from files / env is
the adapters' job (see dealscope.adapters.config.load_assumptions).
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Section(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


# ---------------------------------------------------------------------
# Repair estimator
# ---------------------------------------------------------------------

class RepairAssumptions(_Section):
    reference_year: int = 2025
    default_sqft: float = 1500.0
    default_year_built: int = 1980

    teardown_keywords: tuple[str, ...] = (
        "teardown", "tear down", "condemned", "demolish", "fire damage", "uninhabitable",
    )
    full_gut_keywords: tuple[str, ...] = (
        "full gut", "gut job", "down to studs", "total rehab", "full rehab",
        "major fire", "extensive water damage",
    )
    heavy_keywords: tuple[str, ...] = (
        "foundation", "roof replacement", "new roof", "mold", "structural",
        "water damage", "needs everything", "major repairs", "handyman special",
    )
    cosmetic_keywords: tuple[str, ...] = (
        "cosmetic", "paint", "carpet", "move-in ready", "turnkey", "updated",
        "light rehab", "minor",
    )

    # age-based fallback: age <= cosmetic -> Cosmetic, <= moderate -> Moderate, ...
    age_cosmetic_max: int = 25
    age_moderate_max: int = 40
    age_heavy_max: int = 60

    cost_per_sqft: dict[str, tuple[float, float]] = Field(default_factory=lambda: {
        "Cosmetic": (5.0, 15.0),
        "Moderate": (15.0, 35.0),
        "Heavy": (35.0, 60.0),
        "FullGut": (60.0, 100.0),
        "Teardown": (100.0, 150.0),
    })
    base_risk: dict[str, float] = Field(default_factory=lambda: {
        "Cosmetic": 10.0,
        "Moderate": 30.0,
        "Heavy": 50.0,
        "FullGut": 75.0,
        "Teardown": 90.0,
    })
    old_age: int = 50
    new_age: int = 15
    age_risk_adjustment: float = 10.0
    property_type_risk: dict[str, float] = Field(default_factory=lambda: {
        "mobile_home": 15.0,
        "multi_family": 5.0,
        "condo": -5.0,
    })

    # category breakdown: Cosmetic-tier dollars scaled by tier factor
    tier_cost_factor: dict[str, float] = Field(default_factory=lambda: {
        "Cosmetic": 1.0,
        "Moderate": 1.5,
        "Heavy": 2.2,
        "FullGut": 3.0,
        "Teardown": 3.5,
    })
    roof_cost: float = 8000.0
    roof_age: int = 20
    hvac_cost: float = 6000.0
    hvac_age: int = 15
    plumbing_cost: float = 4000.0
    electrical_cost: float = 4500.0
    systems_age: int = 40
    foundation_cost: float = 10000.0
    kitchen_cost: float = 12000.0
    baths_cost: float = 6000.0
    flooring_per_sqft: float = 3.0
    paint_per_sqft: float = 2.0
    openings_cost: float = 3500.0
    openings_age: int = 30
    exterior_cost: float = 4000.0
    landscaping_cost: float = 1500.0
    contingency_rate: float = 0.10


# ---------------------------------------------------------------------
# Market intelligence
# ---------------------------------------------------------------------

class MarketAssumptions(_Section):
    dom_fast_max: float = 14
    dom_moderate_max: float = 45
    dom_slow_max: float = 90
    velocity_scores: dict[str, float] = Field(default_factory=lambda: {
        "Fast": 90.0, "Moderate": 70.0, "Slow": 40.0, "Stale": 20.0,
    })
    hot_states: frozenset[str] = frozenset({"TX", "FL", "AZ", "TN", "NC", "GA", "SC"})
    cold_states: frozenset[str] = frozenset({"IL", "NY", "CT", "WV", "LA"})
    state_velocity_adjustment: float = 10.0
    # keyed by 5-digit ZIP or 3-digit prefix
    zip_velocity_bonus: dict[str, float] = Field(default_factory=lambda: {
        "750": 3.0, "787": 4.0, "372": 3.0, "303": 2.0, "852": 2.0, "336": 2.0,
    })

    exit_base: float = 30.0
    exit_velocity_adders: dict[str, float] = Field(default_factory=lambda: {
        "Slow": 20.0, "Stale": 35.0,
    })
    # (upper bound, adder) checked in order; first match wins
    exit_low_price_bands: tuple[tuple[float, float], ...] = ((75_000.0, 15.0), (100_000.0, 5.0))
    # (lower bound, adder) checked in order; first match wins
    exit_high_price_bands: tuple[tuple[float, float], ...] = ((500_000.0, 20.0), (350_000.0, 10.0))
    exit_repair_adders: dict[str, float] = Field(default_factory=lambda: {
        "Heavy": 10.0, "FullGut": 20.0, "Teardown": 30.0,
    })
    exit_property_type_adders: dict[str, float] = Field(default_factory=lambda: {
        "mobile_home": 20.0, "land": 15.0, "condo": 10.0, "multi_family": 5.0, "townhouse": 5.0,
    })
    exit_low_max: float = 30
    exit_moderate_max: float = 50
    exit_high_max: float = 70
    mao_multipliers: dict[str, float] = Field(default_factory=lambda: {
        "Low": 1.0, "Moderate": 0.95, "High": 0.90, "Critical": 0.85,
    })

    saturation_base: float = 50.0
    saturated_states: frozenset[str] = frozenset({"CA", "FL", "TX", "AZ", "NV"})
    undersaturated_states: frozenset[str] = frozenset({"OH", "IN", "MI", "MO", "AL", "AR", "KS"})
    state_saturation_adjustment: float = 15.0
    # (price upper bound, adder) checked in order; first match wins
    saturation_price_bands: tuple[tuple[float, float], ...] = (
        (100_000.0, 20.0), (150_000.0, 10.0), (200_000.0, 5.0),
    )
    zip_saturation_adjustment: dict[str, float] = Field(default_factory=lambda: {
        "750": 5.0, "787": 8.0, "900": 10.0, "331": 6.0, "441": -5.0, "482": -8.0,
    })
    saturation_low_max: float = 40
    saturation_moderate_max: float = 60
    saturation_high_max: float = 75
    verdict_boosts: dict[str, float] = Field(default_factory=lambda: {
        "Low": 5.0, "Moderate": 0.0, "High": -5.0, "Saturated": -15.0,
    })

    heat_base: float = 50.0
    heat_velocity_weight: float = 0.5
    heat_saturation_weight: float = 0.3
    heat_dom_hot_max: float = 7
    heat_dom_warm_max: float = 14
    heat_dom_cool_min: float = 90
    heat_dom_cold_min: float = 120
    heat_dom_bonus: float = 10.0
    heat_dom_warm_bonus: float = 5.0


# ---------------------------------------------------------------------
# Valuation (derived deal fields)
# ---------------------------------------------------------------------

class ValuationAssumptions(_Section):
    # comp adjustments, subject minus comp
    per_sqft: float = 50.0
    per_bed: float = 5000.0
    per_bath: float = 3000.0
    per_year: float = 1000.0
    # coefficient of variation of the adjusted comps
    high_confidence_cv: float = 0.05
    medium_confidence_cv: float = 0.15


# ---------------------------------------------------------------------
# Strategy engines
# ---------------------------------------------------------------------

class FinancingAssumptions(_Section):
    ltv: float = 0.75
    interest_rate: float = 0.07
    amort_years: int = 30
    closing_cost_rate: float = 0.03
    taxes_rate: float = 0.012        # annual, of price
    insurance_rate: float = 0.005    # annual, of price
    rent_to_value: float = 0.008     # monthly rent estimate when none supplied
    existing_ltv_estimate: float = 0.55
    existing_rate: float = 0.045
    existing_remaining_months: int = 300


class FlipAssumptions(_Section):
    holding_monthly_rate: float = 0.01
    # (max DOM, months) checked in order; beyond the last -> holding_months_max
    holding_months_by_dom: tuple[tuple[float, int], ...] = ((14, 3), (45, 4), (90, 5))
    holding_months_max: int = 6
    agent_fee_rate: float = 0.06     # of ARV
    closing_cost_rate: float = 0.03  # of asking
    mao_arv_factor: float = 0.70
    assignment_share: float = 0.5
    base_score: float = 40.0
    profit_tiers: tuple[tuple[float, float], ...] = ((50_000, 30), (30_000, 20), (15_000, 10))
    profit_positive_points: float = 0.0
    profit_negative_points: float = -20.0
    roi_tiers: tuple[tuple[float, float], ...] = ((0.25, 20), (0.15, 10), (0.08, 5), (0.0, 0))
    roi_negative_points: float = -10.0
    exit_risk_divisor: float = 5.0
    strong_buy_min: float = 80
    buy_min: float = 65
    consider_min: float = 50


class ShortTermRentalAssumptions(_Section):
    adr_by_beds: dict[int, float] = Field(default_factory=lambda: {1: 95.0, 2: 125.0, 3: 160.0, 4: 200.0, 5: 240.0})
    state_multipliers: dict[str, float] = Field(default_factory=lambda: {
        "HI": 1.4, "CA": 1.3, "FL": 1.25, "TN": 1.2, "CO": 1.15, "AZ": 1.1,
    })
    type_multipliers: dict[str, float] = Field(default_factory=lambda: {
        "single_family": 1.0, "condo": 0.9, "townhouse": 0.95, "multi_family": 0.95, "mobile_home": 0.75,
    })
    nights_per_month: float = 30.4
    occupancy: float = 0.65
    platform_fee_rate: float = 0.03
    management_fee_rate: float = 0.20
    cleaning_per_turn: float = 85.0
    avg_stay_nights: float = 3.0
    utilities_monthly: float = 300.0
    furnishing_base: float = 5000.0
    furnishing_per_bed: float = 3000.0
    high_regulation_states: frozenset[str] = frozenset({"NY", "HI", "CA"})
    moderate_regulation_states: frozenset[str] = frozenset({"NV", "OR", "WA", "MA", "NJ"})
    regulation_penalties: dict[str, float] = Field(default_factory=lambda: {"High": 25.0, "Moderate": 10.0, "Low": 0.0})
    year_round_states: frozenset[str] = frozenset({"FL", "AZ", "HI", "CA", "TX"})
    seasonal_states: frozenset[str] = frozenset({"TN", "CO", "NC", "SC", "UT", "ME"})
    seasonality_points: dict[str, float] = Field(default_factory=lambda: {"year_round": 10.0, "seasonal": 5.0, "low": 0.0})
    base_score: float = 40.0
    cash_flow_tiers: tuple[tuple[float, float], ...] = ((1500, 25), (800, 15), (300, 5), (0, 0))
    cash_flow_negative_points: float = -20.0
    coc_tiers: tuple[tuple[float, float], ...] = ((0.15, 15), (0.08, 8), (0.0, 0))
    coc_negative_points: float = -10.0


class MidTermRentalAssumptions(_Section):
    furnished_premium: float = 1.35
    avg_stay_months: float = 3.0
    vacancy_gap_months: float = 0.5
    utilities_monthly: float = 250.0
    furnishing_cost: float = 8000.0
    furnishing_amort_months: int = 36
    management_fee_rate: float = 0.15
    long_stay_months: float = 3.0
    short_stay_months: float = 1.0
    long_stay_points: float = 10.0
    short_stay_points: float = 5.0
    low_turns_per_year: float = 4.0
    high_turns_per_year: float = 6.0
    low_turns_points: float = 5.0
    high_turns_points: float = -5.0
    advantage_tiers: tuple[tuple[float, float], ...] = ((500, 15), (200, 10))
    advantage_positive_points: float = 5.0
    advantage_negative_points: float = -10.0
    base_score: float = 40.0
    cash_flow_tiers: tuple[tuple[float, float], ...] = ((1000, 20), (500, 12), (200, 5), (0, 0))
    cash_flow_negative_points: float = -20.0


class LongTermRentalAssumptions(_Section):
    vacancy_rate: float = 0.08
    maintenance_rate: float = 0.08
    capex_rate: float = 0.05
    management_rate: float = 0.10
    base_score: float = 30.0
    cash_flow_tiers: tuple[tuple[float, float], ...] = ((500, 20), (250, 12), (100, 6), (0, 0))
    cash_flow_negative_points: float = -15.0
    dscr_tiers: tuple[tuple[float, float], ...] = ((1.5, 20), (1.25, 12), (1.0, 5))
    dscr_below_one_points: float = -20.0
    coc_tiers: tuple[tuple[float, float], ...] = ((0.12, 15), (0.08, 10), (0.04, 5), (0.0, 0))
    coc_negative_points: float = -10.0
    hold_quality_weight: float = 0.15
    hold_dscr_tiers: tuple[tuple[float, float], ...] = ((1.5, 40), (1.25, 30), (1.0, 15))
    hold_coc_tiers: tuple[tuple[float, float], ...] = ((0.10, 30), (0.06, 20), (0.0, 10))
    # (max age, points); older than the last bound -> hold_age_floor
    hold_age_tiers: tuple[tuple[float, float], ...] = ((20, 30), (40, 20), (60, 10))
    hold_age_floor: float = 5.0


class RentalVerdictAssumptions(_Section):
    excellent_min: float = 75
    good_min: float = 60
    marginal_min: float = 45


class CreativeAssumptions(_Section):
    sub2_equity_min: float = 0.10
    sub2_equity_max: float = 0.50
    sub2_min_cash_flow: float = 100.0
    sub2_max_rate_pct: float = 8.0
    sub2_weights: dict[str, float] = Field(default_factory=lambda: {
        "equity": 30.0, "cash_flow": 25.0, "rate": 15.0, "term": 15.0, "condition": 10.0, "motivation": 5.0,
    })
    sub2_equity_full: float = 100_000.0
    sub2_cash_flow_full: float = 500.0
    full_term_months: int = 360

    # Sub-To due-on-sale exposure and hold projection
    lender_risk: dict[str, str] = Field(default_factory=lambda: {
        "portfolio": "low", "credit union": "low", "local": "low", "national": "medium",
    })
    due_on_sale_high_ltv: float = 0.90
    late_payment_markers: tuple[str, ...] = ("late", "delinquent", "behind")
    annual_appreciation: float = 0.03
    projection_years: int = 5
    break_even_horizon_months: int = 360

    wrap_down_rate: float = 0.05
    wrap_rate_spread: float = 0.035
    wrap_years: int = 30
    wrap_min_spread: float = 200.0
    wrap_max_existing_ltv: float = 0.80

    carry_down_rate: float = 0.10
    carry_rate: float = 0.06
    carry_years: int = 30
    carry_min_seller_equity: float = 0.50
    carry_min_cash_flow: float = 150.0

    lease_rate_of_rent: float = 0.90
    sublease_rate_of_rent: float = 1.05
    lease_min_spread: float = 150.0
    lease_max_option_to_arv: float = 0.90

    # structure scores beyond Sub-To: base + capped linear contributions
    option_base_score: float = 40.0
    wrap_spread_full: float = 600.0
    wrap_spread_weight: float = 40.0
    wrap_equity_weight: float = 20.0
    carry_cash_flow_full: float = 500.0
    carry_cash_flow_weight: float = 35.0
    carry_equity_weight: float = 25.0
    lease_spread_full: float = 400.0
    lease_spread_weight: float = 30.0
    lease_discount_full: float = 0.30
    lease_discount_weight: float = 30.0

    # 0-10 condition / motivation inputs to the Sub-To score
    condition_by_tier: dict[str, float] = Field(default_factory=lambda: {
        "Cosmetic": 8.0, "Moderate": 6.0, "Heavy": 4.0, "FullGut": 2.0, "Teardown": 1.0,
    })
    motivation_baseline: float = 5.0
    motivation_divisor: float = 3.0

    hybrid_pairs: tuple[tuple[str, str], ...] = (("sub2", "wrap"), ("seller_carry", "lease_option"))
    hybrid_bonus: float = 5.0

    strong_min: float = 75
    viable_min: float = 60
    not_viable_cap: float = 30


# ---------------------------------------------------------------------
# Verdict engine
# ---------------------------------------------------------------------

class VerdictAssumptions(_Section):
    deal_base: float = 50.0
    margin_tiers: tuple[tuple[float, float], ...] = ((0.25, 25), (0.15, 20), (0.10, 10), (0.05, 5), (0.0, 0))
    margin_negative_points: float = -10.0
    velocity_points: dict[str, float] = Field(default_factory=lambda: {
        "Fast": 8.0, "Moderate": 4.0, "Slow": -4.0, "Stale": -8.0,
    })
    heat_tiers: tuple[tuple[float, float], ...] = ((70, 7), (50, 3), (30, -3))
    heat_floor_points: float = -7.0
    market_cap: float = 15.0
    motivation_keywords: dict[str, float] = Field(default_factory=lambda: {
        "pre-foreclosure": 6.0, "foreclosure": 6.0, "probate": 5.0, "divorce": 5.0,
        "tax lien": 5.0, "behind on payments": 5.0, "must sell": 5.0, "vacant": 4.0,
        "tired landlord": 4.0, "relocating": 3.0, "estate sale": 3.0, "motivated": 3.0,
        "as-is": 2.0, "cash only": 2.0,
        "firm price": -3.0, "no lowball": -3.0, "multiple offers": -3.0, "not motivated": -5.0,
    })
    motivation_min: float = -5.0
    motivation_max: float = 15.0
    type_quality: dict[str, float] = Field(default_factory=lambda: {
        "single_family": 4.0, "multi_family": 3.0, "townhouse": 2.0, "condo": 1.0,
        "mobile_home": -3.0, "land": -5.0,
    })
    age_quality_tiers: tuple[tuple[float, float], ...] = ((20, 3), (50, 1), (80, 0))
    age_quality_floor: float = -2.0
    repair_quality: dict[str, float] = Field(default_factory=lambda: {
        "Cosmetic": 3.0, "Moderate": 1.0, "Heavy": -1.0, "FullGut": -3.0, "Teardown": -5.0,
    })
    quality_min: float = -5.0
    quality_max: float = 10.0
    sla_points: dict[str, float] = Field(default_factory=lambda: {
        "Fast": 15.0, "On Time": 5.0, "Pending": 0.0, "Slow": -5.0, "Breach": -15.0,
    })
    sla_cap: float = 15.0
    som_cap: float = 15.0
    best_strategy_bonus: float = 5.0
    large_lot_sqft: float = 10_000.0

    risk_base: float = 30.0
    exit_tier_points: dict[str, float] = Field(default_factory=lambda: {
        "Low": -5.0, "Moderate": 5.0, "High": 15.0, "Critical": 25.0,
    })
    repair_risk_weight: float = 0.2
    saturation_points: dict[str, float] = Field(default_factory=lambda: {
        "Low": -5.0, "Moderate": 0.0, "High": 5.0, "Saturated": 15.0,
    })
    type_risk: dict[str, float] = Field(default_factory=lambda: {
        "mobile_home": 10.0, "land": 10.0, "condo": 3.0, "multi_family": 2.0,
    })
    price_low_bands: tuple[tuple[float, float], ...] = ((50_000.0, 10.0), (100_000.0, 5.0))
    price_high_min: float = 750_000.0
    price_high_points: float = 5.0
    comp_confidence_points: dict[str, float] = Field(default_factory=lambda: {
        "high": 0.0, "medium": 5.0, "low": 10.0,
    })
    dom_risk_bands: tuple[tuple[float, float], ...] = ((180, 10.0), (90, 5.0))
    dom_fresh_max: float = 14
    dom_fresh_points: float = -3.0

    risk_weight: float = 0.3
    hot_min: float = 80
    solid_min: float = 60
    hold_min: float = 40

    high_risk_min: float = 75
    high_risk_score: float = 55
    sla_breach_score: float = 65
    no_equity_score: float = 25

    next_actions: dict[str, str] = Field(default_factory=lambda: {
        "HOT": "Call now", "SOLID": "Schedule call", "HOLD": "Nurture", "PASS": "Archive",
    })
    urgent_actions: dict[str, str] = Field(default_factory=lambda: {
        "HOT": "Call now - SLA urgent", "SOLID": "Call today - SLA urgent",
    })
    urgent_sla_statuses: frozenset[str] = frozenset({"Breach", "Slow"})


# ---------------------------------------------------------------------
# Buyer matching
# ---------------------------------------------------------------------

class MatchingAssumptions(_Section):
    weights: dict[str, float] = Field(default_factory=lambda: {
        "zip": 0.25, "strategy": 0.30, "price": 0.20, "exit_speed": 0.15, "history": 0.05, "reliability": 0.05,
    })
    score_scale: float = 10.0
    min_score: float = 70.0
    max_results: int = 10
    price_tolerance: float = 0.10
    compatibility: dict[str, tuple[str, ...]] = Field(default_factory=lambda: {
        "wholesale": ("assignment", "fix-flip", "rehab"),
        "fix-flip": ("rehab", "brrrr"),
        "buy-hold": ("ltr", "brrrr", "rental", "mtr"),
        "str": ("mtr", "vacation-rental"),
        "creative": ("sub2", "subject-to", "seller-finance", "wrap", "lease-option"),
    })
    strategy_labels: dict[str, str] = Field(default_factory=lambda: {
        "flip": "fix-flip", "str": "str", "mtr": "mtr", "ltr": "buy-hold", "creative": "creative",
    })
    exit_speeds: dict[str, str] = Field(default_factory=lambda: {
        "flip": "quick-flip", "creative": "medium", "mtr": "medium", "str": "long-hold", "ltr": "long-hold",
    })
    closed_tiers: tuple[tuple[float, float], ...] = ((20, 3), (10, 2), (3, 1))
    close_days_tiers: tuple[tuple[float, float], ...] = ((14, 2), (30, 1))
    perfect_min: float = 90
    strong_min: float = 75
    good_min: float = 60
    # highest deal risk score each buyer risk tolerance is comfortable with
    risk_tolerance_ceiling: dict[str, float] = Field(default_factory=lambda: {
        "low": 40.0, "medium": 60.0, "high": 100.0,
    })

    @field_validator("weights")
    @classmethod
    def _weights_within_budget(cls, v: dict[str, float]) -> dict[str, float]:
        if any(w < 0 for w in v.values()):
            raise ValueError("matching weights must be non-negative")
        if sum(v.values()) > 1.0 + 1e-9:
            raise ValueError("matching weights must sum to <= 1.0")
        return v


class Assumptions(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    repair: RepairAssumptions = Field(default_factory=RepairAssumptions)
    valuation: ValuationAssumptions = Field(default_factory=ValuationAssumptions)
    market: MarketAssumptions = Field(default_factory=MarketAssumptions)
    financing: FinancingAssumptions = Field(default_factory=FinancingAssumptions)
    flip: FlipAssumptions = Field(default_factory=FlipAssumptions)
    str_: ShortTermRentalAssumptions = Field(default_factory=ShortTermRentalAssumptions, alias="str")
    mtr: MidTermRentalAssumptions = Field(default_factory=MidTermRentalAssumptions)
    ltr: LongTermRentalAssumptions = Field(default_factory=LongTermRentalAssumptions)
    rental_verdicts: RentalVerdictAssumptions = Field(default_factory=RentalVerdictAssumptions)
    creative: CreativeAssumptions = Field(default_factory=CreativeAssumptions)
    verdict: VerdictAssumptions = Field(default_factory=VerdictAssumptions)
    matching: MatchingAssumptions = Field(default_factory=MatchingAssumptions)


SECTIONS: dict[str, type[BaseModel]] = {
    "repair": RepairAssumptions,
    "valuation": ValuationAssumptions,
    "market": MarketAssumptions,
    "financing": FinancingAssumptions,
    "flip": FlipAssumptions,
    "str": ShortTermRentalAssumptions,
    "mtr": MidTermRentalAssumptions,
    "ltr": LongTermRentalAssumptions,
    "rental_verdicts": RentalVerdictAssumptions,
    "creative": CreativeAssumptions,
    "verdict": VerdictAssumptions,
    "matching": MatchingAssumptions,
}
