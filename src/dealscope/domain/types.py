# src/dealscope/domain/types.py
from typing import Literal

# Ordered least -> most severe; tier comparisons use REPAIR_TIER_ORDER.
RepairTier = Literal["Cosmetic", "Moderate", "Heavy", "FullGut", "Teardown"]
REPAIR_TIER_ORDER: tuple[RepairTier, ...] = ("Cosmetic", "Moderate", "Heavy", "FullGut", "Teardown")

VelocityTier = Literal["Fast", "Moderate", "Slow", "Stale"]
ExitRiskTier = Literal["Low", "Moderate", "High", "Critical"]
SaturationTier = Literal["Low", "Moderate", "High", "Saturated"]

CompConfidence = Literal["high", "medium", "low"]
MarketTrend = Literal["up", "flat", "down"]

# Speed-to-lead status reported by the lead-response collaborator
SlaStatus = Literal["Fast", "On Time", "Pending", "Slow", "Breach"]

# Declaration order matters: it is the comparator's tie-break order.
StrategyId = Literal["flip", "str", "mtr", "ltr", "creative"]
STRATEGY_ORDER: tuple[StrategyId, ...] = ("flip", "str", "mtr", "ltr", "creative")

STRATEGY_NAMES: dict[str, str] = {
    "flip": "Flip",
    "str": "STR",
    "mtr": "MTR",
    "ltr": "LTR",
    "creative": "Creative",
}

CreativeStructure = Literal["sub2", "wrap", "seller_carry", "lease_option", "hybrid"]
CREATIVE_ORDER: tuple[CreativeStructure, ...] = ("sub2", "wrap", "seller_carry", "lease_option", "hybrid")

DueOnSaleLevel = Literal["low", "medium", "high"]

Verdict = Literal["HOT", "SOLID", "HOLD", "PASS"]

NextAction = Literal[
    "Call now",
    "Call now - SLA urgent",
    "Schedule call",
    "Call today - SLA urgent",
    "Nurture",
    "Archive",
]

RiskTolerance = Literal["low", "medium", "high"]

# Ordered slow -> fast; adjacency on this scale drives the exit-speed score.
ExitSpeed = Literal["long-hold", "medium", "quick-flip"]
EXIT_SPEED_ORDER: tuple[ExitSpeed, ...] = ("long-hold", "medium", "quick-flip")

MatchQuality = Literal["Perfect", "Strong", "Good", "Weak"]
Recommendation = Literal["Send immediately", "Send", "Monitor", "Don't send"]


def tier_index(tier: str) -> int:
    """Position of a repair tier in severity order; unknown tiers sit at Moderate."""
    try:
        return REPAIR_TIER_ORDER.index(tier)  # type: ignore[arg-type]
    except ValueError:
        return 1
