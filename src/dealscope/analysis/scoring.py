# src/dealscope/analysis/scoring.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """74.5 -> 75. Float noise below 1e-6 is dropped before rounding."""
    return int(Decimal(str(round(value, 6))).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def tier_points(
    value: float,
    tiers: Sequence[tuple[float, float]],
    below: float = 0.0,
) -> float:
    """
    Walk (threshold, points) pairs ordered high -> low and return the points of
    the first threshold `value` reaches; `below` when none is reached.
    """
    for threshold, points in tiers:
        if value >= threshold:
            return float(points)
    return float(below)


def ceiling_points(
    value: float,
    tiers: Sequence[tuple[float, float]],
    above: float = 0.0,
) -> float:
    """Like tier_points, for (upper bound, points) pairs ordered low -> high."""
    for bound, points in tiers:
        if value <= bound:
            return float(points)
    return float(above)


def lookup(table: Mapping[str, float], key: str | None, default: float = 0.0) -> float:
    """Total mapping: unmapped keys fall back to `default`, never None."""
    if key is None:
        return float(default)
    v = table.get(key)
    return float(v) if v is not None else float(default)


def zip_lookup(table: Mapping[str, float], zipcode: str) -> float:
    """5-digit ZIP first, then 3-digit prefix, else 0."""
    z = (zipcode or "").strip()[:5]
    if not z:
        return 0.0
    if z in table:
        return float(table[z])
    return float(table.get(z[:3], 0.0))


_GRADES: tuple[tuple[float, str], ...] = (
    (90, "A+"),
    (85, "A"),
    (80, "A-"),
    (75, "B+"),
    (70, "B"),
    (65, "B-"),
    (60, "C+"),
    (55, "C"),
    (50, "C-"),
    (45, "D+"),
    (40, "D"),
)


def letter_grade(score: float) -> str:
    for threshold, grade in _GRADES:
        if score >= threshold:
            return grade
    return "F"


def success_probability(deal_score: float, risk_score: float) -> float:
    """Deal quality weighted 70/30 against (inverted) risk, kept in 5-95%."""
    base = deal_score * 0.7 + (100.0 - risk_score) * 0.3
    return clamp(base, 5.0, 95.0)


def motivation_points(
    text: str,
    keywords: Mapping[str, float],
    lo: float = -5.0,
    hi: float = 15.0,
) -> tuple[float, list[str]]:
    """
    Sum the weights of every motivation keyword found in `text`, capped to
    [lo, hi]. A keyword contained in a longer matched keyword
    ("foreclosure" inside "pre-foreclosure") is not counted twice.
    """
    t = (text or "").lower()
    hits = [kw for kw in keywords if kw and kw in t]
    hits = [kw for kw in hits if not any(kw != other and kw in other for other in hits)]
    hits.sort()
    total = sum(float(keywords[kw]) for kw in hits)
    return clamp(total, lo, hi), hits
