from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dealscope.domain.deal import coerce_float, normalize_property_type
from dealscope.domain.types import ExitSpeed, RiskTolerance


def _as_set(v: Any) -> set[str]:
    """Accept "75001,75002", ["75001", "75002"] or None."""
    if v is None:
        return set()
    if isinstance(v, str):
        items = v.split(",")
    else:
        items = list(v)
    return {str(i).strip() for i in items if str(i).strip()}


class Buyer(BaseModel):
    """
    A capital-ready buyer from the buyer database.

    budget_max=None means the band is unbounded above.
    """

    model_config = ConfigDict(extra="ignore")

    buyer_id: str = Field(..., min_length=1)
    name: str = ""
    email: str = ""
    phone: str = ""

    preferred_zips: set[str] = Field(default_factory=set)
    preferred_cities: set[str] = Field(default_factory=set)
    preferred_strategy: str | None = None
    budget_min: float = 0.0
    budget_max: float | None = None
    preferred_property_types: set[str] = Field(default_factory=set)
    risk_tolerance: RiskTolerance = "medium"
    exit_speed: ExitSpeed | None = None

    deals_closed: int = 0
    avg_close_days: float | None = None
    reliability: float = 5.0

    active: bool = True

    @field_validator("buyer_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if v is None:
            return v
        return str(v).strip()

    @field_validator("preferred_zips", mode="before")
    @classmethod
    def _zips(cls, v: Any) -> set[str]:
        return _as_set(v)

    @field_validator("preferred_cities", mode="before")
    @classmethod
    def _cities(cls, v: Any) -> set[str]:
        return {c.lower() for c in _as_set(v)}

    @field_validator("preferred_property_types", mode="before")
    @classmethod
    def _types(cls, v: Any) -> set[str]:
        return {normalize_property_type(t) for t in _as_set(v)}

    @field_validator("preferred_strategy", mode="before")
    @classmethod
    def _strategy(cls, v: Any) -> str | None:
        s = str(v or "").strip().lower().replace("_", "-").replace(" ", "-")
        return s or None

    @field_validator("budget_min", mode="before")
    @classmethod
    def _budget_min(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f > 0 else 0.0

    @field_validator("budget_max", mode="before")
    @classmethod
    def _budget_max(cls, v: Any) -> float | None:
        f = coerce_float(v)
        return f if f is not None and f > 0 else None

    @field_validator("risk_tolerance", mode="before")
    @classmethod
    def _tolerance(cls, v: Any) -> str:
        s = str(v or "").strip().lower()
        return s if s in {"low", "medium", "high"} else "medium"

    @field_validator("exit_speed", mode="before")
    @classmethod
    def _exit_speed(cls, v: Any) -> str | None:
        s = str(v or "").strip().lower().replace("_", "-").replace(" ", "-")
        aliases = {
            "long-hold": "long-hold",
            "hold": "long-hold",
            "long": "long-hold",
            "medium": "medium",
            "mid": "medium",
            "quick-flip": "quick-flip",
            "quick": "quick-flip",
            "flip": "quick-flip",
        }
        return aliases.get(s)

    @field_validator("deals_closed", mode="before")
    @classmethod
    def _closed(cls, v: Any) -> int:
        f = coerce_float(v)
        return int(f) if f is not None and f > 0 else 0

    @field_validator("avg_close_days", mode="before")
    @classmethod
    def _close_days(cls, v: Any) -> float | None:
        f = coerce_float(v)
        return f if f is not None and f > 0 else None

    @field_validator("reliability", mode="before")
    @classmethod
    def _reliability(cls, v: Any) -> float:
        f = coerce_float(v)
        if f is None:
            return 5.0
        return max(0.0, min(10.0, f))

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("active", mode="before")
    @classmethod
    def _active(cls, v: Any) -> Any:
        # blank cells in a buyer export mean "not deactivated"
        return True if v is None or v == "" else v
