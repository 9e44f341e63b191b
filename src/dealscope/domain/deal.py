from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from dealscope.domain.types import CompConfidence, MarketTrend, SlaStatus

DEFAULT_SQFT = 1500.0
DEFAULT_YEAR_BUILT = 1980
DEFAULT_DAYS_ON_MARKET = 30.0
DEFAULT_BEDS = 3.0
DEFAULT_BATHS = 2.0

_PROPERTY_TYPE_ALIASES = {
    "sfh": "single_family",
    "sfr": "single_family",
    "single family": "single_family",
    "single-family": "single_family",
    "condo": "condo",
    "condominium": "condo",
    "townhouse": "townhouse",
    "town home": "townhouse",
    "town house": "townhouse",
    "townhome": "townhouse",
    "duplex": "multi_family",
    "triplex": "multi_family",
    "fourplex": "multi_family",
    "multi family": "multi_family",
    "multi-family": "multi_family",
    "mobile": "mobile_home",
    "mobile home": "mobile_home",
    "manufactured": "mobile_home",
    "lot": "land",
    "vacant land": "land",
    "house": "single_family",
}


def coerce_float(v: Any) -> float | None:
    """
    Coerce 250000, "250000", "$250,000", "6.5%" into float.
    Returns None for blanks / garbage so the caller can apply its default.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        s = v.strip().replace("$", "").replace(",", "").replace("%", "")
        if not s:
            return None
        try:
            return float(s)
        except ValueError:
            return None
    return None


def normalize_property_type(raw: Any) -> str:
    t = str(raw or "").strip().lower().replace("_", " ")
    if not t:
        return "single_family"
    if t.replace(" ", "_") in {"single_family", "condo", "townhouse", "multi_family", "mobile_home", "land"}:
        return t.replace(" ", "_")
    if t in _PROPERTY_TYPE_ALIASES:
        return _PROPERTY_TYPE_ALIASES[t]
    for alias, internal in _PROPERTY_TYPE_ALIASES.items():
        if alias in t:
            return internal
    return "single_family"


class Comp(BaseModel):
    """A sold comparable used to derive ARV when the lead arrives without one."""

    model_config = ConfigDict(extra="ignore")

    sale_price: float
    sqft: float = DEFAULT_SQFT
    beds: float = DEFAULT_BEDS
    baths: float = DEFAULT_BATHS
    year_built: int | None = None

    @field_validator("sale_price", mode="before")
    @classmethod
    def _price(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f > 0 else 0.0

    @field_validator("sqft", mode="before")
    @classmethod
    def _sqft(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f > 0 else DEFAULT_SQFT

    @field_validator("beds", "baths", mode="before")
    @classmethod
    def _rooms(cls, v: Any, info: ValidationInfo) -> float:
        f = coerce_float(v)
        if f is not None and f >= 0:
            return f
        return DEFAULT_BEDS if info.field_name == "beds" else DEFAULT_BATHS

    @field_validator("year_built", mode="before")
    @classmethod
    def _year_built(cls, v: Any) -> int | None:
        f = coerce_float(v)
        if f is None or f < 1700 or f > 2100:
            return None
        return int(f)


class Deal(BaseModel):
    """
    Normalized acquisition lead.

    Absent or malformed numeric inputs fall back to the documented defaults
    here, so downstream stages never have to check for missing values.
    Derived fields (arv, comp_confidence, market_rent, existing_mortgage) are
    written only by the valuation stage.
    """

    model_config = ConfigDict(extra="ignore")

    deal_id: str = Field(..., min_length=1)

    address: str = ""
    city: str = ""
    state: str = ""
    zipcode: str = ""

    asking_price: float = 0.0

    beds: float = DEFAULT_BEDS
    baths: float = DEFAULT_BATHS
    sqft: float = DEFAULT_SQFT
    year_built: int = DEFAULT_YEAR_BUILT
    property_type: str = "single_family"

    days_on_market: float = DEFAULT_DAYS_ON_MARKET
    motivation_signals: str = ""
    description: str = ""
    sla_status: SlaStatus = "Pending"

    arv: float = 0.0
    comp_confidence: CompConfidence = "medium"
    comps: list[Comp] = Field(default_factory=list)

    market_rent: float | None = None
    existing_mortgage: float | None = None
    existing_mortgage_rate: float | None = None

    # optional context for Sub-To risk and the opportunity / threat lists
    lender_type: str = ""
    payment_history: str = ""
    market_trend: MarketTrend | None = None
    lot_size: float | None = None
    zoning: str = ""

    @field_validator("deal_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if v is None:
            return v
        return str(v).strip()

    @field_validator("address", "city", "zipcode", "motivation_signals", "description", "zoning", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("state", mode="before")
    @classmethod
    def _state_upper(cls, v: Any) -> str:
        return "" if v is None else str(v).strip().upper()

    @field_validator("asking_price", "arv", mode="before")
    @classmethod
    def _money(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f > 0 else 0.0

    @field_validator("sqft", mode="before")
    @classmethod
    def _sqft(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f > 0 else DEFAULT_SQFT

    @field_validator("year_built", mode="before")
    @classmethod
    def _year_built(cls, v: Any) -> int:
        f = coerce_float(v)
        if f is None or f < 1700 or f > 2100:
            return DEFAULT_YEAR_BUILT
        return int(f)

    @field_validator("days_on_market", mode="before")
    @classmethod
    def _dom(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f >= 0 else DEFAULT_DAYS_ON_MARKET

    @field_validator("beds", mode="before")
    @classmethod
    def _beds(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f >= 0 else DEFAULT_BEDS

    @field_validator("baths", mode="before")
    @classmethod
    def _baths(cls, v: Any) -> float:
        f = coerce_float(v)
        return f if f is not None and f >= 0 else DEFAULT_BATHS

    @field_validator("property_type", mode="before")
    @classmethod
    def _ptype(cls, v: Any) -> str:
        return normalize_property_type(v)

    @field_validator("sla_status", mode="before")
    @classmethod
    def _sla(cls, v: Any) -> str:
        s = str(v or "").strip().lower()
        return {
            "fast": "Fast",
            "on time": "On Time",
            "ontime": "On Time",
            "slow": "Slow",
            "breach": "Breach",
            "breached": "Breach",
        }.get(s, "Pending")

    @field_validator("comp_confidence", mode="before")
    @classmethod
    def _confidence(cls, v: Any) -> str:
        s = str(v or "").strip().lower()
        return s if s in {"high", "medium", "low"} else "medium"

    @field_validator("existing_mortgage_rate", mode="before")
    @classmethod
    def _rate(cls, v: Any) -> float | None:
        f = coerce_float(v)
        if f is None or f < 0:
            return None
        # "4.5" and "4.5%" both mean 4.5 percent
        return f / 100.0 if f > 1.0 else f

    @field_validator("lender_type", "payment_history", mode="before")
    @classmethod
    def _lower_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip().lower()

    @field_validator("market_trend", mode="before")
    @classmethod
    def _trend(cls, v: Any) -> str | None:
        s = str(v or "").strip().lower()
        return {
            "up": "up", "rising": "up", "appreciating": "up",
            "down": "down", "declining": "down", "falling": "down",
            "flat": "flat", "stable": "flat",
        }.get(s)

    @field_validator("market_rent", "existing_mortgage", "lot_size", mode="before")
    @classmethod
    def _optional_money(cls, v: Any) -> float | None:
        f = coerce_float(v)
        if f is None or f < 0:
            return None
        return f

    @field_validator("comps", mode="before")
    @classmethod
    def _comps(cls, v: Any) -> list[Any]:
        # a comp without a usable sale price is dropped; the deal is kept
        if not isinstance(v, (list, tuple)):
            return []
        kept: list[Any] = []
        for c in v:
            if isinstance(c, Comp):
                price = c.sale_price
            elif isinstance(c, dict):
                price = coerce_float(c.get("sale_price"))
            else:
                continue
            if price is not None and price > 0:
                kept.append(c)
        return kept

    @property
    def signal_text(self) -> str:
        return f"{self.motivation_signals} {self.description}".strip().lower()
