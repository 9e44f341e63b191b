# src/dealscope/adapters/config.py
import json
import logging
from pathlib import Path
from typing import Any, Mapping

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dealscope.domain.assumptions import SECTIONS, Assumptions


def _log() -> logging.Logger:
    # logging_utils reads `config` from this module, so import it at call time
    from dealscope.adapters.logging_utils import get_logger

    return get_logger("dealscope.config")


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    DB_URI: str = Field(default="sqlite:///dealscope.db")

    # Scoring assumptions file (JSON, one object per section). Unset -> defaults.
    ASSUMPTIONS_PATH: str | None = Field(default=None)

    # -----------------------------
    # ZIP lookup cache
    # -----------------------------
    ZIP_CACHE_TTL_SECONDS: float = Field(default=3600.0)
    ZIP_CACHE_MAXSIZE: int = Field(default=4096)

    # -----------------------------
    # Pipeline runs
    # -----------------------------
    PIPELINE_LOCK_TIMEOUT: float = Field(default=5.0)
    PIPELINE_N_JOBS: int = Field(default=1)

    # -----------------------------
    # Buyer matching (unset -> the matching assumptions)
    # -----------------------------
    MATCH_MIN_SCORE: float | None = Field(default=None)
    MATCH_MAX_RESULTS: int | None = Field(default=None)
    MATCH_PRICE_TOLERANCE: float | None = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="DEALSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("MATCH_PRICE_TOLERANCE", mode="before")
    @classmethod
    def _to_non_negative_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("rate must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("rate must be non-negative")
        return f

    @field_validator("PIPELINE_LOCK_TIMEOUT", "ZIP_CACHE_TTL_SECONDS", mode="before")
    @classmethod
    def _positive_seconds(cls, v: Any) -> Any:
        f = float(v)
        if f <= 0:
            raise ValueError("duration must be > 0")
        return f


config = AppConfig()


def _read_assumptions_file(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        _log().warning(
            "assumptions_file_unreadable",
            extra={"context": {"path": str(p), "error": str(e)}},
        )
        return {}
    if not isinstance(raw, dict):
        _log().warning(
            "assumptions_file_not_object",
            extra={"context": {"path": str(p), "type": type(raw).__name__}},
        )
        return {}
    return raw


def load_assumptions(source: str | Path | Mapping[str, Any] | None = None) -> Assumptions:
    """
    Build the scoring Assumptions from a JSON file, a mapping, or the
    configured ASSUMPTIONS_PATH.

    Each section is validated on its own: a section that fails validation
    keeps its documented defaults and logs a warning. This never raises.
    """
    if source is None:
        source = config.ASSUMPTIONS_PATH
    if source is None:
        return Assumptions()

    raw = dict(source) if isinstance(source, Mapping) else _read_assumptions_file(source)

    sections: dict[str, Any] = {}
    for name, model in SECTIONS.items():
        if name not in raw and not (name == "str" and "str_" in raw):
            continue
        overrides = raw.get(name, raw.get("str_")) if name == "str" else raw[name]
        if not isinstance(overrides, Mapping):
            _log().warning(
                "assumptions_section_invalid",
                extra={"context": {"section": name, "error": "section must be an object"}},
            )
            continue
        try:
            sections[name] = model.model_validate(dict(overrides))
        except ValidationError as e:
            _log().warning(
                "assumptions_section_invalid",
                extra={"context": {"section": name, "errors": e.error_count()}},
            )

    unknown = sorted(set(raw) - set(SECTIONS) - {"str_"})
    if unknown:
        _log().warning("assumptions_unknown_sections", extra={"context": {"sections": unknown}})

    return Assumptions(**sections)
