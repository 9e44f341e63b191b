# src/dealscope/api/schemas.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dealscope.domain.buyer import Buyer


# --------------------------------------------
# Evaluate (single deal)
# --------------------------------------------

class EvaluateRequest(BaseModel):
    """
    One lead as sent by ingestion.

    Kept permissive: only deal_id is required, everything else defaults
    inside the Deal model, and extra fields pass through untouched.
    """
    model_config = ConfigDict(extra="allow")

    deal_id: str = Field(..., min_length=1)

    @field_validator("deal_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        # CRM exports send numeric ids
        if v is None:
            return v
        return str(v).strip()


class EvaluateResponse(BaseModel):
    """Full evaluation: repair, market, strategies, comparison, verdict, guardrails."""
    model_config = ConfigDict(extra="allow")

    deal_id: str


# --------------------------------------------
# Pipeline run
# --------------------------------------------

class PipelineRunRequest(BaseModel):
    # raw records; invalid ones are skipped by the pipeline, not rejected here
    deals: list[dict[str, Any]]
    buyers: list[Buyer] = Field(default_factory=list)


class PipelineRunResponse(BaseModel):
    summary: dict[str, Any]
    verdicts: list[dict[str, Any]]
    matches: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
