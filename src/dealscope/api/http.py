# src/dealscope/api/http.py
from __future__ import annotations

from dataclasses import asdict
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import ValidationError

from dealscope.adapters.config import config, load_assumptions
from dealscope.adapters.sql_repo import SqlResultRepository
from dealscope.adapters.zip_cache import ZipSignalCache
from dealscope.domain.assumptions import Assumptions
from dealscope.domain.ports import ResultRepository
from dealscope.pipelines.core import run_pipeline
from dealscope.services.deal_analyzer import analyze_payload
from .schemas import EvaluateRequest, EvaluateResponse, PipelineRunRequest, PipelineRunResponse

app = FastAPI(title="dealscope")

# one cache for the life of the process, shared by every request
_zip_cache = ZipSignalCache()


@lru_cache(maxsize=1)
def get_result_repo() -> ResultRepository:
    return SqlResultRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_assumptions() -> Assumptions:
    return load_assumptions()


@app.post("/evaluate", response_model=EvaluateResponse)
def evaluate_endpoint(
    payload: EvaluateRequest,
    save: bool = True,
    repo: ResultRepository = Depends(get_result_repo),
    assumptions: Assumptions = Depends(get_assumptions),
) -> dict[str, Any]:
    try:
        evaluation = analyze_payload(payload.model_dump(), assumptions, _zip_cache)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False)) from e
    if save:
        repo.save_evaluation(evaluation)
    return evaluation.to_dict()


@app.post("/pipeline/run", response_model=PipelineRunResponse)
def pipeline_run_endpoint(
    payload: PipelineRunRequest,
    repo: ResultRepository = Depends(get_result_repo),
    assumptions: Assumptions = Depends(get_assumptions),
) -> PipelineRunResponse:
    run = run_pipeline(
        payload.deals,
        buyers=payload.buyers,
        repo=repo,
        assumptions=assumptions,
        zip_cache=_zip_cache,
    )
    if run is None:
        raise HTTPException(status_code=409, detail="A pipeline run is already in progress")

    return PipelineRunResponse(
        summary=run.summary.to_dict() if run.summary else {},
        verdicts=[asdict(ev.verdict) for ev in run.evaluations],
        matches={k: [asdict(m) for m in v] for k, v in run.matches.items()},
    )


@app.get("/verdicts", response_model=list[dict])
def list_verdicts(repo: ResultRepository = Depends(get_result_repo)) -> list[dict]:
    return repo.list_verdicts()


@app.get("/verdicts/{deal_id}", response_model=dict)
def get_verdict(deal_id: str, repo: ResultRepository = Depends(get_result_repo)) -> dict:
    evaluation = repo.get_evaluation(deal_id)
    if evaluation is None:
        raise HTTPException(status_code=404, detail=f"No evaluation for deal {deal_id}")
    return evaluation


@app.get("/matches/{deal_id}", response_model=list[dict])
def get_matches(deal_id: str, repo: ResultRepository = Depends(get_result_repo)) -> list[dict]:
    if repo.get_evaluation(deal_id) is None:
        raise HTTPException(status_code=404, detail=f"No evaluation for deal {deal_id}")
    return repo.get_matches(deal_id)
