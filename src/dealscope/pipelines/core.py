# src/dealscope/pipelines/core.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from joblib import Parallel, delayed
from loguru import logger
from pydantic import ValidationError

from dealscope.adapters.config import config
from dealscope.adapters.zip_cache import ZipSignalCache
from dealscope.domain.assumptions import Assumptions
from dealscope.domain.buyer import Buyer
from dealscope.domain.deal import Deal
from dealscope.domain.metrics import RunSummary, summarize_run
from dealscope.domain.ports import ResultRepository, ZipLookupCache
from dealscope.domain.results import DealEvaluation, MatchResult
from dealscope.services.deal_analyzer import analyze_deal
from dealscope.services.matching import match_buyers
from dealscope.services.verdict import rank_verdicts

DealInput = Union[Deal, Mapping[str, Any]]
Analyzer = Callable[[Deal, Assumptions, Optional[ZipLookupCache]], DealEvaluation]

# One run at a time per process: two triggered runs must never interleave
# writes to the same result store.
RUN_LOCK = threading.Lock()


@dataclass
class PipelineRun:
    evaluations: List[DealEvaluation]              # ranked, rank 1 first
    matches: Dict[str, List[MatchResult]] = field(default_factory=dict)
    summary: Optional[RunSummary] = None


# ---------------------------
# 1. PER-DEAL WORK (fan-out)
# ---------------------------

def _coerce_deal(record: DealInput, position: int) -> tuple[Optional[Deal], str]:
    if isinstance(record, Deal):
        return record, record.deal_id
    label = f"record[{position}]"
    try:
        label = str(record.get("deal_id") or label)
        return Deal.model_validate(dict(record)), label
    except ValidationError as e:
        logger.warning("Skipping invalid deal record", record=label, errors=e.error_count())
        return None, label
    except (TypeError, AttributeError, ValueError) as e:
        logger.warning("Skipping non-mapping deal record", record=label, kind=type(record).__name__, error=str(e))
        return None, label


def _evaluate_one(
    record: DealInput,
    position: int,
    assumptions: Assumptions,
    zip_cache: Optional[ZipLookupCache],
    analyzer: Analyzer,
) -> tuple[str, str, Optional[DealEvaluation]]:
    """
    Worker for one deal. Never raises: returns (status, label, evaluation)
    with status "ok", "skipped" (invalid record) or "failed" (analysis error).
    """
    deal, label = _coerce_deal(record, position)
    if deal is None:
        return "skipped", label, None
    try:
        return "ok", label, analyzer(deal, assumptions, zip_cache)
    except Exception as e:
        logger.exception("Deal evaluation failed", deal_id=label, error=str(e))
        return "failed", label, None


def evaluate_deals(
    records: Sequence[DealInput],
    assumptions: Assumptions,
    zip_cache: Optional[ZipLookupCache] = None,
    n_jobs: Optional[int] = None,
    analyzer: Analyzer = analyze_deal,
) -> tuple[List[DealEvaluation], List[str], List[str]]:
    """Fan out over deals; results come back in input order."""
    jobs = n_jobs if n_jobs is not None else config.PIPELINE_N_JOBS
    outcomes = Parallel(n_jobs=jobs, prefer="threads")(
        delayed(_evaluate_one)(rec, i, assumptions, zip_cache, analyzer)
        for i, rec in enumerate(records)
    )

    evaluations: List[DealEvaluation] = []
    skipped: List[str] = []
    failed: List[str] = []
    for status, label, evaluation in outcomes:
        if status == "ok" and evaluation is not None:
            evaluations.append(evaluation)
        elif status == "skipped":
            skipped.append(label)
        else:
            failed.append(label)
    return evaluations, skipped, failed


# ---------------------------
# 2. FAN-IN: rank, persist, match
# ---------------------------

def rank_evaluations(evaluations: Sequence[DealEvaluation]) -> List[DealEvaluation]:
    by_id = {id(e.verdict): e for e in evaluations}
    ranked = rank_verdicts([e.verdict for e in evaluations])
    return [by_id[id(v)] for v in ranked]


def match_evaluations(
    evaluations: Sequence[DealEvaluation],
    buyers: Sequence[Buyer],
    assumptions: Assumptions,
) -> Dict[str, List[MatchResult]]:
    out: Dict[str, List[MatchResult]] = {}
    for ev in evaluations:
        deal = Deal.model_validate(ev.deal)
        out[ev.deal_id] = match_buyers(
            deal,
            ev.verdict,
            buyers,
            assumptions.matching,
            min_score=config.MATCH_MIN_SCORE,
            max_results=config.MATCH_MAX_RESULTS,
            price_tolerance=config.MATCH_PRICE_TOLERANCE,
        )
    return out


def run_pipeline(
    records: Iterable[DealInput],
    buyers: Optional[Sequence[Buyer]] = None,
    repo: Optional[ResultRepository] = None,
    assumptions: Optional[Assumptions] = None,
    zip_cache: Optional[ZipLookupCache] = None,
    n_jobs: Optional[int] = None,
    lock: Optional[threading.Lock] = None,
    lock_timeout: Optional[float] = None,
    analyzer: Analyzer = analyze_deal,
) -> Optional[PipelineRun]:
    """
    Full batch run:

        evaluate every deal (in parallel, failures isolated per deal)
        -> rank all verdicts by Deal Score
        -> persist evaluations
        -> match each deal to active buyers and persist matches

    Guarded by a process-wide lock with a bounded wait. If another run holds
    it, this call is a no-op and returns None.

    Rerunning with unchanged inputs reproduces identical evaluations.
    """
    lock = lock or RUN_LOCK
    timeout = lock_timeout if lock_timeout is not None else config.PIPELINE_LOCK_TIMEOUT
    if not lock.acquire(timeout=timeout):
        logger.info("Pipeline run skipped; another run holds the lock", timeout=timeout)
        return None

    try:
        assumptions = assumptions or Assumptions()
        zip_cache = zip_cache if zip_cache is not None else ZipSignalCache()
        records = list(records)

        logger.info("Pipeline run started", n_records=len(records))
        evaluations, skipped, failed = evaluate_deals(records, assumptions, zip_cache, n_jobs, analyzer)
        ranked = rank_evaluations(evaluations)

        if repo is not None:
            # one global ranking per run; earlier runs' ranks are withdrawn
            repo.clear_ranks()
            for ev in ranked:
                repo.save_evaluation(ev)

        matches: Dict[str, List[MatchResult]] = {}
        if buyers:
            active = [b for b in buyers if b.active]
            matches = match_evaluations(ranked, active, assumptions)
            if repo is not None:
                for deal_id, deal_matches in matches.items():
                    repo.save_matches(deal_id, deal_matches)

        summary = summarize_run([ev.verdict for ev in ranked])
        summary.skipped = skipped
        summary.failed = failed
        summary.n_matches = sum(len(m) for m in matches.values())

        logger.info(
            "Pipeline run completed",
            n_evaluated=len(ranked),
            n_skipped=len(skipped),
            n_failed=len(failed),
            n_matches=summary.n_matches,
            verdicts=summary.verdict_counts,
        )
        return PipelineRun(evaluations=ranked, matches=matches, summary=summary)
    finally:
        lock.release()
