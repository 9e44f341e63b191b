from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from loguru import logger

from dealscope.adapters.config import load_assumptions
from dealscope.adapters.sql_repo import SqlResultRepository
from dealscope.adapters.storage import FileBuyerRepository, read_records, write_df
from dealscope.adapters.zip_cache import ZipSignalCache
from dealscope.domain.buyer import Buyer
from dealscope.domain.deal import Deal
from dealscope.pipelines.core import run_pipeline
from dealscope.services.deal_analyzer import analyze_deal
from dealscope.services.matching import match_buyers

app = typer.Typer(help="Dealscope deal evaluation pipeline (verdicts, strategies, buyer matching).")


def _verdict_rows(evaluations) -> pd.DataFrame:
    rows = []
    for ev in evaluations:
        v = ev.verdict
        rows.append(
            {
                "rank": v.rank,
                "deal_id": v.deal_id,
                "verdict": v.verdict,
                "deal_score": v.deal_score,
                "risk_score": v.risk_score,
                "grade": v.grade,
                "best_strategy": v.best_strategy,
                "next_action": v.next_action,
                "override_reason": v.override_reason or "",
                "strategies": ev.comparison.summary,
            }
        )
    return pd.DataFrame(rows)


@app.command("evaluate")
def evaluate_cmd(
    deal_json: str = typer.Argument(..., help="Path to a JSON file holding one deal record"),
    assumptions: Optional[str] = typer.Option(None, help="Assumptions JSON (default: DEALSCOPE_ASSUMPTIONS_PATH)"),
    output: Optional[str] = typer.Option(None, help="Write the evaluation here instead of stdout"),
) -> None:
    """
    Evaluate a single deal and print the full evaluation as JSON.
    """
    record = json.loads(Path(deal_json).read_text(encoding="utf-8"))
    evaluation = analyze_deal(Deal.model_validate(record), load_assumptions(assumptions))
    text = json.dumps(evaluation.to_dict(), indent=2, default=str)

    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_text(text, encoding="utf-8")
        logger.info("Evaluation written", deal_id=evaluation.deal_id, path=output)
    else:
        typer.echo(text)


@app.command("run")
def run_cmd(
    deals: str = typer.Option(..., "--deals", help="Deals file (CSV / JSON / parquet)"),
    buyers: Optional[str] = typer.Option(None, "--buyers", help="Buyer database export (CSV / JSON / parquet)"),
    out_dir: str = typer.Option("data/reports", help="Directory for verdicts.csv, matches.csv, run_summary.json"),
    assumptions: Optional[str] = typer.Option(None, help="Assumptions JSON (default: DEALSCOPE_ASSUMPTIONS_PATH)"),
    db_uri: Optional[str] = typer.Option(None, help="Also persist results to this database"),
    n_jobs: Optional[int] = typer.Option(None, help="Parallel workers (default: DEALSCOPE_PIPELINE_N_JOBS)"),
) -> None:
    """
    Batch run: evaluate every deal, rank verdicts, match buyers, write reports.
    """
    records = read_records(deals)
    active_buyers = FileBuyerRepository(buyers).list_active() if buyers else []
    repo = SqlResultRepository(db_uri) if db_uri else None

    run = run_pipeline(
        records,
        buyers=active_buyers,
        repo=repo,
        assumptions=load_assumptions(assumptions),
        zip_cache=ZipSignalCache(),
        n_jobs=n_jobs,
    )
    if run is None:
        logger.warning("Another pipeline run is in progress; nothing written")
        raise typer.Exit(code=1)

    out = Path(out_dir)
    write_df(_verdict_rows(run.evaluations), str(out / "verdicts.csv"))

    match_rows = [asdict(m) for deal_matches in run.matches.values() for m in deal_matches]
    write_df(pd.DataFrame(match_rows), str(out / "matches.csv"))

    summary = run.summary.to_dict() if run.summary else {}
    (out / "run_summary.json").write_text(json.dumps(summary, indent=2), encoding="utf-8")

    logger.info("Reports written", out_dir=str(out), n_deals=len(run.evaluations))


@app.command("match")
def match_cmd(
    deal_json: str = typer.Argument(..., help="Path to a JSON file holding one deal record"),
    buyers: str = typer.Option(..., "--buyers", help="Buyer database export (CSV / JSON / parquet)"),
    min_score: Optional[float] = typer.Option(None, help="Minimum total score (default: matching assumptions)"),
    max_results: Optional[int] = typer.Option(None, help="Maximum matches returned"),
    assumptions: Optional[str] = typer.Option(None, help="Assumptions JSON (default: DEALSCOPE_ASSUMPTIONS_PATH)"),
) -> None:
    """
    Evaluate one deal and list the buyers it should be sent to.
    """
    loaded = load_assumptions(assumptions)
    record = json.loads(Path(deal_json).read_text(encoding="utf-8"))
    evaluation = analyze_deal(Deal.model_validate(record), loaded)

    pool: list[Buyer] = FileBuyerRepository(buyers).list_active()
    matches = match_buyers(
        Deal.model_validate(evaluation.deal),
        evaluation.verdict,
        pool,
        loaded.matching,
        min_score=min_score,
        max_results=max_results,
    )
    typer.echo(json.dumps([asdict(m) for m in matches], indent=2))


if __name__ == "__main__":
    app()
