from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Sequence

import numpy as np

from dealscope.domain.results import VerdictRecord


@dataclass
class ScoreStats:
    mean: float
    p10: float
    p50: float
    p90: float


@dataclass
class RunSummary:
    """
    Reduction over one pipeline run's verdict records.

    Run bookkeeping (skipped / failed ids, run id) lives here rather than on
    the records themselves, so records stay identical across reruns.
    """
    n_deals: int
    deal_score: ScoreStats
    risk_score: ScoreStats
    verdict_counts: Dict[str, int]
    best_strategy_counts: Dict[str, int]
    n_matches: int = 0
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _stats(values: np.ndarray) -> ScoreStats:
    if values.size == 0:
        return ScoreStats(mean=0.0, p10=0.0, p50=0.0, p90=0.0)
    p10, p50, p90 = np.percentile(values, [10, 50, 90])
    return ScoreStats(
        mean=round(float(values.mean()), 2),
        p10=round(float(p10), 2),
        p50=round(float(p50), 2),
        p90=round(float(p90), 2),
    )


def summarize_run(records: Sequence[VerdictRecord]) -> RunSummary:
    deal_scores = np.asarray([r.deal_score for r in records], dtype=float)
    risk_scores = np.asarray([r.risk_score for r in records], dtype=float)

    verdicts = Counter(r.verdict for r in records)
    best = Counter(r.best_strategy for r in records if r.best_strategy)

    return RunSummary(
        n_deals=int(deal_scores.shape[0]),
        deal_score=_stats(deal_scores),
        risk_score=_stats(risk_scores),
        verdict_counts={k: verdicts.get(k, 0) for k in ("HOT", "SOLID", "HOLD", "PASS")},
        best_strategy_counts=dict(sorted(best.items())),
    )
