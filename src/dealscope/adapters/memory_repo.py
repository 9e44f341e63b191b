from __future__ import annotations

import threading
from dataclasses import asdict
from typing import Any, Iterable

from dealscope.domain.buyer import Buyer
from dealscope.domain.ports import BuyerRepository, ResultRepository
from dealscope.domain.results import DealEvaluation, MatchResult


def _rank_key(v: dict[str, Any]) -> tuple[int, str]:
    rank = v.get("rank")
    return (rank if isinstance(rank, int) else 10**9, str(v.get("deal_id", "")))


class InMemoryResultRepository(ResultRepository):
    """Results keyed by deal id; a save replaces the previous one (last write wins)."""

    def __init__(self) -> None:
        self._evaluations: dict[str, dict[str, Any]] = {}
        self._matches: dict[str, list[dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def save_evaluation(self, evaluation: DealEvaluation) -> None:
        with self._lock:
            self._evaluations[evaluation.deal_id] = evaluation.to_dict()

    def get_evaluation(self, deal_id: str) -> dict[str, Any] | None:
        with self._lock:
            return self._evaluations.get(deal_id)

    def save_matches(self, deal_id: str, matches: list[MatchResult]) -> None:
        with self._lock:
            self._matches[deal_id] = [asdict(m) for m in matches]

    def get_matches(self, deal_id: str) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._matches.get(deal_id, []))

    def list_verdicts(self) -> list[dict[str, Any]]:
        with self._lock:
            verdicts = [e["verdict"] for e in self._evaluations.values()]
        return sorted(verdicts, key=_rank_key)

    def clear_ranks(self) -> None:
        # ranks belong to one run; a new run renumbers only what it evaluates
        with self._lock:
            for e in self._evaluations.values():
                e["verdict"]["rank"] = None


class InMemoryBuyerRepository(BuyerRepository):
    def __init__(self, buyers: Iterable[Buyer] = ()) -> None:
        self._items: dict[str, Buyer] = {}
        self.upsert_many(buyers)

    def upsert_many(self, buyers: Iterable[Buyer]) -> int:
        written = 0
        for b in buyers:
            self._items[b.buyer_id] = b
            written += 1
        return written

    def list_active(self) -> list[Buyer]:
        return [b for b in self._items.values() if b.active]
