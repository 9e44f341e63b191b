# src/dealscope/domain/ports.py
from __future__ import annotations

from typing import Any, Callable, Hashable, Iterable, Protocol

from dealscope.domain.buyer import Buyer
from dealscope.domain.results import DealEvaluation, MatchResult


# ----------------------------
# ZIP-level lookups
# ----------------------------

class ZipLookupCache(Protocol):
    def get_or_compute(self, key: Hashable, compute: Callable[[], float]) -> float:
        ...


# ----------------------------
# Result persistence (keyed by deal id, last write wins)
# ----------------------------

class ResultRepository(Protocol):
    def save_evaluation(self, evaluation: DealEvaluation) -> None:
        ...

    def get_evaluation(self, deal_id: str) -> dict[str, Any] | None:
        ...

    def save_matches(self, deal_id: str, matches: list[MatchResult]) -> None:
        ...

    def get_matches(self, deal_id: str) -> list[dict[str, Any]]:
        ...

    def list_verdicts(self) -> list[dict[str, Any]]:
        ...

    def clear_ranks(self) -> None:
        ...


# ----------------------------
# Buyer database
# ----------------------------

class BuyerRepository(Protocol):
    def list_active(self) -> list[Buyer]:
        ...

    def upsert_many(self, buyers: Iterable[Buyer]) -> int:
        ...
