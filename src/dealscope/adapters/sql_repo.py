# src/dealscope/adapters/sql_repo.py
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable

from sqlmodel import JSON, Column, Field, Session, SQLModel, col, create_engine, select

from dealscope.domain.buyer import Buyer
from dealscope.domain.results import DealEvaluation, MatchResult


# ---------- Evaluations (one row per deal, last write wins) ----------

class EvaluationRow(SQLModel, table=True):
    __tablename__ = "evaluations"

    deal_id: str = Field(primary_key=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    verdict: str = Field(index=True)
    deal_score: float = Field(index=True)
    risk_score: float
    rank: int | None = Field(default=None, index=True)
    best_strategy: str | None = None

    result: dict[str, Any] = Field(sa_column=Column(JSON))


class MatchRow(SQLModel, table=True):
    __tablename__ = "matches"

    id: int | None = Field(default=None, primary_key=True)
    deal_id: str = Field(index=True)
    buyer_id: str = Field(index=True)
    position: int
    total_score: int = Field(index=True)

    result: dict[str, Any] = Field(sa_column=Column(JSON))


class SqlResultRepository:
    def __init__(self, uri: str = "sqlite:///dealscope.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def save_evaluation(self, evaluation: DealEvaluation) -> None:
        v = evaluation.verdict
        with Session(self.engine) as session:
            row = session.get(EvaluationRow, evaluation.deal_id)
            if row is None:
                row = EvaluationRow(
                    deal_id=evaluation.deal_id,
                    verdict=v.verdict,
                    deal_score=v.deal_score,
                    risk_score=v.risk_score,
                    result={},
                )
            row.updated_at = datetime.utcnow()
            row.verdict = v.verdict
            row.deal_score = v.deal_score
            row.risk_score = v.risk_score
            row.rank = v.rank
            row.best_strategy = v.best_strategy
            row.result = evaluation.to_dict()
            session.add(row)
            session.commit()

    def get_evaluation(self, deal_id: str) -> dict[str, Any] | None:
        with Session(self.engine) as session:
            row = session.get(EvaluationRow, deal_id)
            return dict(row.result) if row else None

    def save_matches(self, deal_id: str, matches: list[MatchResult]) -> None:
        # a matching run replaces the previous one for this deal
        with Session(self.engine) as session:
            stale = session.exec(select(MatchRow).where(MatchRow.deal_id == deal_id))
            for row in stale:
                session.delete(row)
            for i, m in enumerate(matches):
                session.add(
                    MatchRow(
                        deal_id=deal_id,
                        buyer_id=m.buyer_id,
                        position=i,
                        total_score=m.total_score,
                        result=asdict(m),
                    )
                )
            session.commit()

    def get_matches(self, deal_id: str) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = select(MatchRow).where(MatchRow.deal_id == deal_id).order_by(MatchRow.position)
            return [dict(r.result) for r in session.exec(stmt)]

    def list_verdicts(self) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            rows = list(session.exec(select(EvaluationRow)))
        rows.sort(key=lambda r: (r.rank if r.rank is not None else 10**9, r.deal_id))
        return [dict(r.result.get("verdict", {})) for r in rows]

    def clear_ranks(self) -> None:
        with Session(self.engine) as session:
            ranked = list(session.exec(select(EvaluationRow).where(col(EvaluationRow.rank).is_not(None))))
            for row in ranked:
                result = dict(row.result)
                result["verdict"] = {**result.get("verdict", {}), "rank": None}
                row.rank = None
                row.result = result
                session.add(row)
            session.commit()


# ---------- Buyers ----------

class BuyerRow(SQLModel, table=True):
    __tablename__ = "buyers"

    buyer_id: str = Field(primary_key=True)
    active: bool = Field(default=True, index=True)
    record: dict[str, Any] = Field(sa_column=Column(JSON))


class SqlBuyerRepository:
    def __init__(self, uri: str = "sqlite:///dealscope.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def upsert_many(self, buyers: Iterable[Buyer]) -> int:
        written = 0
        with Session(self.engine) as session:
            for b in buyers:
                row = session.get(BuyerRow, b.buyer_id)
                record = b.model_dump(mode="json")
                if row is None:
                    row = BuyerRow(buyer_id=b.buyer_id, active=b.active, record=record)
                else:
                    row.active = b.active
                    row.record = record
                session.add(row)
                written += 1
            session.commit()
        return written

    def list_active(self) -> list[Buyer]:
        with Session(self.engine) as session:
            stmt = select(BuyerRow).where(BuyerRow.active == True).order_by(BuyerRow.buyer_id)  # noqa: E712
            return [Buyer.model_validate(r.record) for r in session.exec(stmt)]
