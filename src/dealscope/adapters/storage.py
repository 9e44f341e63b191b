from pathlib import Path
from typing import Any

import pandas as pd

from dealscope.domain.buyer import Buyer


def read_df(path: str) -> pd.DataFrame:
    if path.endswith(".parquet"):
        return pd.read_parquet(path)
    if path.endswith(".json"):
        return pd.read_json(path, dtype=False)
    # everything as text; the record models do their own coercion
    return pd.read_csv(path, dtype=str)


def write_df(df: pd.DataFrame, path: str):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    if path.endswith(".parquet"):
        df.to_parquet(path, index=False)
    elif path.endswith(".json"):
        df.to_json(path, orient="records", indent=2)
    else:
        df.to_csv(path, index=False)


def read_records(path: str) -> list[dict[str, Any]]:
    """Rows as plain dicts, with blank cells as None rather than NaN."""
    df = read_df(path)
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


class FileBuyerRepository:
    """Buyer database backed by a CSV / parquet / JSON export."""

    def __init__(self, path: str) -> None:
        self.path = path

    def upsert_many(self, buyers) -> int:
        existing = {b.buyer_id: b for b in self._load()}
        for b in buyers:
            existing[b.buyer_id] = b
        rows = [b.model_dump(mode="json") for b in existing.values()]
        for r in rows:
            for key in ("preferred_zips", "preferred_cities", "preferred_property_types"):
                r[key] = ",".join(sorted(r.get(key) or []))
        write_df(pd.DataFrame(rows), self.path)
        return len(rows)

    def _load(self) -> list[Buyer]:
        if not Path(self.path).exists():
            return []
        return [Buyer.model_validate(r) for r in read_records(self.path)]

    def list_active(self) -> list[Buyer]:
        return [b for b in self._load() if b.active]
