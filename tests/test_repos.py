import threading
from dataclasses import asdict

import pytest

from dealscope.adapters.memory_repo import InMemoryBuyerRepository, InMemoryResultRepository
from dealscope.adapters.sql_repo import SqlBuyerRepository, SqlResultRepository
from dealscope.adapters.storage import FileBuyerRepository, read_records
from dealscope.domain.assumptions import MatchingAssumptions
from dealscope.pipelines.core import run_pipeline
from dealscope.services.deal_analyzer import analyze_deal
from dealscope.services.matching import score_buyer
from dealscope.services.verdict import rank_verdicts

from fixtures.deals import deal_record, flip_candidate, flipper_buyer, landlord_buyer, no_equity_deal


@pytest.fixture
def evaluations():
    evs = [analyze_deal(no_equity_deal()), analyze_deal(flip_candidate())]
    rank_verdicts([e.verdict for e in evs])
    return evs


@pytest.fixture(params=["memory", "sql"])
def result_repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryResultRepository()
    return SqlResultRepository(f"sqlite:///{tmp_path / 'results.db'}")


def test_save_and_list_by_rank(result_repo, evaluations):
    for ev in evaluations:
        result_repo.save_evaluation(ev)

    listed = result_repo.list_verdicts()
    assert [v["deal_id"] for v in listed] == ["D-100", "D-200"]
    assert result_repo.get_evaluation("D-100")["comparison"]["best"] is not None
    assert result_repo.get_evaluation("missing") is None


def test_last_write_wins(result_repo, evaluations):
    ev = evaluations[1]
    result_repo.save_evaluation(ev)
    ev.verdict.rank = 7
    result_repo.save_evaluation(ev)
    assert result_repo.get_evaluation(ev.deal_id)["verdict"]["rank"] == 7
    assert len(result_repo.list_verdicts()) == 1


def test_matches_replace_previous(result_repo):
    cfg = MatchingAssumptions()
    deal = flip_candidate()
    a = score_buyer(deal, flipper_buyer(), "flip", cfg)
    b = score_buyer(deal, landlord_buyer(), "flip", cfg)

    result_repo.save_matches(deal.deal_id, [a, b])
    assert [m["buyer_id"] for m in result_repo.get_matches(deal.deal_id)] == ["B-1", "B-2"]

    result_repo.save_matches(deal.deal_id, [b])
    assert result_repo.get_matches(deal.deal_id) == [asdict(b)]


@pytest.fixture(params=["memory", "sql", "file"])
def buyer_repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryBuyerRepository()
    if request.param == "sql":
        return SqlBuyerRepository(f"sqlite:///{tmp_path / 'buyers.db'}")
    return FileBuyerRepository(str(tmp_path / "buyers.csv"))


def test_buyer_repo_upsert_and_active(buyer_repo):
    buyer_repo.upsert_many([flipper_buyer(), landlord_buyer(active=False)])
    buyer_repo.upsert_many([flipper_buyer(reliability=3)])

    active = buyer_repo.list_active()
    assert [b.buyer_id for b in active] == ["B-1"]
    assert active[0].reliability == 3
    assert active[0].preferred_zips == {"48201"}
    assert active[0].budget_max == 250_000


def test_read_records_turns_blank_cells_into_none(tmp_path):
    path = tmp_path / "deals.csv"
    path.write_text("deal_id,asking_price,sqft\nD-1,150000,\nD-2,,900\n", encoding="utf-8")
    rows = read_records(str(path))
    assert rows[0]["sqft"] is None
    assert rows[1]["asking_price"] is None
    assert rows[1]["sqft"] == "900"


def test_new_run_withdraws_earlier_ranks(result_repo):
    run_pipeline(
        [deal_record(deal_id="A", arv=300_000), deal_record(deal_id="B", arv=200_000)],
        repo=result_repo,
        lock=threading.Lock(),
    )
    run_pipeline([deal_record(deal_id="C", arv=250_000)], repo=result_repo, lock=threading.Lock())

    listed = result_repo.list_verdicts()
    assert [(v["deal_id"], v["rank"]) for v in listed] == [("C", 1), ("A", None), ("B", None)]
    assert result_repo.get_evaluation("A")["verdict"]["rank"] is None
