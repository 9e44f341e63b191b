from dealscope.domain.results import StrategyResult
from dealscope.services.comparator import compare_strategies


def _result(strategy, score, verdict="GOOD"):
    return StrategyResult(strategy=strategy, score=score, verdict=verdict, metrics={})


def test_ranked_highest_first_with_summary():
    c = compare_strategies([_result("flip", 84), _result("ltr", 61.4), _result("str", 70)])
    assert c.best == "flip"
    assert c.ranked == ["flip", "str", "ltr"]
    assert c.summary == "Flip:84 | STR:70 | LTR:61"
    assert "Flip leads with 84" in c.rationale


def test_ties_follow_declaration_order_regardless_of_input_order():
    results = [_result("creative", 70), _result("ltr", 70), _result("str", 70)]
    c = compare_strategies(results)
    assert c.ranked == ["str", "ltr", "creative"]
    assert c.best == "str"


def test_empty_input():
    c = compare_strategies([])
    assert c.best is None
    assert c.ranked == []
    assert c.summary == ""
