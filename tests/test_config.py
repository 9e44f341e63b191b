import json
import logging

import pytest

from dealscope.adapters.config import AppConfig, load_assumptions
from dealscope.adapters.logging_utils import JsonLogFormatter, get_logger
from dealscope.domain.assumptions import FlipAssumptions


@pytest.fixture
def config_log():
    """Records emitted on the config logger (it does not propagate to root)."""
    logger = get_logger("dealscope.config")
    records: list[logging.LogRecord] = []
    handler = logging.Handler()
    handler.emit = records.append
    logger.addHandler(handler)
    yield records
    logger.removeHandler(handler)


def test_defaults_without_source(monkeypatch):
    monkeypatch.delenv("DEALSCOPE_ASSUMPTIONS_PATH", raising=False)
    a = load_assumptions({})
    assert a.flip.agent_fee_rate == 0.06
    assert a.matching.min_score == 70


def test_section_overrides_apply():
    a = load_assumptions({"flip": {"agent_fee_rate": 0.05}, "str": {"occupancy": 0.5}})
    assert a.flip.agent_fee_rate == 0.05
    assert a.str_.occupancy == 0.5
    # untouched sections keep their defaults
    assert a.ltr.vacancy_rate == 0.08


def test_invalid_section_falls_back_with_warning(config_log):
    a = load_assumptions({"flip": {"agent_fee_rate": "lots"}, "matching": {"weights": {"zip": 2.0}}})
    assert a.flip == FlipAssumptions()
    assert a.matching.weights["zip"] == 0.25
    assert sum(1 for r in config_log if r.getMessage() == "assumptions_section_invalid") == 2


def test_unknown_sections_are_reported(config_log):
    load_assumptions({"wholesale": {"fee": 1}})
    assert any(r.getMessage() == "assumptions_unknown_sections" for r in config_log)


def test_load_from_file(tmp_path):
    path = tmp_path / "assumptions.json"
    path.write_text(json.dumps({"verdict": {"hot_min": 85}}), encoding="utf-8")
    a = load_assumptions(path)
    assert a.verdict.hot_min == 85


def test_unreadable_file_means_defaults(tmp_path, config_log):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    a = load_assumptions(path)
    assert a.verdict.hot_min == 80
    assert any(r.getMessage() == "assumptions_file_unreadable" for r in config_log)


def test_app_config_from_env(monkeypatch):
    monkeypatch.setenv("DEALSCOPE_MATCH_PRICE_TOLERANCE", "15%")
    monkeypatch.setenv("DEALSCOPE_PIPELINE_LOCK_TIMEOUT", "2.5")
    cfg = AppConfig()
    assert cfg.MATCH_PRICE_TOLERANCE == pytest.approx(0.15)
    assert cfg.PIPELINE_LOCK_TIMEOUT == 2.5
    assert cfg.MATCH_MIN_SCORE is None


def test_app_config_rejects_non_positive_timeout(monkeypatch):
    monkeypatch.setenv("DEALSCOPE_PIPELINE_LOCK_TIMEOUT", "0")
    with pytest.raises(ValueError):
        AppConfig()


def test_config_warnings_are_json_with_context(config_log):
    load_assumptions({"flip": {"agent_fee_rate": "lots"}})
    logger = logging.getLogger("dealscope.config")
    formatters = [h.formatter for h in logger.handlers if isinstance(h.formatter, JsonLogFormatter)]
    assert formatters
    payload = json.loads(formatters[0].format(config_log[0]))
    assert payload["event"] == "assumptions_section_invalid"
    assert payload["section"] == "flip"


def test_app_config_reads_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("DEALSCOPE_PIPELINE_N_JOBS=4\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DEALSCOPE_PIPELINE_N_JOBS", raising=False)
    assert AppConfig().PIPELINE_N_JOBS == 4
