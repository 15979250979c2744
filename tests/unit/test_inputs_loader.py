# tests/unit/test_inputs_loader.py

from __future__ import annotations

import json

import pytest

from dealscope.inputs import AppInputs, InputsLoader, RunOptions, load_inputs

BARE = {
    "subject": {"property_type": "single-family", "square_feet": 2000, "year_built": 2004},
    "ai_comps": [{"address": "10 Oak St", "sale_price": 410000, "square_feet": 2050}],
    "market_summary": {"suggested_value": 400000, "confidence": 55},
}


def _structured(**extra):
    data = {"analysis": BARE, "run": {"out": "custom.md", "scenarios": False}}
    data.update(extra)
    return data


def test_bare_root_is_wrapped():
    cfg = InputsLoader().load_json(json.dumps(BARE))
    assert isinstance(cfg, AppInputs)
    assert cfg.analysis.subject.square_feet == 2000
    assert cfg.run == RunOptions()
    assert cfg.settings.default_range_pct == 8.0


def test_structured_root_keeps_run_and_settings():
    cfg = InputsLoader().load_json(json.dumps(_structured(settings={"default_confidence": 40})))
    assert cfg.run.out == "custom.md"
    assert cfg.run.scenarios is False
    assert cfg.settings.default_confidence == 40


def test_load_from_file(tmp_path):
    p = tmp_path / "analysis.json"
    p.write_text(json.dumps(_structured()), encoding="utf-8")
    cfg = load_inputs(p)
    assert cfg.analysis.ai_comps[0].address == "10 Oak St"


def test_default_path_search(tmp_path, monkeypatch):
    (tmp_path / "config.json").write_text(json.dumps(BARE), encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert InputsLoader().load().analysis.market_summary.suggested_value == 400_000


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        InputsLoader().load(tmp_path / "nope.json")


def test_non_json_suffix_rejected(tmp_path):
    p = tmp_path / "analysis.yaml"
    p.write_text("subject: {}", encoding="utf-8")
    with pytest.raises(ValueError, match="only .json"):
        InputsLoader().load(p)


@pytest.mark.parametrize("text", ["{not json", "[1, 2, 3]"])
def test_malformed_payload_raises_value_error(text):
    with pytest.raises(ValueError):
        InputsLoader().load_json(text)


def test_validation_error_becomes_value_error():
    with pytest.raises(ValueError, match="Inputs validation failed"):
        InputsLoader().load_json(json.dumps({"analysis": {"ai_comps": []}}))


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DEALSCOPE_OUT", "env.md")
    monkeypatch.setenv("DEALSCOPE_SCENARIOS", "off")
    monkeypatch.setenv("DEALSCOPE_AREA_CAP_RATE", "5.25")
    monkeypatch.setenv("DEALSCOPE_CLOSING_COST_PCT", "2")
    monkeypatch.setenv("DEALSCOPE_RANGE_TIGHTENING_PCT", "3")

    cfg = InputsLoader().load_json(json.dumps(BARE))
    assert cfg.run.out == "env.md"
    assert cfg.run.scenarios is False
    assert cfg.analysis.area_cap_rate_pct == 5.25
    assert cfg.settings.default_closing_cost_pct == 2.0
    assert cfg.settings.range_tightening_pct == 3.0


def test_non_numeric_env_value_is_ignored(monkeypatch, caplog):
    monkeypatch.setenv("DEALSCOPE_AREA_CAP_RATE", "six")
    cfg = InputsLoader().load_json(json.dumps(BARE))
    assert cfg.analysis.area_cap_rate_pct is None
    assert "Ignoring non-numeric" in caplog.text


def test_with_overrides_is_non_destructive():
    loader = InputsLoader()
    base = loader.load_json(json.dumps(BARE))
    new = loader.with_overrides(base, out="x.md", scenarios=False, closing_cost_pct=1.5)

    assert new.run.out == "x.md"
    assert new.settings.default_closing_cost_pct == 1.5
    assert base.run.out == "valuation_report.md"
    assert base.settings.default_closing_cost_pct == 3.5
    assert loader.with_overrides(base) is base


def test_out_of_bounds_settings_override_rejected():
    loader = InputsLoader()
    base = loader.load_json(json.dumps(BARE))
    with pytest.raises(ValueError, match="Settings override rejected"):
        loader.with_overrides(base, range_tightening_pct=150.0)
