import json

import pytest

from leaguesim.config import SimConfig, load_config
from utils.exceptions import ConfigurationError, InvariantViolation, SimulationError


def test_defaults_load():
    cfg = SimConfig.default()
    assert cfg.version == "1.0"
    assert cfg.Hook.starter_ceiling == 110
    assert cfg.get("Hook", "starter_ceiling") == 110
    assert cfg.get("Hook", "missing", 5) == 5
    assert cfg.get("Missing", "key") is None
    assert cfg.ExtraInnings.ghost_runner_inning == 10
    assert cfg.RunValue.simulated_weight + cfg.RunValue.anchor_weight == pytest.approx(1.0)


def test_with_overrides_returns_new_config_and_bumps_version():
    cfg = SimConfig.default()
    tuned = cfg.with_overrides({"Hook": {"starter_ceiling": 100}})
    assert tuned.Hook.starter_ceiling == 100
    assert cfg.Hook.starter_ceiling == 110
    assert tuned.version == "1.0+1"
    assert tuned.with_overrides({"Hook": {"reliever_cap": 30}}).version == "1.0+2"
    assert cfg.with_overrides({}, version="custom").version == "custom"


def test_unknown_override_keys_are_rejected():
    cfg = SimConfig.default()
    with pytest.raises(ConfigurationError) as excinfo:
        cfg.with_overrides({"Hook": {"starter_cieling": 100}, "Nope": {"x": 1}})
    problems = excinfo.value.problems
    assert any("starter_cieling" in p for p in problems)
    assert any("Nope" in p for p in problems)


def test_non_numeric_override_rejected():
    with pytest.raises(ConfigurationError):
        SimConfig.from_dict({"Hook": {"starter_ceiling": "lots"}})


def test_section_copy_and_unknown_section():
    cfg = SimConfig.default()
    hook = cfg.section("Hook")
    hook["starter_ceiling"] = 1
    assert cfg.Hook.starter_ceiling == 110
    with pytest.raises(ConfigurationError):
        cfg.section("Nope")


def test_from_file_reads_overrides(tmp_path):
    path = tmp_path / "tuned.json"
    path.write_text(json.dumps({"version": "tuned-1", "Hook": {"reliever_cap": 30}}))
    cfg = SimConfig.from_file(path)
    assert cfg.Hook.reliever_cap == 30
    assert cfg.version == "tuned-1"

    nested = tmp_path / "nested.json"
    nested.write_text(json.dumps({"sections": {"Platoon": {"base": 0.05}}}))
    assert load_config(nested).Platoon.base == 0.05


def test_from_file_rejects_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ConfigurationError):
        SimConfig.from_file(path)
    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]")
    with pytest.raises(ConfigurationError):
        SimConfig.from_file(listing)


def test_load_config_without_path_is_default():
    assert load_config().to_dict() == SimConfig.default().to_dict()


def test_exception_hierarchy():
    err = ConfigurationError("League is not ready", ["team 1: no catcher", "team 2: no closer"])
    assert isinstance(err, SimulationError)
    assert isinstance(err, ValueError)
    assert "team 1: no catcher" in str(err)
    assert err.problems == ["team 1: no catcher", "team 2: no closer"]
    assert issubclass(InvariantViolation, SimulationError)
    assert issubclass(InvariantViolation, AssertionError)
