import pytest

from leaguesim.config import SimConfig
from leaguesim.run_values import (
    STATE_COUNT,
    RunValueModel,
    RunValueObservations,
    bases_label,
    load_anchor,
    state_index,
)
from utils.exceptions import ConfigurationError


def test_anchor_table():
    model = RunValueModel.anchor()
    assert len(model.values) == STATE_COUNT
    assert model.expected_runs(0, 0) == pytest.approx(0.48)
    assert model.expected_runs(3, 7) == 0.0
    for mask in range(8):
        assert model.expected_runs(0, mask) > model.expected_runs(1, mask) > model.expected_runs(2, mask)
    assert model.expected_runs(0, 7) > model.expected_runs(0, 0)


def test_state_index_and_labels():
    assert state_index(0, 0) == 0
    assert state_index(2, 7) == 23
    with pytest.raises(ValueError):
        state_index(3, 0)
    with pytest.raises(ValueError):
        state_index(0, 8)
    assert bases_label(0) == "---"
    assert bases_label(5) == "1-3"
    assert bases_label(7) == "123"


def test_recalibrate_blends_observed_and_anchor():
    cfg = SimConfig.default()
    model = RunValueModel.anchor()
    observations = RunValueObservations()
    for index in range(STATE_COUNT):
        for _ in range(cfg.RunValue.min_observations):
            observations.add(index, 2.0)
    recalibrated = model.recalibrate(observations, cfg)
    assert recalibrated.generation == 1
    assert model.generation == 0
    for value, anchored in zip(recalibrated.values, load_anchor()):
        assert value == pytest.approx(0.7 * 2.0 + 0.3 * anchored)


def test_recalibrate_against_custom_anchor():
    model = RunValueModel(tuple([1.0] * STATE_COUNT))
    observations = RunValueObservations()
    observations.extend([(i, 0) for i in range(STATE_COUNT) for _ in range(60)])
    recalibrated = model.recalibrate(observations, anchor=[2.0] * STATE_COUNT)
    assert recalibrated.values == pytest.approx(tuple([0.6] * STATE_COUNT))


def test_observations_merge_and_means():
    first = RunValueObservations()
    first.extend([(0, 1), (0, 0), (5, 2)])
    second = RunValueObservations()
    second.add(0, 2)
    first.merge(second)
    assert first.total == 4
    means = first.means()
    assert means[0] == pytest.approx(1.0)
    assert means[5] == pytest.approx(2.0)
    assert means[1] is None


def test_model_requires_24_values():
    with pytest.raises(ValueError):
        RunValueModel((0.5,) * 23)


def test_rows():
    rows = RunValueModel.anchor().rows()
    assert len(rows) == STATE_COUNT
    assert rows[0] == (0, "---", pytest.approx(0.48))
    assert rows[-1][:2] == (2, "123")


def test_incomplete_anchor_file(tmp_path):
    path = tmp_path / "re24.csv"
    path.write_text("outs,bases,runs\n0,---,0.5\n")
    with pytest.raises(ConfigurationError):
        load_anchor(str(path))
    bad = tmp_path / "bad.csv"
    bad.write_text("outs,bases,runs\n0,1x-,0.5\n")
    with pytest.raises(ConfigurationError):
        load_anchor(str(bad))
