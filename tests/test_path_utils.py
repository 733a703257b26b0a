from utils.path_utils import DATA_DIR_ENV, get_base_dir, get_data_dir


def test_default_data_dir_holds_bundled_tables(monkeypatch):
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    data = get_data_dir()
    assert data == get_base_dir() / "leaguesim" / "data"
    assert (data / "sim_defaults.json").exists()
    assert (data / "teams.csv").exists()


def test_data_dir_override(monkeypatch, tmp_path):
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
    assert get_data_dir() == tmp_path
